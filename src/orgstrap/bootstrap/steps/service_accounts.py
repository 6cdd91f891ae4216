# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap steps: CI service accounts and their access to the state bucket."""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ...waiting import wait_until
from ..constants import STATE_BUCKET_ROLE
from ..contexts import BootstrapContext
from ..identity import service_account_member
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=400)
async def create_service_accounts(ctx: BootstrapContext) -> None:
    """Create the dev and prod deployment identities in the shared project."""
    shared = ctx.config.shared_project_id
    for env in ctx.config.environments():
        name = env.service_account.split("@", 1)[0]
        try:
            if await ctx.gcloud.service_account_exists(shared, env.service_account):
                ctx.mark_reused(f"service account {env.service_account}")
                continue
            await ctx.gcloud.create_service_account(
                shared, name, display_name=f"CI deployer ({env.name})",
            )
        except GcloudError as e:
            raise OperationError(f"Failed to create service account '{name}': {e}") from e
        ctx.mark_created(f"service account {env.service_account}")


@bootstrap_pipeline.step(order=450)
async def wait_for_service_accounts(ctx: BootstrapContext) -> None:
    """Wait until both service accounts are visible to IAM."""
    shared = ctx.config.shared_project_id
    for email in ctx.config.service_account_emails:
        async def _visible(email: str = email) -> bool:
            await ctx.gcloud.get_service_account(shared, email)
            return True

        try:
            await wait_until(
                _visible,
                what=f"service account {email}",
                settings=ctx.config.wait,
                progress=ctx.progress,
                sleep=ctx.sleep,
            )
        except GcloudError as e:
            raise OperationError(f"Failed waiting for service account {email}: {e}") from e


@bootstrap_pipeline.step(order=460)
async def grant_state_bucket_access(ctx: BootstrapContext) -> None:
    """Grant each identity object admin on the state bucket."""
    bucket = ctx.config.state_bucket
    for email in ctx.config.service_account_emails:
        try:
            await ctx.gcloud.add_bucket_iam_binding(
                bucket, service_account_member(email), STATE_BUCKET_ROLE,
            )
        except GcloudError as e:
            raise OperationError(f"Failed to grant {STATE_BUCKET_ROLE} on gs://{bucket}: {e}") from e
        ctx.dim(f"Granted {STATE_BUCKET_ROLE} on gs://{bucket} to {email}")
