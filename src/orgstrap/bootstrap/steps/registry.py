# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap step: container registry in the shared project."""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ..constants import REGISTRY_DESCRIPTION, SHARED_PROJECT_ROLES
from ..contexts import BootstrapContext
from ..identity import service_account_member
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=600)
async def setup_registry(ctx: BootstrapContext) -> None:
    """Create the Docker registry and grant both identities shared-project admin roles."""
    cfg = ctx.config
    shared = cfg.shared_project_id
    try:
        if await ctx.gcloud.artifact_repository_exists(shared, cfg.registry_name, cfg.region):
            ctx.mark_reused(f"registry {cfg.registry_name}")
        else:
            await ctx.gcloud.create_artifact_repository(
                shared, cfg.registry_name, cfg.region, REGISTRY_DESCRIPTION,
            )
            ctx.mark_created(f"registry {cfg.registry_name}")

        for email in cfg.service_account_emails:
            for role in SHARED_PROJECT_ROLES:
                await ctx.gcloud.add_project_iam_binding(
                    shared, service_account_member(email), role,
                )
                ctx.dim(f"Granted {role} on {shared} to {email}")
    except GcloudError as e:
        raise OperationError(f"Failed to set up registry in '{shared}': {e}") from e
