# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap step: attach the billing account to every project."""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ..contexts import BootstrapContext
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=200)
async def link_billing(ctx: BootstrapContext) -> None:
    """Link each project to the billing account."""
    account = ctx.config.billing_account
    for project_id in ctx.config.project_ids:
        resource = f"billing link {project_id} -> {account}"
        try:
            info = await ctx.gcloud.get_billing_info(project_id)
            if info.billing_enabled and info.billing_account_id == account:
                ctx.mark_reused(resource)
                continue
            if info.billing_account_id and info.billing_account_id != account:
                ctx.warning(
                    f"Project '{project_id}' is billed to {info.billing_account_id}; "
                    f"relinking to {account}"
                )
            await ctx.gcloud.link_billing(project_id, account)
        except GcloudError as e:
            raise OperationError(f"Failed to link billing for '{project_id}': {e}") from e
        ctx.mark_created(resource)
