# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap step: check the organization before changing anything."""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ..contexts import BootstrapContext
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=0)
async def check_organization(ctx: BootstrapContext) -> None:
    """Confirm the organization is readable and matches the domain."""
    cfg = ctx.config
    try:
        org = await ctx.gcloud.get_organization(cfg.organization_id)
    except GcloudError as e:
        raise OperationError(
            f"Cannot read organization {cfg.organization_id}: {e}"
        ) from e

    if org.display_name and org.display_name != cfg.domain:
        ctx.warning(
            f"Organization {cfg.organization_id} is '{org.display_name}', "
            f"expected '{cfg.domain}'"
        )
    ctx.dim(f"Parent for new projects: {cfg.parent}")
