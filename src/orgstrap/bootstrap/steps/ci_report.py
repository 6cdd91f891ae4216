# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap step: assemble the CI variables and secrets report."""

from __future__ import annotations

from ..contexts import BootstrapContext
from ..identity import provider_resource_name
from ..report import build_report
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=900)
async def collect_report(ctx: BootstrapContext) -> None:
    """Build the report of values to copy into GitHub."""
    provider = ctx.provider_name or provider_resource_name(
        ctx.require_pool_name(), ctx.config.provider_name,
    )
    ctx.report = build_report(ctx.config, provider)
