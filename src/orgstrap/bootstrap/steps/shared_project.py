# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap step: prepare the shared project and its state bucket."""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ..constants import SHARED_PROJECT_APIS
from ..contexts import BootstrapContext
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=300)
async def setup_shared_project(ctx: BootstrapContext) -> None:
    """Activate the shared project, enable its APIs, create the state bucket."""
    cfg = ctx.config
    shared = cfg.shared_project_id
    bucket = cfg.state_bucket

    try:
        await ctx.gcloud.set_active_project(shared)
        ctx.dim(f"Active gcloud project: {shared}")

        ctx.info(f"Enabling {len(SHARED_PROJECT_APIS)} APIs on {shared}")
        await ctx.gcloud.enable_services(shared, list(SHARED_PROJECT_APIS))

        if await ctx.gcloud.bucket_exists(bucket):
            ctx.mark_reused(f"bucket gs://{bucket}")
        else:
            await ctx.gcloud.create_bucket(shared, bucket, cfg.region)
            ctx.mark_created(f"bucket gs://{bucket}")

        # Versioning is applied on every run; it is a no-op when already set
        await ctx.gcloud.enable_bucket_versioning(bucket)
    except GcloudError as e:
        raise OperationError(f"Failed to set up shared project '{shared}': {e}") from e
