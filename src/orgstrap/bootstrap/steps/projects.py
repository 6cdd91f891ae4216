# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap steps: create the shared, dev and prod projects."""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ...waiting import wait_until
from ..contexts import BootstrapContext
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=100)
async def create_projects(ctx: BootstrapContext) -> None:
    """Create the three projects under the configured parent."""
    for project_id in ctx.config.project_ids:
        resource = f"project {project_id}"
        try:
            if await ctx.gcloud.project_exists(project_id):
                project = await ctx.gcloud.get_project(project_id)
                if not project.is_active:
                    raise OperationError(
                        f"Project '{project_id}' exists but is {project.lifecycle_state}; "
                        "restore it or choose another project id"
                    )
                ctx.mark_reused(resource)
                continue
            await ctx.gcloud.create_project(project_id, ctx.config.parent)
        except GcloudError as e:
            raise OperationError(f"Failed to create project '{project_id}': {e}") from e
        ctx.mark_created(resource)


@bootstrap_pipeline.step(order=150)
async def wait_for_projects(ctx: BootstrapContext) -> None:
    """Wait until every project is visible and ACTIVE."""
    for project_id in ctx.config.project_ids:
        async def _active(project_id: str = project_id) -> bool:
            project = await ctx.gcloud.get_project(project_id)
            return project.is_active

        try:
            await wait_until(
                _active,
                what=f"project {project_id}",
                settings=ctx.config.wait,
                progress=ctx.progress,
                sleep=ctx.sleep,
            )
        except GcloudError as e:
            raise OperationError(f"Failed waiting for project '{project_id}': {e}") from e
