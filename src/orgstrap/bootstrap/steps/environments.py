# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap step: APIs, roles and org policy for each deployment project."""

from __future__ import annotations

from ...config import Environment
from ...gcloud_client import GcloudError
from ...operations import OperationError
from ...waiting import wait_until
from ..constants import ENVIRONMENT_APIS, ENVIRONMENT_ROLES
from ..contexts import BootstrapContext
from ..identity import service_account_member
from ..org_policy import allow_all_member_domains_policy
from . import bootstrap_pipeline


async def _prepare_environment(ctx: BootstrapContext, env: Environment) -> None:
    project_id = env.project_id

    ctx.info(f"[{env.name}] Enabling {len(ENVIRONMENT_APIS)} APIs on {project_id}")
    await ctx.gcloud.enable_services(project_id, list(ENVIRONMENT_APIS))

    async def _apis_enabled() -> bool:
        enabled = await ctx.gcloud.list_enabled_services(project_id)
        return set(ENVIRONMENT_APIS) <= enabled

    await wait_until(
        _apis_enabled,
        what=f"APIs on {project_id}",
        settings=ctx.config.wait,
        progress=ctx.progress,
        sleep=ctx.sleep,
    )

    member = service_account_member(env.service_account)
    for role in ENVIRONMENT_ROLES:
        await ctx.gcloud.add_project_iam_binding(project_id, member, role)
    ctx.info(f"[{env.name}] Granted {len(ENVIRONMENT_ROLES)} roles to {env.service_account}")

    policy = allow_all_member_domains_policy(project_id)
    await ctx.gcloud.set_org_policy(policy)
    ctx.info(f"[{env.name}] Applied {policy['name']} (allow all)")


@bootstrap_pipeline.step(order=700)
async def setup_environments(ctx: BootstrapContext) -> None:
    """Enable APIs, grant deployment roles and relax member domains per environment."""
    for env in ctx.config.environments():
        try:
            await _prepare_environment(ctx, env)
        except GcloudError as e:
            raise OperationError(
                f"Failed to set up {env.name} project '{env.project_id}': {e}"
            ) from e
