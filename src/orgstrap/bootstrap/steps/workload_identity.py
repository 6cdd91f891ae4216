# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap steps: workload identity federation for GitHub Actions.

The pool's canonical resource name (``projects/<number>/...``) is
queried back from the control plane once the pool is visible and stored
on the context.  The bindings use that exact string; it is never rebuilt
from the project id.
"""

from __future__ import annotations

from ...gcloud_client import GcloudError
from ...operations import OperationError
from ...waiting import wait_until
from ..constants import (
    GITHUB_OIDC_ISSUER,
    POOL_DISPLAY_NAME,
    PROVIDER_DISPLAY_NAME,
    WORKLOAD_IDENTITY_USER_ROLE,
)
from ..contexts import BootstrapContext
from ..identity import (
    attribute_condition,
    attribute_mapping_arg,
    principal_set,
    provider_resource_name,
)
from . import bootstrap_pipeline


@bootstrap_pipeline.step(order=500)
async def create_identity_pool(ctx: BootstrapContext) -> None:
    """Create the identity pool and its GitHub OIDC provider.

    Existing resources are only reused when ACTIVE. A soft-deleted pool
    or provider keeps its id for 30 days and has to be undeleted by hand.
    An existing provider whose attribute condition no longer matches the
    configured org is updated in place.
    """
    cfg = ctx.config
    shared = cfg.shared_project_id
    pool, provider = cfg.pool_name, cfg.provider_name
    condition = attribute_condition(cfg.github_org)

    try:
        if await ctx.gcloud.workload_identity_pool_exists(shared, pool):
            existing_pool = await ctx.gcloud.get_workload_identity_pool(shared, pool)
            if not existing_pool.is_active:
                raise OperationError(
                    f"Workload identity pool '{pool}' exists but is {existing_pool.state}; "
                    "undelete it or choose another pool name"
                )
            ctx.mark_reused(f"workload identity pool {pool}")
        else:
            await ctx.gcloud.create_workload_identity_pool(
                shared, pool, display_name=POOL_DISPLAY_NAME,
            )
            ctx.mark_created(f"workload identity pool {pool}")

        if await ctx.gcloud.oidc_provider_exists(shared, pool, provider):
            existing = await ctx.gcloud.get_oidc_provider(shared, pool, provider)
            if not existing.is_active:
                raise OperationError(
                    f"Workload identity provider '{provider}' exists but is {existing.state}; "
                    "undelete it or choose another provider name"
                )
            if existing.attribute_condition != condition:
                ctx.warning(
                    f"Provider '{provider}' condition is {existing.attribute_condition!r}; "
                    f"updating to {condition!r}"
                )
                await ctx.gcloud.update_oidc_provider(
                    shared,
                    pool,
                    provider,
                    attribute_mapping=attribute_mapping_arg(),
                    attribute_condition=condition,
                )
            ctx.mark_reused(f"workload identity provider {provider}")
        else:
            await ctx.gcloud.create_oidc_provider(
                shared,
                pool,
                provider,
                display_name=PROVIDER_DISPLAY_NAME,
                issuer_uri=GITHUB_OIDC_ISSUER,
                attribute_mapping=attribute_mapping_arg(),
                attribute_condition=condition,
            )
            ctx.mark_created(f"workload identity provider {provider}")
    except GcloudError as e:
        raise OperationError(f"Failed to set up workload identity pool '{pool}': {e}") from e


@bootstrap_pipeline.step(order=550)
async def capture_identity_pool(ctx: BootstrapContext) -> None:
    """Wait until the pool is ACTIVE and capture its resource name."""
    cfg = ctx.config

    async def _active() -> bool:
        pool = await ctx.gcloud.get_workload_identity_pool(cfg.shared_project_id, cfg.pool_name)
        if pool.is_active:
            ctx.pool_name = pool.name
        return pool.is_active

    try:
        await wait_until(
            _active,
            what=f"workload identity pool {cfg.pool_name}",
            settings=cfg.wait,
            progress=ctx.progress,
            sleep=ctx.sleep,
        )
    except GcloudError as e:
        raise OperationError(
            f"Failed waiting for workload identity pool '{cfg.pool_name}': {e}"
        ) from e
    ctx.provider_name = provider_resource_name(ctx.require_pool_name(), cfg.provider_name)
    ctx.dim(f"Workload identity pool: {ctx.pool_name}")


@bootstrap_pipeline.step(order=560)
async def bind_workload_identity_users(ctx: BootstrapContext) -> None:
    """Let repositories of the GitHub org impersonate both identities."""
    cfg = ctx.config
    member = principal_set(ctx.require_pool_name(), cfg.github_org)
    for email in cfg.service_account_emails:
        try:
            await ctx.gcloud.add_service_account_iam_binding(
                cfg.shared_project_id, email, member, WORKLOAD_IDENTITY_USER_ROLE,
            )
        except GcloudError as e:
            raise OperationError(
                f"Failed to grant {WORKLOAD_IDENTITY_USER_ROLE} on {email}: {e}"
            ) from e
        ctx.dim(f"Granted {WORKLOAD_IDENTITY_USER_ROLE} on {email} to {member}")
