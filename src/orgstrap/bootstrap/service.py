# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap operations: run, plan and report.

The provisioning itself is the ``bootstrap`` pipeline in
:mod:`orgstrap.bootstrap.steps`; this module builds the context, runs
the pipeline and hands back what the CLI needs to print.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..config import BootstrapConfig
from ..gcloud_client import DryRunGcloudClient, GcloudClient, GcloudError
from ..operations import OperationError, OperationReporter
from ..pipeline import StepInfo
from .contexts import BootstrapContext
from .identity import provider_resource_name
from .report import CiReport, build_report
from .steps import bootstrap_pipeline

logger = logging.getLogger(__name__)


async def _no_sleep(_seconds: float) -> None:
    return None


@dataclass
class Plan:
    """Result of a dry run."""

    commands: list[list[str]]
    report: CiReport


class BootstrapService:
    """Runs the bootstrap pipeline against one organization."""

    def __init__(
        self,
        config: BootstrapConfig,
        gcloud: GcloudClient,
        progress: OperationReporter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the service.

        Args:
            config: Validated bootstrap configuration
            gcloud: Control-plane client
            progress: Reporter for step and resource messages
            sleep: Sleep used by wait points
        """
        self._config = config
        self._gcloud = gcloud
        self._progress = progress
        self._sleep = sleep

    def _announce(self, step: StepInfo) -> None:
        logger.debug("Running step %s (order %d)", step.name, step.order)
        if self._progress:
            self._progress.step(step.name, step.description)

    async def run(self) -> BootstrapContext:
        """Provision everything, in order, and return the finished context.

        Raises:
            OperationError: When a step fails.  Nothing is rolled back;
                running again resumes from the first missing resource.
        """
        ctx = BootstrapContext(
            config=self._config,
            gcloud=self._gcloud,
            progress=self._progress,
            sleep=self._sleep,
        )
        await bootstrap_pipeline.run(ctx, on_step=self._announce)

        if self._progress:
            self._progress.success(
                f"Bootstrap complete: {len(ctx.created)} created, {len(ctx.reused)} reused"
            )
        return ctx

    async def current_report(self) -> CiReport:
        """Rebuild the CI report for an already bootstrapped organization.

        Raises:
            OperationError: If the identity pool or provider cannot be read.
        """
        cfg = self._config
        try:
            pool = await self._gcloud.get_workload_identity_pool(
                cfg.shared_project_id, cfg.pool_name,
            )
            provider = await self._gcloud.get_oidc_provider(
                cfg.shared_project_id, cfg.pool_name, cfg.provider_name,
            )
        except GcloudError as e:
            raise OperationError(f"Cannot read workload identity pool '{cfg.pool_name}': {e}") from e

        expected = provider_resource_name(pool.name, cfg.provider_name)
        if provider.name != expected:
            logger.warning("Provider name %s differs from %s", provider.name, expected)
        return build_report(cfg, provider.name)


async def plan(config: BootstrapConfig, progress: OperationReporter | None = None) -> Plan:
    """Dry-run the pipeline and collect the commands it would issue."""
    gcloud = DryRunGcloudClient()
    service = BootstrapService(config, gcloud, progress=progress, sleep=_no_sleep)
    ctx = await service.run()
    if ctx.report is None:
        raise OperationError("Dry run finished without a report")
    return Plan(commands=gcloud.commands, report=ctx.report)


def list_steps() -> list[StepInfo]:
    return list(bootstrap_pipeline.steps())
