# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Context dataclass passed through the bootstrap pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..config import BootstrapConfig
from ..gcloud_client import GcloudClient
from ..operations import OperationReporter
from .report import CiReport


@dataclass
class BootstrapContext:
    """State threaded through one bootstrap run.

    ``config`` is read-only.  Steps record what they discover on the
    context: the canonical pool resource name is set by the workload
    identity step and read back, unchanged, by the bindings and the
    report.

    Steps should check whether their resources already exist before
    creating them so a re-run picks up where a failed run stopped.
    """

    config: BootstrapConfig
    gcloud: GcloudClient
    progress: OperationReporter | None = None
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    # Built up by pipeline steps
    pool_name: str | None = None
    provider_name: str | None = None
    created: list[str] = field(default_factory=lambda: list[str]())
    reused: list[str] = field(default_factory=lambda: list[str]())
    report: CiReport | None = None

    def info(self, msg: str) -> None:
        if self.progress:
            self.progress.info(msg)

    def dim(self, msg: str) -> None:
        if self.progress:
            self.progress.dim(msg)

    def warning(self, msg: str) -> None:
        if self.progress:
            self.progress.warning(msg)

    def mark_created(self, resource: str) -> None:
        self.created.append(resource)
        self.info(f"Created {resource}")

    def mark_reused(self, resource: str) -> None:
        self.reused.append(resource)
        self.dim(f"{resource} already exists, reusing it")

    def require_pool_name(self) -> str:
        """The pool resource name captured by the workload identity step."""
        if self.pool_name is None:
            raise RuntimeError("workload identity pool name has not been captured yet")
        return self.pool_name
