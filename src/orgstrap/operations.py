# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Progress reporting and failure type for bootstrap operations.

Steps never print directly.  They report through an
:class:`OperationReporter`, which renders each message for the operator
when a console is attached and mirrors it to the debug log.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


class OperationError(Exception):
    """A bootstrap step cannot continue."""


class OperationReporter:
    """Collects and renders progress messages for one run.

    Args:
        console: Rich console to render to.  ``None`` keeps the reporter
            silent; messages are still recorded in :attr:`messages`.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console
        self.messages: list[tuple[str, str]] = []

    def _emit(self, level: str, msg: str, style: str) -> None:
        self.messages.append((level, msg))
        logger.debug("[%s] %s", level, msg)
        if self._console is not None:
            self._console.print(f"[{style}]{escape(msg)}[/{style}]", highlight=False)

    def step(self, name: str, description: str) -> None:
        """Announce the start of a pipeline step."""
        label = f"{name}: {description}" if description else name
        self._emit("step", label, "bold cyan")

    def info(self, msg: str) -> None:
        self._emit("info", msg, "default")

    def dim(self, msg: str) -> None:
        self._emit("dim", msg, "dim")

    def warning(self, msg: str) -> None:
        self._emit("warning", f"Warning: {msg}", "yellow")

    def success(self, msg: str) -> None:
        self._emit("success", msg, "green")
