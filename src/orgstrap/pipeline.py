# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ordered pipeline of async provisioning steps.

A :class:`Pipeline` is created once per package and its :meth:`~Pipeline.step`
method is used as a decorator in each step module.  Importing the step
modules is enough to register them; the execution order comes from the
numeric ``order`` of each step, never from import order.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from typing import Generic, NamedTuple, TypeVar, overload

_Ctx = TypeVar("_Ctx")

_StepFn = Callable[[_Ctx], Awaitable[None]]
_StepHook = Callable[["StepInfo"], None]

# Default order for steps that don't specify one.
_DEFAULT_ORDER = 500


class StepInfo(NamedTuple):
    """Name and position of a registered step."""

    order: int
    name: str
    description: str


def _step_info(order: int, fn: Callable[..., object]) -> StepInfo:
    doc = (fn.__doc__ or "").strip().splitlines()
    return StepInfo(order, fn.__name__, doc[0] if doc else "")


class Pipeline(Generic[_Ctx]):
    """A registry of async step functions executed by ``order``.

    Ordering
    --------
    Every step has a numeric *order* (default 500).  Steps run in
    ascending order; steps with equal order run in registration
    (decoration) order.

    Convention: phases use multiples of 100; wait points and follow-up
    grants of a phase sit at ``+50`` / ``+60`` inside it.

    Example::

        bootstrap = Pipeline[BootstrapContext]("bootstrap")

        @bootstrap.step(order=100)
        async def create_projects(ctx: BootstrapContext) -> None: ...

        @bootstrap.step(order=150)
        async def wait_for_projects(ctx: BootstrapContext) -> None: ...
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: list[tuple[int, int, _StepFn[_Ctx]]] = []
        self._seq = 0  # registration counter for stable sort

    @overload
    def step(self, fn: _StepFn[_Ctx]) -> _StepFn[_Ctx]: ...
    @overload
    def step(self, *, order: int) -> Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]: ...

    def step(
        self,
        fn: _StepFn[_Ctx] | None = None,
        *,
        order: int = _DEFAULT_ORDER,
    ) -> _StepFn[_Ctx] | Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]:
        """Register *fn* as a step in this pipeline.

        Can be used bare (``@pipeline.step``) or with arguments
        (``@pipeline.step(order=200)``).
        """
        def _register(f: _StepFn[_Ctx]) -> _StepFn[_Ctx]:
            self._entries.append((order, self._seq, f))
            self._seq += 1
            return f

        if fn is not None:
            return _register(fn)
        return _register

    def _ordered(self) -> list[tuple[int, int, _StepFn[_Ctx]]]:
        return sorted(self._entries, key=lambda e: (e[0], e[1]))

    def steps(self) -> Iterator[StepInfo]:
        """Yield registered steps in execution order."""
        for order, _seq, f in self._ordered():
            yield _step_info(order, f)

    async def run(self, ctx: _Ctx, *, on_step: _StepHook | None = None) -> None:
        """Execute every registered step in order.

        Args:
            ctx: Context passed to every step.
            on_step: Called with the step's :class:`StepInfo` right
                before it runs.
        """
        for order, _seq, s in self._ordered():
            if on_step is not None:
                on_step(_step_info(order, s))
            await s(ctx)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        names = ", ".join(f"{s.name}({s.order})" for s in self.steps())
        return f"Pipeline({self.name!r}, [{names}])"
