"""Start and stop hooks for built systems.

Units may expose ``start`` and ``stop`` callables (as attributes, or as keys for
mapping units). Hooks are started in instantiation order and stopped in reverse,
one at a time: an asynchronous hook is awaited before the next one runs.
"""

import inspect
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Optional

from unitgraph.errors import InvalidLifecycleTransition, LifecycleHookFailure

__all__ = ["LifecycleState", "LifecycleRunner"]

logger = logging.getLogger(__name__)

START = "start"
STOP = "stop"


class LifecycleState(Enum):
    BUILT = "built"
    STARTED = "started"
    STOPPED = "stopped"


class LifecycleRunner:
    """Drive the start/stop lifecycle of a set of units.

    Args:
        order: Unit names in instantiation order.
        instances: Unit instances keyed by name.

    Attributes:
        state: The current :class:`LifecycleState`.
        started: Names of units whose start phase completed, in order.
        stopped: Names of units whose stop phase completed, in order.
    """

    def __init__(self, order: tuple[str, ...], instances: Mapping[str, Any]):
        self._order = order
        self._instances = instances
        self.state = LifecycleState.BUILT
        self.started: list[str] = []
        self.stopped: list[str] = []

    def start(self):
        for unit_name, hook in self._begin_start():
            self._run_hook(unit_name, START, hook, self.started)

    def stop(self):
        for unit_name, hook in self._begin_stop():
            self._run_hook(unit_name, STOP, hook, self.stopped)

    async def astart(self):
        for unit_name, hook in self._begin_start():
            await self._arun_hook(unit_name, START, hook, self.started)

    async def astop(self):
        for unit_name, hook in self._begin_stop():
            await self._arun_hook(unit_name, STOP, hook, self.stopped)

    def _begin_start(self) -> list[tuple[str, Optional[Callable]]]:
        if self.state is not LifecycleState.BUILT:
            raise InvalidLifecycleTransition(self.state, START)
        self.state = LifecycleState.STARTED
        return [(name, _hook(self._instances[name], START)) for name in self._order]

    def _begin_stop(self) -> list[tuple[str, Optional[Callable]]]:
        if self.state is not LifecycleState.STARTED:
            raise InvalidLifecycleTransition(self.state, STOP)
        self.state = LifecycleState.STOPPED
        return [
            (name, _hook(self._instances[name], STOP))
            for name in reversed(self.started)
        ]

    @staticmethod
    def _run_hook(unit_name: str, phase: str, hook: Optional[Callable], completed: list[str]):
        if hook is not None:
            logger.debug("Running %s hook of unit '%s'", phase, unit_name)
            try:
                result = hook()
            except Exception as e:
                raise LifecycleHookFailure(unit_name, phase, e) from e
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                e = TypeError(
                    f"The {phase} hook returned an awaitable; use a{phase}() instead"
                )
                raise LifecycleHookFailure(unit_name, phase, e) from e
        completed.append(unit_name)

    @staticmethod
    async def _arun_hook(unit_name: str, phase: str, hook: Optional[Callable], completed: list[str]):
        if hook is not None:
            logger.debug("Running %s hook of unit '%s'", phase, unit_name)
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                raise LifecycleHookFailure(unit_name, phase, e) from e
        completed.append(unit_name)


def _hook(unit: Any, phase: str) -> Optional[Callable]:
    if isinstance(unit, Mapping):
        hook = unit.get(phase)
    else:
        hook = getattr(unit, phase, None)
    return hook if callable(hook) else None
