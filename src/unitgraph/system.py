"""
The built, ordered collection of units.

Constructing a :class:`System` resolves the given units into a build plan and
instantiates every unit straight away. If anything goes wrong the constructor
raises and no partially built system is ever returned.

Example:
    >>> system = System([
    ...     ("config", {"port": 8080}),
    ...     ("server", using(["config"], Server)),
    ... ])
    >>> system.start()
    >>> system["server"]
    >>> system.stop()
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Iterator

from unitgraph.build_plan import BuildPlan, BuildPlanBuilder
from unitgraph.instantiator import Instantiator
from unitgraph.lifecycle import LifecycleRunner, LifecycleState
from unitgraph.unit_set import UnitSpecs, make_unit_set

__all__ = ["System"]

logger = logging.getLogger(__name__)


class System(Mapping):
    """
    Unit instances keyed by name, with lifecycle control.

    Args:
        units: A mapping of names to units, a sequence of ``(name, unit)`` pairs or
            a :class:`~unitgraph.registry.UnitRegistry`. Only the latter two
            guarantee declaration order independently of how the input was built.

    Raises:
        DependencyError: If the units cannot be resolved or instantiated.
    """

    def __init__(self, units: UnitSpecs):
        self.plan: BuildPlan = BuildPlanBuilder(make_unit_set(units)).build()
        self.instances = MappingProxyType(Instantiator(self.plan).build())
        self._lifecycle = LifecycleRunner(self.plan.order, self.instances)
        logger.debug("Built system of %d units", len(self.plan.order))

    @property
    def order(self) -> tuple[str, ...]:
        """Unit names in instantiation order."""
        return self.plan.order

    @property
    def state(self) -> LifecycleState:
        return self._lifecycle.state

    @property
    def started(self) -> tuple[str, ...]:
        """Units whose start phase has completed."""
        return tuple(self._lifecycle.started)

    @property
    def stopped(self) -> tuple[str, ...]:
        """Units whose stop phase has completed."""
        return tuple(self._lifecycle.stopped)

    def contributors(self, unit_name: str, local_name: str) -> tuple[str, ...]:
        """Names of the units contributing to a contribution dependency, in order."""
        return self.plan.contributors[(unit_name, local_name)]

    def start(self):
        """Call start hooks in instantiation order.

        Raises:
            InvalidLifecycleTransition: If the system was already started.
            LifecycleHookFailure: If a hook raises; later hooks are not called.
        """
        self._lifecycle.start()

    def stop(self):
        """Call stop hooks of started units in reverse instantiation order.

        Raises:
            InvalidLifecycleTransition: If the system is not started.
            LifecycleHookFailure: If a hook raises; later hooks are not called.
        """
        self._lifecycle.stop()

    async def astart(self):
        await self._lifecycle.astart()

    async def astop(self):
        await self._lifecycle.astop()

    def __getitem__(self, name: str) -> Any:
        return self.instances[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.plan.order)

    def __len__(self) -> int:
        return len(self.instances)

    def __repr__(self) -> str:
        return f"<System {list(self.plan.order)} {self.state.value}>"
