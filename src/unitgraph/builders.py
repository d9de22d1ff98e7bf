"""High level entry points for constructing systems."""

from unitgraph.build_plan import BuildPlan, BuildPlanBuilder
from unitgraph.system import System
from unitgraph.unit_set import UnitSpecs, make_unit_set

__all__ = ["make_plan", "make_system"]


def make_plan(units: UnitSpecs) -> BuildPlan:
    """Resolve units into a :class:`BuildPlan` without instantiating anything.

    Useful to inspect instantiation and contribution order, or to validate a
    system description.

    Args:
        units: A mapping, a sequence of ``(name, unit)`` pairs or a UnitRegistry.

    Returns:
        The resolved plan.

    Raises:
        DependencyError: If dependencies are missing, duplicated or cyclic.
    """
    return BuildPlanBuilder(make_unit_set(units)).build()


def make_system(units: UnitSpecs) -> System:
    """Construct and return a fully materialised :class:`System`.

    Raises:
        DependencyError: If dependencies are missing, duplicated or cyclic, or a
            unit cannot be instantiated.
    """
    return System(units)
