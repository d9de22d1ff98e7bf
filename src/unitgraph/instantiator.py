"""Materialising units from a build plan.

The instantiator walks the plan's order, resolving each unit's plain
dependencies to already-built units and its contribution dependencies to the
ordered ``collect()`` results of the slot's contributors, and invokes the
unit's factory with the result.
"""

import logging
from typing import Any

from unitgraph.build_plan import BuildPlan
from unitgraph.domain import DependencyDescriptor, DependencyKind
from unitgraph.errors import InvalidExtensionResult, UnitConstructionError, UnitGraphError
from unitgraph.extension import ExtensionSlot, building, is_record

__all__ = ["Instantiator"]

logger = logging.getLogger(__name__)


class Instantiator:
    """Instantiate units following a :class:`BuildPlan`."""

    def __init__(self, plan: BuildPlan):
        self._plan = plan

    def build(self) -> dict[str, Any]:
        """Materialise every unit in the plan.

        Returns:
            Unit instances keyed by name, in instantiation order.

        Raises:
            InvalidExtensionResult: If a contribution does not collect to a record.
            UnitConstructionError: If a unit's factory raises.
        """
        built: dict[str, Any] = {}
        collected: dict[tuple[ExtensionSlot, str], list[Any]] = {}

        with building():
            for unit_name in self._plan.order:
                definition = self._plan.definitions[unit_name]

                call_kwargs = {
                    dependency.local_name: self._resolve(
                        unit_name, dependency, built, collected
                    )
                    for dependency in definition.dependencies
                    if dependency.binds_value
                }

                try:
                    built[unit_name] = definition.factory(**call_kwargs)
                except UnitGraphError:
                    raise
                except Exception as e:
                    raise UnitConstructionError(unit_name, e) from e
                logger.debug("Instantiated unit '%s'", unit_name)

        return built

    def _resolve(
        self,
        unit_name: str,
        dependency: DependencyDescriptor,
        built: dict[str, Any],
        collected: dict[tuple[ExtensionSlot, str], list[Any]],
    ) -> Any:
        if dependency.kind is DependencyKind.PLAIN:
            return built[dependency.target]

        slot = dependency.target
        results = []
        for contributor in self._plan.contributors[(unit_name, dependency.local_name)]:
            key = (slot, contributor)
            if key not in collected:
                collected[key] = [
                    _collect(slot, contributor, registration.extension)
                    for registration in self._plan.registrations[key]
                ]
            results.extend(collected[key])
        return results


def _collect(slot: ExtensionSlot, contributor: str, extension: Any) -> Any:
    result = extension.collect()
    if not is_record(result):
        raise InvalidExtensionResult(slot, contributor, result)
    return result
