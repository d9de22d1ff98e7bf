"""Utilities for constructing system build plans.

This module holds the dependency graph builder. It turns a canonical
:class:`~unitgraph.unit_set.UnitSet` into a graph of "requires" edges, adding
one synthetic edge from every contributor of a consumed extension slot to the
consumer, and sequences the graph into a single instantiation order.

The :class:`BuildPlan` is the blueprint the instantiator follows. Besides the
order it records, for every contribution dependency, the contributors whose
``collect()`` results make up the dependency and the order in which they appear.
"""

import logging
from dataclasses import dataclass

from unitgraph.dependency_graph import DependencyGraph
from unitgraph.domain import DependencyKind, UnitDefinition
from unitgraph.errors import DuplicateContribution, UnknownDependency
from unitgraph.extension import ContributionRegistration, ExtensionSlot
from unitgraph.unit_set import UnitSet

__all__ = ["BuildPlan", "BuildPlanBuilder"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildPlan:
    """Description of how to build a :class:`~unitgraph.system.System`."""

    order: tuple[str, ...]
    """Unit names in instantiation order."""

    definitions: dict[str, UnitDefinition]
    """Unit definitions keyed by unit name."""

    contributors: dict[tuple[str, str], tuple[str, ...]]
    """Contributor names, in contribution order, for each (unit, local name) pair
    declared as a contribution dependency."""

    registrations: dict[tuple[ExtensionSlot, str], tuple[ContributionRegistration, ...]]
    """Registrations made by each contributor, keyed by (slot, contributor name)."""


class BuildPlanBuilder:
    """Resolve a :class:`UnitSet` into a :class:`BuildPlan`."""

    def __init__(self, unit_set: UnitSet):
        self._unit_set = unit_set
        self._contributors_by_slot: dict[ExtensionSlot, list[str]] = {}
        self._registrations: dict[tuple[ExtensionSlot, str], tuple[ContributionRegistration, ...]] = {}

    def build(self) -> BuildPlan:
        """Build the plan.

        Returns:
            A BuildPlan describing instantiation order and contribution order.

        Raises:
            UnknownDependency: If a dependency names a missing unit, or a consumed slot
                has a contributor that is not part of the system.
            DuplicateContribution: If a contributing definition is registered under
                several names.
            CyclicDependency: If the graph, including contribution edges, has a cycle.
        """
        graph = self._build_dependency_graph()
        order = tuple(graph.traverse())
        logger.debug("Instantiation order: %s", order)

        contributors = {}
        for name, definition in self._unit_set.items():
            for dependency in definition.contribution_dependencies:
                contributors[(name, dependency.local_name)] = self._contribution_order(
                    graph, self._contributors_by_slot[dependency.target]
                )
                logger.debug(
                    "Contributions to %s for %s.%s: %s",
                    dependency.target,
                    name,
                    dependency.local_name,
                    contributors[(name, dependency.local_name)],
                )

        return BuildPlan(
            order,
            dict(self._unit_set.definitions_by_name),
            contributors,
            dict(self._registrations),
        )

    def _build_dependency_graph(self) -> DependencyGraph:
        """
        Construct a graph with one node per unit and one edge per requirement.

        Raises:
            UnknownDependency: If a dependency cannot be matched to a unit.
        """
        graph = DependencyGraph(self._unit_set.names)

        for name, definition in self._unit_set.items():
            for dependency in definition.dependencies:
                if dependency.kind is DependencyKind.PLAIN:
                    if dependency.target not in self._unit_set:
                        raise UnknownDependency(dependency.target, name)
                    graph.add_edge(dependency.target, name)
                else:
                    for contributor in self._contributors_of(dependency.target):
                        graph.add_edge(contributor, name)

        return graph

    def _contributors_of(self, slot: ExtensionSlot) -> list[str]:
        """Find the units that registered contributions to ``slot``, in declaration order."""
        if slot in self._contributors_by_slot:
            return self._contributors_by_slot[slot]

        names_by_origin: dict[int, list[str]] = {}
        for name, definition in self._unit_set.items():
            names_by_origin.setdefault(id(definition.origin), []).append(name)

        contributors = []
        seen_origins = set()
        for registration in slot.registrations():
            origin_id = id(registration.origin)
            if origin_id in seen_origins:
                continue
            seen_origins.add(origin_id)

            names = names_by_origin.get(origin_id)
            if not names:
                raise UnknownDependency(_describe(registration.origin))
            if len(names) > 1:
                raise DuplicateContribution(slot, names)

            self._registrations[(slot, names[0])] = tuple(
                slot.registrations_from(registration.origin)
            )
            contributors.append(names[0])

        contributors.sort(key=self._unit_set.index_of)
        self._contributors_by_slot[slot] = contributors
        return contributors

    @staticmethod
    def _contribution_order(graph: DependencyGraph, contributors: list[str]) -> tuple[str, ...]:
        """Order contributors by declaration, except where one requires another.

        A contributor that transitively requires another is placed after it. This
        keeps contribution order independent of where unrelated units land in the
        global order.
        """
        contributor_graph = DependencyGraph(contributors)
        members = set(contributors)
        for contributor in contributors:
            for dependent in graph.reachable_from(contributor):
                if dependent in members:
                    contributor_graph.add_edge(contributor, dependent)
        return tuple(contributor_graph.traverse())


def _describe(origin) -> str:
    return getattr(origin, "__qualname__", None) or getattr(origin, "__name__", None) or repr(origin)
