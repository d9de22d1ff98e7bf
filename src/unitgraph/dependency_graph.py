"""Directed graph of "requires" edges with a stable topological traversal.

Nodes keep the order in which they were added. Whenever more than one node is
ready to be instantiated, the earliest added wins, so the resulting order only
differs from declaration order where an edge forces it to.
"""

import heapq
import logging
from typing import Iterable, Iterator

from unitgraph.errors import CyclicDependency, UnknownDependency

__all__ = ["DependencyGraph"]

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Ordered nodes and deduplicated edges ``dependency -> dependent``.

    Example:
        >>> graph = DependencyGraph(["router", "x"])
        >>> graph.add_edge("x", "router")
        >>> list(graph.traverse())
        ['x', 'router']
    """

    def __init__(self, nodes: Iterable[str] = ()):
        self._index: dict[str, int] = {}
        self._predecessors: dict[str, dict[str, None]] = {}
        self._successors: dict[str, dict[str, None]] = {}
        for node in nodes:
            self.add_node(node)

    @property
    def nodes(self) -> list[str]:
        return list(self._index)

    def add_node(self, node: str):
        if node in self._index:
            return
        self._index[node] = len(self._index)
        self._predecessors[node] = {}
        self._successors[node] = {}

    def add_edge(self, dependency: str, dependent: str):
        """
        Record that ``dependent`` requires ``dependency``.

        Raises:
            UnknownDependency: If either end is not a node of the graph.
        """
        if dependency not in self._index:
            raise UnknownDependency(dependency, dependent)
        if dependent not in self._index:
            raise UnknownDependency(dependent)
        self._predecessors[dependent][dependency] = None
        self._successors[dependency][dependent] = None

    def predecessors(self, node: str) -> list[str]:
        return list(self._predecessors[node])

    def successors(self, node: str) -> list[str]:
        return list(self._successors[node])

    def traverse(self) -> Iterator[str]:
        """
        Perform a stable topological traversal of the graph.

        Yields:
            Node names such that every node comes after all of its dependencies,
            and ties are broken by the order in which nodes were added.

        Raises:
            CyclicDependency: If the remaining nodes all wait on each other.
        """
        unresolved = {
            node: len(predecessors)
            for node, predecessors in self._predecessors.items()
        }
        ready = [self._index[node] for node, count in unresolved.items() if count == 0]
        heapq.heapify(ready)
        nodes = self.nodes

        while ready:
            next_item = nodes[heapq.heappop(ready)]
            del unresolved[next_item]
            yield next_item

            for dependent in self._successors[next_item]:
                unresolved[dependent] -= 1
                if unresolved[dependent] == 0:
                    heapq.heappush(ready, self._index[dependent])

        if unresolved:
            raise CyclicDependency(self._find_cycle(unresolved.keys()))

    def reachable_from(self, node: str) -> set[str]:
        """Return every node that transitively requires ``node``."""
        seen: set[str] = set()
        pending = list(self._successors[node])
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            pending.extend(self._successors[current])
        return seen

    def _find_cycle(self, remaining: Iterable[str]) -> list[str]:
        """
        Extract one concrete cycle from nodes left over by an incomplete traversal.

        Every leftover node has at least one leftover predecessor, so walking
        predecessors must eventually revisit a node. The walk always takes the
        earliest-added predecessor, which makes the reported cycle deterministic.
        """
        remaining = set(remaining)
        current = min(remaining, key=self._index.__getitem__)
        path: list[str] = []
        position: dict[str, int] = {}

        while current not in position:
            position[current] = len(path)
            path.append(current)
            current = min(
                (p for p in self._predecessors[current] if p in remaining),
                key=self._index.__getitem__,
            )

        cycle = path[position[current]:]
        cycle.reverse()
        cycle.append(cycle[0])
        logger.debug("Found dependency cycle %s", cycle)
        return cycle
