"""Normalising caller input into a canonical, ordered set of units.

A system may be described by a mapping, by an explicit sequence of
``(name, unit)`` pairs, or by a :class:`~unitgraph.registry.UnitRegistry`.
Whatever the input, the rest of the framework only sees a :class:`UnitSet`
whose order is exactly the order supplied.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Union

from unitgraph.definitions import Unit
from unitgraph.domain import UnitDefinition
from unitgraph.errors import DuplicateUnitName
from unitgraph.registry import UnitRegistry

__all__ = ["UnitSet", "UnitSpecs", "make_unit_set"]

UnitSpecs = Union[Mapping[str, Any], Iterable[tuple[str, Any]], UnitRegistry, "UnitSet"]


@dataclass(frozen=True)
class UnitSet:
    """
    Named unit definitions in declaration order.

    Attributes:
        names: Unit names in declaration order.
        definitions_by_name: Mapping from unit name to its definition.
    """

    names: tuple[str, ...]
    definitions_by_name: dict[str, UnitDefinition]

    def items(self) -> list[tuple[str, UnitDefinition]]:
        return [(name, self.definitions_by_name[name]) for name in self.names]

    def index_of(self, name: str) -> int:
        return self.names.index(name)

    def __contains__(self, name: str) -> bool:
        return name in self.definitions_by_name


def make_unit_set(units: UnitSpecs) -> UnitSet:
    """
    Construct a UnitSet from any supported description of a system.

    Mapping input is taken in its iteration order; pass explicit pairs when the
    order has to be guaranteed independently of how the mapping was built.

    Raises:
        DuplicateUnitName: If a name is supplied more than once.
        TypeError: If a name is not a non-empty string.
    """
    if isinstance(units, UnitSet):
        return units
    if isinstance(units, UnitRegistry):
        pairs = units.units()
    elif isinstance(units, Mapping):
        pairs = list(units.items())
    else:
        pairs = list(units)

    definitions_by_name: dict[str, UnitDefinition] = {}
    for name, unit in pairs:
        if not isinstance(name, str) or not name:
            raise TypeError(f"Unit names must be non-empty strings, got {name!r}")
        if name in definitions_by_name:
            raise DuplicateUnitName(name)
        definitions_by_name[name] = Unit(unit)

    return UnitSet(tuple(definitions_by_name), definitions_by_name)
