"""Domain models used throughout the framework."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

__all__ = ["DependencyKind", "DependencyDescriptor", "UnitDefinition", "Extension"]


class DependencyKind(Enum):
    PLAIN = "plain"
    CONTRIBUTION = "contribution"


@dataclass(frozen=True)
class DependencyDescriptor:
    """Represents a dependency declared by a unit definition.

    Attributes:
        local_name: The keyword under which the resolved value is passed to the factory.
        kind: Whether the dependency is on another unit or on the contributions to a slot.
        target: The unit name for plain dependencies, the ExtensionSlot for contributions.
        ordering_only: If True, the dependency only constrains instantiation order and
            its value is not passed to the factory.
        inferred: True when derived from the factory's signature rather than declared
            with ``using``/``after``.
    """

    local_name: str
    kind: DependencyKind
    target: Any
    ordering_only: bool = False
    inferred: bool = False

    @property
    def binds_value(self) -> bool:
        return not self.ordering_only


@dataclass(frozen=True)
class UnitDefinition:
    """The buildable description of a unit.

    Attributes:
        factory: Callable invoked with resolved dependencies as keyword arguments.
        dependencies: Dependency descriptors in declaration order.
        origin: The function, class or record the definition was derived from;
            defaults to the factory.
            Definitions derived from one another share an origin, which is how
            extension slot registrations are matched to units.
        label: Human readable name used in error messages.
    """

    factory: Callable[..., Any]
    dependencies: tuple[DependencyDescriptor, ...] = ()
    origin: Any = None
    label: str = field(default="<unit>", compare=False)

    def __post_init__(self):
        if self.origin is None:
            object.__setattr__(self, "origin", self.factory)

    @property
    def plain_dependencies(self) -> tuple[DependencyDescriptor, ...]:
        return tuple(d for d in self.dependencies if d.kind is DependencyKind.PLAIN)

    @property
    def contribution_dependencies(self) -> tuple[DependencyDescriptor, ...]:
        return tuple(
            d for d in self.dependencies if d.kind is DependencyKind.CONTRIBUTION
        )


@runtime_checkable
class Extension(Protocol):
    """A per-contributor object handed out by an extension slot.

    Implementations may expose any number of methods to shape the contribution;
    the only required operation is ``collect``, which returns a structured record.
    """

    def collect(self) -> Any: ...
