"""Decorator-based registration of units in declaration order."""

from typing import Any, Callable, Iterable, Optional

from unitgraph.definitions import DependencyMapping, Unit, after as _after, inferred_name, using as _using
from unitgraph.domain import UnitDefinition
from unitgraph.errors import DuplicateUnitName

__all__ = ["UnitRegistry"]


class UnitRegistry:
    """Ordered collection of named unit definitions.

    Registration order is declaration order: it breaks ties when the system's
    instantiation order is computed, so a registry can be passed straight to
    :class:`~unitgraph.system.System`.

    Example:
        >>> registry = UnitRegistry()
        >>>
        >>> @registry.provides()
        >>> def make_database():
        ...     return Database()
        >>>
        >>> @registry.provides(using={"db": "database"})
        >>> def make_service(db):
        ...     return Service(db)
    """

    def __init__(self):
        self._units: dict[str, UnitDefinition] = {}

    def register(self, name: str, unit: Any) -> UnitDefinition:
        """Register a unit explicitly.

        Args:
            name: The system-wide name of the unit.
            unit: A UnitDefinition, or anything accepted by :func:`~unitgraph.definitions.Unit`.

        Raises:
            DuplicateUnitName: If ``name`` is already registered.
        """
        if name in self._units:
            raise DuplicateUnitName(name)
        definition = Unit(unit)
        self._units[name] = definition
        return definition

    def units(self) -> list[tuple[str, UnitDefinition]]:
        """Return the registered units as ordered ``(name, definition)`` pairs."""
        return list(self._units.items())

    def provides(
        self,
        name: Optional[str] = None,
        using: Optional[DependencyMapping] = None,
        after: Optional[Iterable[str]] = None,
    ) -> Callable:
        """Decorator to register a function or class as a unit.

        Args:
            name: Optional unit name; defaults to the function name with any 'make_'
                prefix removed, or the class name.
            using: Optional dependency mapping applied with :func:`~unitgraph.definitions.using`.
            after: Optional unit names this unit must be instantiated after.

        Returns:
            A decorator that registers the target and returns it unchanged, so it
            can still be handed to an extension slot.
        """

        def decorator(obj):
            definition = Unit(obj)
            if using is not None:
                definition = _using(using, definition)
            if after is not None:
                definition = _after(after, definition)
            self.register(name or inferred_name(obj), definition)
            return obj

        return decorator

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, name: str) -> bool:
        return name in self._units
