"""Extension slots and contribution registrations.

An :class:`ExtensionSlot` is an extensibility point consumed by one or more units.
Other units contribute to it by calling the slot with a reference to themselves,
which registers and returns a fresh extension object. The extension is shaped
through whatever methods it exposes and is finally read with ``collect()`` when
a unit depending on ``contributions(slot)`` is instantiated.

Example:
    >>> routes = ExtensionSlot(RouteTable, name="routes")
    >>> routes(make_app_routes).get("/", index)
    >>>
    >>> @using({"routes": contributions(routes)})
    >>> def make_router(routes): ...
"""

import dataclasses
import functools
import inspect
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from numbers import Number
from typing import Any, Callable, Iterator, Optional

from unitgraph.domain import Extension, UnitDefinition
from unitgraph.errors import RegistrationDuringBuild

__all__ = [
    "ExtensionSlot",
    "Contributions",
    "ContributionRegistration",
    "contributions",
    "is_record",
    "building",
]

logger = logging.getLogger(__name__)

_building: ContextVar[bool] = ContextVar("unitgraph_building", default=False)


@dataclass(frozen=True)
class ContributionRegistration:
    """Associates an extension with the unit origin that contributed it."""

    slot: "ExtensionSlot"
    origin: Any
    extension: Extension


class ExtensionSlot:
    """An extensibility point identified by object identity.

    Args:
        extension_factory: No-argument callable producing a new extension for each
            registration.
        name: Optional name used in messages.
    """

    def __init__(self, extension_factory: Callable[[], Any], name: Optional[str] = None):
        self._extension_factory = extension_factory
        self.name = name or getattr(extension_factory, "__name__", None) or "slot"
        self._registrations: list[ContributionRegistration] = []

    def __call__(self, unit: Any) -> Any:
        """Register a new extension for ``unit`` and return it.

        Args:
            unit: A UnitDefinition, or the function, class or record a unit is
                (or will be) defined from.

        Raises:
            RegistrationDuringBuild: If called from a factory while a system is built.
            TypeError: If the extension factory returns an object without ``collect``.
        """
        if _building.get():
            raise RegistrationDuringBuild(self)

        extension = self._extension_factory()
        if not callable(getattr(extension, "collect", None)):
            raise TypeError(
                f"Extension factory of {self} returned {extension!r}, "
                "which has no collect() method"
            )

        origin = unit.origin if isinstance(unit, UnitDefinition) else unit
        self._registrations.append(ContributionRegistration(self, origin, extension))
        logger.debug("Registered contribution to %s from %r", self, origin)
        return extension

    def registrations(self) -> list[ContributionRegistration]:
        return list(self._registrations)

    def registrations_from(self, origin: Any) -> list[ContributionRegistration]:
        return [r for r in self._registrations if r.origin is origin]

    def __repr__(self) -> str:
        return f"<ExtensionSlot {self.name}>"


@dataclass(frozen=True)
class Contributions:
    """Dependency marker meaning "all records contributed to this slot"."""

    slot: ExtensionSlot


def contributions(slot: ExtensionSlot) -> Contributions:
    """Mark a dependency as the ordered contributions to ``slot``."""
    if not isinstance(slot, ExtensionSlot):
        raise TypeError(f"{slot!r} is not an ExtensionSlot")
    return Contributions(slot)


_PRIMITIVES = (str, bytes, bytearray, Number, type(None), list, set, frozenset)


def is_record(value: Any) -> bool:
    """Check whether ``value`` is a structured record rather than a primitive.

    Mappings, dataclass instances, named tuples and attribute-carrying objects are
    records. Strings, bytes, numbers, booleans, None, plain tuples, lists, sets,
    classes, functions and modules are not.
    """
    if isinstance(value, Mapping):
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    if isinstance(value, tuple):
        return hasattr(value, "_fields")
    if isinstance(value, _PRIMITIVES) or isinstance(value, type):
        return False
    if inspect.isroutine(value) or inspect.ismodule(value) or isinstance(value, functools.partial):
        return False
    return hasattr(value, "__dict__") or hasattr(type(value), "__slots__")


@contextmanager
def building() -> Iterator[None]:
    """Forbid slot registration for the duration of a system build."""
    token = _building.set(True)
    try:
        yield
    finally:
        _building.reset(token)
