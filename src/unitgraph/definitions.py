"""Constructing unit definitions from functions, classes and records.

``Unit`` normalises the different ways of describing a unit into a single
:class:`~unitgraph.domain.UnitDefinition`. ``using`` and ``after`` add declared
dependencies without touching the factory.
"""

import copy
import functools
import inspect
from collections.abc import Mapping
from typing import Annotated, Any, Callable, Iterable, Union, get_args, get_origin

from unitgraph.domain import DependencyDescriptor, DependencyKind, UnitDefinition
from unitgraph.errors import DuplicateLocalName
from unitgraph.extension import Contributions

__all__ = ["Unit", "using", "after", "inferred_name"]

DependencyMapping = Union[Iterable[str], Mapping[str, Union[str, Contributions]]]


def inferred_name(target: Any) -> str:
    """Derive a unit name from a class or function name, removing any 'make_' prefix.

    Example:
        >>> inferred_name(Database)       # Returns "Database"
        >>> inferred_name(make_database)  # Returns "database"
    """
    if inspect.isclass(target):
        return target.__name__

    if target.__name__.startswith("make_"):
        return target.__name__[5:]
    else:
        return target.__name__


def Unit(body: Any) -> UnitDefinition:
    """Normalise ``body`` into a UnitDefinition.

    Args:
        body: An existing UnitDefinition (returned unchanged), a function or class
            whose parameters declare its dependencies, or any other object, which is
            treated as a record and shallow-copied for each system build.

    Returns:
        The corresponding :class:`UnitDefinition`.
    """
    if isinstance(body, UnitDefinition):
        return body
    if _is_factory(body):
        return UnitDefinition(
            body, tuple(_get_dependencies(body)), body, _label(body)
        )
    return UnitDefinition(_record_factory(body), (), body, _label(body))


def using(
    dependencies: DependencyMapping, unit: Any = None
) -> Union[UnitDefinition, Callable[[Any], UnitDefinition]]:
    """Add named dependencies to a unit.

    Args:
        dependencies: Either a sequence of unit names, each bound under its own
            name, or a mapping from local name to unit name or ``contributions(slot)``.
        unit: The unit body or definition to augment. If omitted, ``using``
            returns a decorator.

    Returns:
        A new UnitDefinition sharing the origin and factory of ``unit``.

    Raises:
        DuplicateLocalName: If a local name is already declared explicitly.

    Example:
        >>> router = using({"x": "x", "routes": contributions(route_slot)}, Router)
    """
    if unit is None:
        return lambda target: using(dependencies, target)

    definition = Unit(unit)
    return _augment(definition, _descriptors_from(dependencies, definition.label))


def after(
    names: Iterable[str], unit: Any = None
) -> Union[UnitDefinition, Callable[[Any], UnitDefinition]]:
    """Require that ``unit`` is instantiated after the named units.

    The named units are not passed to the factory; the dependency only orders
    instantiation and, through it, the order of contributions to shared slots.
    """
    if unit is None:
        return lambda target: after(names, target)

    if isinstance(names, str):
        names = [names]
    return _augment(
        Unit(unit),
        [
            DependencyDescriptor(name, DependencyKind.PLAIN, name, ordering_only=True)
            for name in names
        ],
    )


def _descriptors_from(dependencies: DependencyMapping, label: str) -> list[DependencyDescriptor]:
    if isinstance(dependencies, str):
        dependencies = [dependencies]
    if isinstance(dependencies, Mapping):
        pairs = list(dependencies.items())
    else:
        pairs = [(name, name) for name in dependencies]

    seen = set()
    for local_name, _ in pairs:
        if local_name in seen:
            raise DuplicateLocalName(local_name, label)
        seen.add(local_name)

    return [_make_descriptor(local_name, target) for local_name, target in pairs]


def _make_descriptor(local_name: str, target: Any, inferred: bool = False) -> DependencyDescriptor:
    if isinstance(target, Contributions):
        return DependencyDescriptor(
            local_name, DependencyKind.CONTRIBUTION, target.slot, inferred=inferred
        )
    if not isinstance(target, str):
        raise TypeError(
            f"Dependency '{local_name}' must name a unit or use contributions(), got {target!r}"
        )
    return DependencyDescriptor(
        local_name, DependencyKind.PLAIN, target, inferred=inferred
    )


def _augment(definition: UnitDefinition, added: list[DependencyDescriptor]) -> UnitDefinition:
    dependencies = list(definition.dependencies)

    for descriptor in added:
        if descriptor.ordering_only:
            if descriptor not in dependencies:
                dependencies.append(descriptor)
            continue

        existing = next(
            (
                i
                for i, d in enumerate(dependencies)
                if d.binds_value and d.local_name == descriptor.local_name
            ),
            None,
        )
        if existing is None:
            dependencies.append(descriptor)
        elif dependencies[existing].inferred:
            dependencies[existing] = descriptor
        else:
            raise DuplicateLocalName(descriptor.local_name, definition.label)

    # an explicit binding makes an ordering-only dependency on the same unit redundant;
    # inferred bindings may still be replaced by a later using()
    bound_targets = {
        d.target
        for d in dependencies
        if d.kind is DependencyKind.PLAIN and d.binds_value and not d.inferred
    }
    dependencies = [
        d for d in dependencies if d.binds_value or d.target not in bound_targets
    ]

    return UnitDefinition(
        definition.factory, tuple(dependencies), definition.origin, definition.label
    )


def _label(body: Any) -> str:
    name = getattr(body, "__qualname__", None) or getattr(body, "__name__", None)
    return name or type(body).__name__


def _is_factory(body: Any) -> bool:
    return (
        inspect.isclass(body)
        or inspect.isroutine(body)
        or isinstance(body, functools.partial)
    )


def _record_factory(body: Any) -> Callable[..., Any]:
    """Build a factory returning a fresh shallow copy of ``body`` with dependencies merged in."""

    def build(**dependencies):
        if isinstance(body, Mapping):
            return {**body, **dependencies}
        instance = copy.copy(body)
        for local_name, value in dependencies.items():
            setattr(instance, local_name, value)
        return instance

    return build


def _get_dependencies(func: Callable) -> list[DependencyDescriptor]:
    """Extract dependencies from a factory's signature.

    Parameters with defaults, ``*args`` and ``**kwargs`` are skipped. A parameter
    annotated ``Annotated[T, "name"]`` depends on the unit ``name``; one annotated
    ``Annotated[T, contributions(slot)]`` depends on the contributions to ``slot``.
    Any other parameter depends on the unit with the same name.

    Example:
        >>> def make_service(db, cache: Annotated[Cache, "redis"], timeout=5): ...
        >>> # [Descriptor("db", PLAIN, "db"), Descriptor("cache", PLAIN, "redis")]
    """
    try:
        sig = inspect.signature(func, eval_str=True)
    except ValueError:
        # builtins without an introspectable signature take no dependencies
        return []

    return [
        _make_dependency(param.annotation, name)
        for name, param in sig.parameters.items()
        if param.kind in (param.POSITIONAL_OR_KEYWORD, param.KEYWORD_ONLY)
        and param.default is param.empty
    ]


def _make_dependency(annotation, name) -> DependencyDescriptor:
    if get_origin(annotation) is Annotated:
        _, *metadata = get_args(annotation)
        target = next(
            (m for m in metadata if isinstance(m, (str, Contributions))), name
        )
        return _make_descriptor(name, target, inferred=True)
    return _make_descriptor(name, name, inferred=True)
