"""Exceptions raised while building or running a unit system."""

from typing import Any, Iterable, Optional

__all__ = [
    "UnitGraphError",
    "DependencyError",
    "UnknownDependency",
    "CyclicDependency",
    "DuplicateLocalName",
    "DuplicateUnitName",
    "DuplicateContribution",
    "InvalidExtensionResult",
    "RegistrationDuringBuild",
    "UnitConstructionError",
    "LifecycleError",
    "InvalidLifecycleTransition",
    "LifecycleHookFailure",
]


class UnitGraphError(Exception):
    """Base class for all errors raised by unitgraph."""

    pass


class DependencyError(UnitGraphError):
    """Raised when a unit's dependencies cannot be resolved or are misdeclared."""

    pass


class UnknownDependency(DependencyError):
    """A dependency or slot contributor refers to a unit that is not in the system."""

    def __init__(self, name: str, required_by: Optional[str] = None):
        self.name = name
        self.required_by = required_by
        if required_by:
            message = f"Unknown dependency '{name}' required by '{required_by}'"
        else:
            message = f"Unknown dependency '{name}'"
        super().__init__(message)


class CyclicDependency(DependencyError):
    """The dependency graph, including contribution edges, contains a cycle.

    Attributes:
        cycle: A concrete cycle in edge direction, first and last entries equal.
    """

    def __init__(self, cycle: Iterable[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency: {' -> '.join(self.cycle)}")


class DuplicateLocalName(DependencyError):
    def __init__(self, local_name: str, label: str):
        self.local_name = local_name
        self.label = label
        super().__init__(
            f"Local name '{local_name}' is declared more than once on unit <{label}>"
        )


class DuplicateUnitName(DependencyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate unit name '{name}'")


class DuplicateContribution(DependencyError):
    """A contributing unit definition is registered under more than one name."""

    def __init__(self, slot: Any, names: Iterable[str]):
        self.slot = slot
        self.names = list(names)
        super().__init__(
            f"Contribution to {slot} is made by one definition registered "
            f"under several names: {self.names}"
        )


class InvalidExtensionResult(DependencyError):
    def __init__(self, slot: Any, contributor: str, result: Any = None):
        self.slot = slot
        self.contributor = contributor
        self.result = result
        super().__init__(
            f"Extension contributed by '{contributor}' to {slot} collected "
            f"{type(result).__name__} {result!r}, expected a structured record"
        )


class RegistrationDuringBuild(DependencyError):
    def __init__(self, slot: Any):
        self.slot = slot
        super().__init__(
            f"Cannot register a contribution to {slot} while a system is being built"
        )


class UnitConstructionError(DependencyError):
    """The factory of a unit raised while the system was being built."""

    def __init__(self, unit_name: str, cause: BaseException):
        self.unit_name = unit_name
        self.cause = cause
        super().__init__(f"Failed to construct unit '{unit_name}': {cause!r}")


class LifecycleError(UnitGraphError):
    pass


class InvalidLifecycleTransition(LifecycleError):
    def __init__(self, current: Any, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot {requested} a system in state {current}")


class LifecycleHookFailure(LifecycleError):
    """A start or stop hook raised; remaining hooks of that phase were not run."""

    def __init__(self, unit_name: str, phase: str, cause: BaseException):
        self.unit_name = unit_name
        self.phase = phase
        self.cause = cause
        super().__init__(f"The {phase} hook of unit '{unit_name}' failed: {cause!r}")
