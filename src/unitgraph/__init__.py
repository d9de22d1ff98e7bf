"""Unitgraph: declarative units, extension slots and ordered lifecycles.

Unitgraph builds an object graph from a declarative, ordered description of
named units. Each unit is built by a factory that receives its dependencies as
keyword arguments. Extension slots let many units contribute records to a
single consumer, and a simple lifecycle starts units in instantiation order and
stops them in reverse.

Key Features:
    - Deterministic instantiation order: a stable topological sort that keeps
      declaration order wherever dependencies allow
    - Extension slots with ordered contributions
    - Ordering-only dependencies with ``after``
    - Start/stop hooks, synchronous or awaited one at a time
    - Cycle detection reporting a concrete cycle

Basic Usage:
    >>> from unitgraph.definitions import using
    >>> from unitgraph.extension import ExtensionSlot, contributions
    >>> from unitgraph.system import System
    >>>
    >>> routes = ExtensionSlot(RouteTable)
    >>> routes(AppRoutes).get("/", index)
    >>>
    >>> system = System([
    ...     ("app_routes", AppRoutes),
    ...     ("router", using({"routes": contributions(routes)}, Router)),
    ... ])
    >>> system.start()

The framework consists of several core modules:
    - definitions: Unit, using and after
    - extension: extension slots and contribution markers
    - registry: decorator-based unit registration
    - build_plan: dependency graph building and contribution ordering
    - dependency_graph: stable topological sorting and cycle detection
    - instantiator: unit materialisation
    - lifecycle: start/stop hooks
    - system: the System container
    - errors: framework-specific exceptions
"""
