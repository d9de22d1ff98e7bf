from dataclasses import dataclass
from functools import partial
from typing import Annotated

import pytest

from unitgraph.definitions import Unit, after, inferred_name, using
from unitgraph.domain import DependencyDescriptor, DependencyKind, UnitDefinition
from unitgraph.errors import DuplicateLocalName
from unitgraph.extension import ExtensionSlot, contributions


class Extension:
    def collect(self):
        return {}


def dependencies_of(definition: UnitDefinition):
    return [
        (d.local_name, d.kind, d.target, d.ordering_only)
        for d in definition.dependencies
    ]


def test_dependencies_are_inferred_from_parameter_names():
    def make_service(db, cache):
        pass

    assert dependencies_of(Unit(make_service)) == [
        ("db", DependencyKind.PLAIN, "db", False),
        ("cache", DependencyKind.PLAIN, "cache", False),
    ]


def test_annotated_name_overrides_parameter_name():
    def make_service(cache: Annotated[dict, "redis"]):
        pass

    assert dependencies_of(Unit(make_service)) == [
        ("cache", DependencyKind.PLAIN, "redis", False)
    ]


def test_annotated_contributions_create_contribution_dependency():
    slot = ExtensionSlot(Extension)

    def make_router(routes: Annotated[list, contributions(slot)]):
        pass

    assert dependencies_of(Unit(make_router)) == [
        ("routes", DependencyKind.CONTRIBUTION, slot, False)
    ]


def test_parameters_with_defaults_and_varargs_are_not_dependencies():
    def make_service(db, *args, timeout=5, **kwargs):
        pass

    assert dependencies_of(Unit(make_service)) == [
        ("db", DependencyKind.PLAIN, "db", False)
    ]


def test_keyword_only_parameters_are_dependencies():
    def make_bar(*, foo):
        pass

    assert dependencies_of(Unit(make_bar)) == [("foo", DependencyKind.PLAIN, "foo", False)]


def test_class_dependencies_come_from_its_constructor():
    @dataclass
    class Service:
        db: object
        retries: int = 3

    definition = Unit(Service)

    assert definition.factory is Service
    assert definition.origin is Service
    assert dependencies_of(definition) == [("db", DependencyKind.PLAIN, "db", False)]


def test_partial_is_treated_as_factory():
    def make_service(db, name):
        return (db, name)

    definition = Unit(partial(make_service, name="svc"))

    assert dependencies_of(definition) == [("db", DependencyKind.PLAIN, "db", False)]
    assert definition.factory(db="the db") == ("the db", "svc")


def test_record_body_is_copied_for_each_build():
    body = {"port": 8080}
    definition = Unit(body)

    first = definition.factory()
    second = definition.factory()

    assert first == {"port": 8080}
    assert first is not body
    assert first is not second
    assert definition.dependencies == ()
    assert definition.origin is body


def test_record_body_receives_dependencies():
    class Settings:
        port = 8080

    body = Settings()
    definition = using(["db"], body)
    instance = definition.factory(db="the db")

    assert instance is not body
    assert instance.db == "the db"
    assert instance.port == 8080
    assert using(["db"], {"a": 1}).factory(db=2) == {"a": 1, "db": 2}


def test_unit_of_definition_is_identity():
    definition = Unit(lambda: None)

    assert Unit(definition) is definition


def test_using_with_names_maps_each_name_to_itself():
    definition = using(["x", "y"], lambda **deps: deps)

    assert dependencies_of(definition) == [
        ("x", DependencyKind.PLAIN, "x", False),
        ("y", DependencyKind.PLAIN, "y", False),
    ]


def test_using_with_mapping_aliases_names():
    slot = ExtensionSlot(Extension)
    definition = using({"x": "other_x", "routes": contributions(slot)}, lambda x, routes: None)

    assert dependencies_of(definition) == [
        ("x", DependencyKind.PLAIN, "other_x", False),
        ("routes", DependencyKind.CONTRIBUTION, slot, False),
    ]


def test_using_keeps_factory_and_origin():
    def make_service(db):
        pass

    base = Unit(make_service)
    derived = using({"db": "database"}, base)

    assert derived.factory is make_service
    assert derived.origin is make_service
    assert base.dependencies[0].target == "db"


def test_using_can_decorate():
    @using({"db": "database"})
    def make_service(db):
        return db

    assert isinstance(make_service, UnitDefinition)
    assert make_service.dependencies[0].target == "database"


def test_explicit_local_name_declared_twice_raises():
    definition = using({"a": "x"}, lambda **deps: None)

    with pytest.raises(DuplicateLocalName, match="Local name 'a'"):
        using({"a": "y"}, definition)


def test_non_string_target_raises_type_error():
    with pytest.raises(TypeError, match="must name a unit"):
        using({"a": 42}, lambda a: None)


def test_after_adds_ordering_only_dependencies():
    definition = after(["product_routes"], lambda: None)

    assert definition.dependencies == (
        DependencyDescriptor(
            "product_routes", DependencyKind.PLAIN, "product_routes", ordering_only=True
        ),
    )


def test_after_is_redundant_when_dependency_is_bound_explicitly():
    def make_service(db):
        pass

    assert dependencies_of(after(["db"], using(["db"], make_service))) == [
        ("db", DependencyKind.PLAIN, "db", False)
    ]
    assert dependencies_of(using(["db"], after("db", lambda db: None))) == [
        ("db", DependencyKind.PLAIN, "db", False)
    ]


def test_inferred_name_strips_make_prefix():
    class Database:
        pass

    def make_database():
        pass

    def my_service():
        pass

    assert inferred_name(Database) == "Database"
    assert inferred_name(make_database) == "database"
    assert inferred_name(my_service) == "my_service"


def test_after_survives_rebinding_of_an_inferred_dependency():
    def make_data(db):
        pass

    definition = using({"db": "database"}, after(["db"], make_data))

    assert dependencies_of(definition) == [
        ("db", DependencyKind.PLAIN, "database", False),
        ("db", DependencyKind.PLAIN, "db", True),
    ]


def test_repeated_name_in_using_sequence_raises():
    with pytest.raises(DuplicateLocalName, match="Local name 'a'"):
        using(["a", "a"], lambda **deps: None)


def test_definition_without_origin_uses_its_factory():
    def make_routes():
        pass

    definition = UnitDefinition(make_routes)

    assert definition.origin is make_routes
    assert using(["db"], definition).origin is make_routes
