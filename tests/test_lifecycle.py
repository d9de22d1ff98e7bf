import asyncio

import pytest

from unitgraph.definitions import using
from unitgraph.errors import InvalidLifecycleTransition, LifecycleHookFailure
from unitgraph.lifecycle import LifecycleState
from unitgraph.system import System


class Service:
    def __init__(self, name, events, fail_on=None):
        self.name = name
        self.events = events
        self.fail_on = fail_on

    def start(self):
        if self.fail_on == "start":
            raise RuntimeError(f"{self.name} cannot start")
        self.events.append(("start", self.name))

    def stop(self):
        if self.fail_on == "stop":
            raise RuntimeError(f"{self.name} cannot stop")
        self.events.append(("stop", self.name))


class AsyncService:
    def __init__(self, name, events):
        self.name = name
        self.events = events

    async def start(self):
        await asyncio.sleep(0)
        self.events.append(("start", self.name))

    async def stop(self):
        await asyncio.sleep(0)
        self.events.append(("stop", self.name))


@pytest.fixture
def events():
    return []


def service(name, events, fail_on=None, **dependencies):
    def factory(**_):
        return Service(name, events, fail_on)

    return using(dependencies, factory)


@pytest.fixture
def system(events):
    return System(
        [
            ("web", service("web", events, api="api")),
            ("db", service("db", events)),
            ("plain", {"no": "hooks"}),
            ("api", service("api", events, db="db")),
        ]
    )


def test_start_runs_in_instantiation_order(system, events):
    system.start()

    assert system.order == ("db", "plain", "api", "web")
    assert events == [("start", "db"), ("start", "api"), ("start", "web")]
    assert system.state is LifecycleState.STARTED
    assert system.started == ("db", "plain", "api", "web")


def test_stop_runs_in_reverse_order(system, events):
    system.start()
    started = [name for _, name in events]
    events.clear()

    system.stop()

    assert [name for _, name in events] == list(reversed(started))
    assert system.state is LifecycleState.STOPPED
    assert system.stopped == ("web", "api", "plain", "db")


def test_start_twice_raises(system):
    system.start()

    with pytest.raises(InvalidLifecycleTransition, match="Cannot start"):
        system.start()


def test_stop_before_start_raises(system, events):
    with pytest.raises(InvalidLifecycleTransition, match="Cannot stop"):
        system.stop()

    assert events == []
    assert system.state is LifecycleState.BUILT


def test_stopped_is_terminal(system):
    system.start()
    system.stop()

    with pytest.raises(InvalidLifecycleTransition):
        system.stop()
    with pytest.raises(InvalidLifecycleTransition):
        system.start()


def test_failing_start_hook_halts_and_names_unit(events):
    system = System(
        [
            ("db", service("db", events)),
            ("api", service("api", events, fail_on="start")),
            ("web", service("web", events)),
        ]
    )

    with pytest.raises(LifecycleHookFailure, match="start hook of unit 'api'") as excinfo:
        system.start()

    assert excinfo.value.unit_name == "api"
    assert excinfo.value.phase == "start"
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert events == [("start", "db")]
    assert system.started == ("db",)


def test_stop_after_failed_start_releases_started_units(events):
    system = System(
        [
            ("db", service("db", events)),
            ("api", service("api", events, fail_on="start")),
        ]
    )
    with pytest.raises(LifecycleHookFailure):
        system.start()

    system.stop()

    assert events == [("start", "db"), ("stop", "db")]


def test_failing_stop_hook_halts(events):
    system = System(
        [
            ("db", service("db", events)),
            ("api", service("api", events, fail_on="stop")),
            ("web", service("web", events)),
        ]
    )
    system.start()
    events.clear()

    with pytest.raises(LifecycleHookFailure, match="stop hook of unit 'api'"):
        system.stop()

    assert events == [("stop", "web")]
    assert system.stopped == ("web",)


def test_mapping_units_can_carry_hooks(events):
    system = System([("config", {"start": lambda: events.append("config started")})])

    system.start()

    assert events == ["config started"]


def test_async_hooks_are_awaited_in_order(events):
    system = System(
        [
            ("db", lambda: AsyncService("db", events)),
            ("api", using(["db"], lambda db: AsyncService("api", events))),
            ("legacy", lambda: Service("legacy", events)),
        ]
    )

    asyncio.run(system.astart())
    asyncio.run(system.astop())

    assert events == [
        ("start", "db"),
        ("start", "api"),
        ("start", "legacy"),
        ("stop", "legacy"),
        ("stop", "api"),
        ("stop", "db"),
    ]


def test_sync_start_rejects_async_hooks(events):
    system = System([("db", lambda: AsyncService("db", events))])

    with pytest.raises(LifecycleHookFailure, match="use astart"):
        system.start()

    assert events == []


def test_async_hook_failure_is_reported():
    class Broken:
        async def start(self):
            raise RuntimeError("nope")

    system = System([("broken", Broken)])

    with pytest.raises(LifecycleHookFailure, match="'broken'"):
        asyncio.run(system.astart())