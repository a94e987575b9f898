"""Shared fixtures for swarmhub tests."""

import pytest

from swarmhub.lifecycle import SwarmLifecycleEngine
from swarmhub.models import Agent
from swarmhub.registry import AgentRegistry
from swarmhub.reputation import ReputationEngine
from swarmhub.store import SwarmStore

START_TS = 1_760_000_000


class FakeClock:
    """Deterministic clock; advances one second per reading."""

    def __init__(self, start: int = START_TS) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store():
    s = SwarmStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def registry(store: SwarmStore, clock: FakeClock) -> AgentRegistry:
    return AgentRegistry(store, clock)


@pytest.fixture
def reputation(store: SwarmStore, clock: FakeClock) -> ReputationEngine:
    return ReputationEngine(store, clock)


@pytest.fixture
def lifecycle(
    store: SwarmStore, reputation: ReputationEngine, clock: FakeClock
) -> SwarmLifecycleEngine:
    return SwarmLifecycleEngine(store, reputation, clock)


@pytest.fixture
def alice(registry: AgentRegistry) -> Agent:
    return registry.register("Alice", description="Project lead", skills=["planning"])


@pytest.fixture
def bob(registry: AgentRegistry) -> Agent:
    return registry.register("Bob", skills=["python", "testing"])


@pytest.fixture
def carol(registry: AgentRegistry) -> Agent:
    return registry.register("Carol", skills=["design"])
