"""Pytest configuration and fixtures for Plan Relay tests."""

import asyncio
import json
import itertools

import pytest

from plan_relay.planning import PlanGenerator, TaskPlan
from plan_relay.registry import ConnectionRegistry
from plan_relay.session import SessionProtocol


EXAMPLE_PLAN = TaskPlan.model_validate(
    {"steps": [{"action": "navigate", "params": {"url": "https://example.com"}}]}
)


class FakePlanGenerator(PlanGenerator):
    """
    Plan generator double.

    - plans: command -> plan (falls back to EXAMPLE_PLAN)
    - errors: command -> exception to raise
    - gates: command -> asyncio.Event the call waits on before answering
    """

    def __init__(self, plans=None, errors=None):
        self.calls: list[str] = []
        self.plans: dict[str, TaskPlan] = plans or {}
        self.errors: dict[str, Exception] = errors or {}
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, command: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[command] = event
        return event

    async def generate(self, command: str) -> TaskPlan:
        self.calls.append(command)
        gate = self.gates.get(command)
        if gate is not None:
            await gate.wait()
        if command in self.errors:
            raise self.errors[command]
        return self.plans.get(command, EXAMPLE_PLAN)


class RecordingSender:
    """Sender double collecting decoded frames; can be switched to fail."""

    def __init__(self):
        self.frames: list[dict] = []
        self.fail = False

    async def __call__(self, data: str) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.frames.append(json.loads(data))

    def types(self) -> list[str]:
        return [f["type"] for f in self.frames]

    async def wait_for(self, count: int, timeout: float = 2.0) -> None:
        """Wait until at least `count` frames have been recorded."""
        async def _poll():
            while len(self.frames) < count:
                await asyncio.sleep(0.005)
        await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def generator():
    """A fake plan generator with default behavior."""
    return FakePlanGenerator()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def task_ids():
    """Deterministic task id factory: task-1, task-2, ..."""
    counter = itertools.count(1)
    return lambda: f"task-{next(counter)}"


@pytest.fixture
def protocol(registry, generator, task_ids):
    return SessionProtocol(registry, generator, task_id_factory=task_ids)


@pytest.fixture
def degraded_protocol(registry, task_ids):
    return SessionProtocol(registry, None, task_id_factory=task_ids)


@pytest.fixture
def sender_factory():
    """Build additional senders for multi-connection tests."""
    return RecordingSender
