"""Shared test fixtures."""

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest

from arcade_server_sdk.adapters.hypervisor_client import HypervisorClient
from arcade_server_sdk.config import Settings
from arcade_server_sdk.services.heartbeat import HeartbeatFailure
from arcade_server_sdk.services.retry import RetryPolicy


async def drain(rounds: int = 50) -> None:
    """Let every ready task run until the loop goes quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@dataclass(frozen=True)
class Call:
    """A single recorded hypervisor call."""

    method: str
    path: str
    body: dict[str, object] | None
    auth_token: str | None


@dataclass
class RecordingHypervisorClient(HypervisorClient):
    """Fake hypervisor client that records calls and replays canned data."""

    responses: dict[str, object] = field(
        default_factory=lambda: {
            "/api/server": {"random_seed": "seed-42"},
            "/api/player/activate": {"display_name": "Alice", "player_id": "p-1"},
        }
    )
    errors: dict[str, Exception] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[Call] = field(default_factory=list)
    completed: list[Call] = field(default_factory=list)
    policies: list[RetryPolicy | None] = field(default_factory=list)
    closed: bool = False

    async def invoke(
        self,
        method: str,
        path: str,
        body: dict[str, object] | None = None,
        auth_token: str | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> object:
        call = Call(method=method, path=path, body=body, auth_token=auth_token)
        self.calls.append(call)
        self.policies.append(policy)
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        self.completed.append(call)
        error = self.errors.get(path)
        if error is not None:
            raise error
        return self.responses.get(path)

    async def close(self) -> None:
        self.closed = True

    def count(self, path: str) -> int:
        return sum(1 for call in self.calls if call.path == path)

    def paths(self) -> list[str]:
        return [call.path for call in self.calls]


@dataclass
class ManualSleep:
    """Sleep replacement that only wakes when the test advances the clock."""

    delays: list[float] = field(default_factory=list)
    _waiters: list[asyncio.Future[None]] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    @property
    def sleepers(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def advance(self) -> None:
        """Let one interval elapse for every sleeping task."""
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
        await drain()


@dataclass
class RecordingSleep:
    """Sleep replacement that returns immediately and records delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@dataclass
class FailureCollector:
    """Heartbeat error handler that keeps every failure."""

    failures: list[HeartbeatFailure] = field(default_factory=list)

    def __call__(self, failure: HeartbeatFailure) -> None:
        self.failures.append(failure)


@pytest.fixture(autouse=True)
def restore_sdk_logger() -> Iterator[None]:
    """Undo logger changes made by configure_logging."""
    logger = logging.getLogger("arcade_server_sdk")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def settings() -> Settings:
    return Settings(
        hypervisor_addr="http://hypervisor.test:8083",
        heartbeat_interval_seconds=10.0,
    )


@pytest.fixture
def client() -> RecordingHypervisorClient:
    return RecordingHypervisorClient()


@pytest.fixture
def manual_sleep() -> ManualSleep:
    return ManualSleep()


@pytest.fixture
def failures() -> FailureCollector:
    return FailureCollector()
