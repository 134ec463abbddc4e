"""Cancellable recurring heartbeat tasks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class HeartbeatFailure:
    """A heartbeat that failed after the transport gave up on it."""

    kind: Literal["slip", "pool"]
    key: str | None
    error: Exception


HeartbeatErrorHandler = Callable[[HeartbeatFailure], None]


def log_heartbeat_failure(failure: HeartbeatFailure) -> None:
    """Default handler: heartbeat failures never change local state."""
    _logger.warning(
        "Heartbeat failed: kind=%s key=%s error=%s",
        failure.kind,
        failure.key,
        failure.error,
    )


class HeartbeatTask:
    """
    Runs ``beat`` every ``interval_seconds`` on the running event loop.

    Cancelling only prevents future beats. A beat that is already in flight
    is allowed to finish, after which the loop exits. ``cancel`` may be
    called any number of times.
    """

    def __init__(
        self,
        name: str,
        beat: Callable[[], Awaitable[None]],
        interval_seconds: float,
        *,
        on_error: Callable[[Exception], None],
        immediate: bool = False,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self.interval_seconds = interval_seconds
        self._beat = beat
        self._on_error = on_error
        self._immediate = immediate
        self._sleep = sleep
        self._cancelled = False
        self._in_flight = False
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        """Schedule the loop. Requires a running event loop."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"heartbeat:{self.name}"
        )

    def cancel(self) -> None:
        """Stop future beats without aborting one in flight."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._in_flight:
            self._task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        if self._immediate:
            await self._fire()
        while not self._cancelled:
            await self._sleep(self.interval_seconds)
            if self._cancelled:
                break
            await self._fire()

    async def _fire(self) -> None:
        self._in_flight = True
        try:
            await self._beat()
        except Exception as exc:  # noqa: BLE001
            try:
                self._on_error(exc)
            except Exception:  # noqa: BLE001
                _logger.exception("Heartbeat error handler failed: %s", self.name)
        finally:
            self._in_flight = False
