"""Stake pool lifecycle and pool heartbeat."""

import asyncio
import logging
from dataclasses import dataclass, field

from arcade_server_sdk.adapters.hypervisor_client import HypervisorClient
from arcade_server_sdk.domain.errors import InvalidTransition
from arcade_server_sdk.domain.lifecycle import POOL_TRANSITIONS, Pool, PoolState
from arcade_server_sdk.services.heartbeat import (
    HeartbeatErrorHandler,
    HeartbeatFailure,
    HeartbeatTask,
    Sleep,
    log_heartbeat_failure,
)

_logger = logging.getLogger(__name__)


@dataclass
class PoolController:
    """State machine for one pool, owning at most one heartbeat task.

    ``pool_id`` of None addresses the single implicit pool of the game
    server and keeps request bodies in the legacy shape.
    """

    client: HypervisorClient
    pool_id: str | None = None
    heartbeat_interval_seconds: float = 10.0
    on_heartbeat_error: HeartbeatErrorHandler = log_heartbeat_failure
    sleep: Sleep = asyncio.sleep
    state: PoolState = field(default=PoolState.OPEN, init=False)
    _heartbeat: HeartbeatTask | None = field(default=None, init=False)

    @property
    def pool(self) -> Pool:
        return Pool(pool_id=self.pool_id, state=self.state)

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat is not None

    def start_heartbeat_loop(self) -> None:
        """Heartbeat now and then every interval until the pool closes."""
        if self.pool.is_terminal:
            raise InvalidTransition(self.pool_id, self.state, "heartbeat")
        if self._heartbeat is not None:
            _logger.debug("Pool heartbeat already running: pool_id=%s", self.pool_id)
            return
        self._heartbeat = HeartbeatTask(
            name=f"pool:{self.pool_id or 'default'}",
            beat=self.heartbeat,
            interval_seconds=self.heartbeat_interval_seconds,
            on_error=self._heartbeat_failed,
            immediate=True,
            sleep=self.sleep,
        )
        self._heartbeat.start()

    async def heartbeat(self) -> None:
        """Send one keep-alive for the pool."""
        await self.client.invoke("POST", "/api/pool/heartbeat", body=self._body())

    async def lock(self) -> None:
        """Stop new players joining; disconnecting players now lose."""
        self._check("lock")
        await self.client.invoke("POST", "/api/pool/lock", body=self._body())
        self.state = PoolState.LOCKED

    async def return_pool(self, reason: str) -> None:
        """Return the stakes when no winner can be determined."""
        self._check("return")
        await self.client.invoke(
            "POST", "/api/pool/return", body=self._body(reason=reason)
        )
        self._close(PoolState.RETURNED)

    async def settle(self, winning_token: str) -> None:
        """Award the pool to the winner.

        The hypervisor rejects this unless every other player was defeated.
        """
        self._check("settle")
        await self.client.invoke(
            "POST", "/api/pool/settle", body=self._body(), auth_token=winning_token
        )
        self._close(PoolState.SETTLED)

    def cancel_heartbeat(self) -> None:
        if self._heartbeat is not None:
            self._heartbeat.cancel()
            self._heartbeat = None

    def _check(self, operation: str) -> None:
        if self.state not in POOL_TRANSITIONS[operation]:
            raise InvalidTransition(self.pool_id, self.state, operation)

    def _close(self, state: PoolState) -> None:
        self.state = state
        self.cancel_heartbeat()
        _logger.info("Pool closed: pool_id=%s state=%s", self.pool_id, state)

    def _body(self, **fields: object) -> dict[str, object]:
        body: dict[str, object] = dict(fields)
        if self.pool_id is not None:
            body["pool_id"] = self.pool_id
        return body

    def _heartbeat_failed(self, exc: Exception) -> None:
        if self.pool.is_terminal:
            _logger.debug("Ignoring late pool heartbeat failure: %s", exc)
            return
        self.on_heartbeat_error(
            HeartbeatFailure(kind="pool", key=self.pool_id, error=exc)
        )
