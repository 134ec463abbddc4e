"""Public SDK used by game servers to talk to the hypervisor."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import TracebackType
from typing import Protocol

from arcade_server_sdk.adapters.hypervisor_client import HypervisorClient
from arcade_server_sdk.domain.models import (
    ActivateSlipResponse,
    ScoreReport,
    ServerStatus,
    parse_payload,
)
from arcade_server_sdk.services.heartbeat import (
    HeartbeatErrorHandler,
    Sleep,
    log_heartbeat_failure,
)
from arcade_server_sdk.services.pools import PoolController
from arcade_server_sdk.services.retry import RetryPolicy, UnboundedPolling
from arcade_server_sdk.services.slips import SlipRegistry

_logger = logging.getLogger(__name__)


class ServerSDK(Protocol):
    """Operations a game server performs against the hypervisor."""

    async def get_server_status(self) -> ServerStatus:
        """Wait until the server is assigned a game and return its status."""

    async def shutdown(self) -> None:
        """Ask the hypervisor to terminate this game server shortly."""

    async def activate_slip(self, player_token: str) -> ActivateSlipResponse:
        """Activate the slip of a connecting player."""

    async def settle_slip(self, player_token: str) -> None:
        """Settle a slip without a defeat, e.g. a cash-out."""

    async def report_player_score(
        self, player_token: str, score_report: ScoreReport | Mapping[str, object]
    ) -> None:
        """Report a leaderboard score for the player."""

    async def player_defeated(
        self, defeated_player_token: str, winning_player_token: str
    ) -> None:
        """Close a slip as lost against another player."""

    async def player_self_defeat(self, defeated_player_token: str) -> None:
        """Close a slip as lost against the environment."""

    def start_pool_heartbeat_loop(self, pool_id: str | None = None) -> None:
        """Heartbeat the pool now and periodically until it closes."""

    async def lock_pool(self, pool_id: str | None = None) -> None:
        """Lock the pool so that no more players can join."""

    async def return_pool(self, reason: str, pool_id: str | None = None) -> None:
        """Return the pool when no winner can be determined."""

    async def settle_pool(
        self, winning_player_token: str, pool_id: str | None = None
    ) -> None:
        """Award the pool to the winning player."""

    async def close(self) -> None:
        """Stop all heartbeats and release resources.

        Recorded slip and pool states survive for inspection, but no further
        heartbeats are sent and new activations are refused.
        """


@dataclass
class ArcadeServerSDK(ServerSDK):
    """Hypervisor-backed SDK composing the slip registry and pool controllers."""

    client: HypervisorClient
    slips: SlipRegistry
    status_policy: RetryPolicy = field(default_factory=UnboundedPolling)
    _pools: dict[str | None, PoolController] = field(default_factory=dict, init=False)

    @classmethod
    def create(
        cls,
        client: HypervisorClient,
        *,
        heartbeat_interval_seconds: float = 10.0,
        status_policy: RetryPolicy | None = None,
        on_heartbeat_error: HeartbeatErrorHandler = log_heartbeat_failure,
        sleep: Sleep = asyncio.sleep,
    ) -> "ArcadeServerSDK":
        """Create an SDK whose heartbeats share one interval and error handler."""
        _logger.debug("starting arcade server sdk")
        slips = SlipRegistry(
            client=client,
            heartbeat_interval_seconds=heartbeat_interval_seconds,
            on_heartbeat_error=on_heartbeat_error,
            sleep=sleep,
        )
        return cls(
            client=client,
            slips=slips,
            status_policy=status_policy or UnboundedPolling(),
        )

    def pool(self, pool_id: str | None = None) -> PoolController:
        """Return the controller for a pool, creating it on first use."""
        controller = self._pools.get(pool_id)
        if controller is None:
            controller = PoolController(
                client=self.client,
                pool_id=pool_id,
                heartbeat_interval_seconds=self.slips.heartbeat_interval_seconds,
                on_heartbeat_error=self.slips.on_heartbeat_error,
                sleep=self.slips.sleep,
            )
            self._pools[pool_id] = controller
        return controller

    async def get_server_status(self) -> ServerStatus:
        # servers can be spun up long before the hypervisor assigns them a game
        payload = await self.client.invoke(
            "GET", "/api/server", policy=self.status_policy
        )
        return parse_payload(ServerStatus, payload)

    async def shutdown(self) -> None:
        await self.client.invoke("POST", "/api/server/shutdown")

    async def activate_slip(self, player_token: str) -> ActivateSlipResponse:
        return await self.slips.activate(player_token)

    async def settle_slip(self, player_token: str) -> None:
        await self.slips.settle(player_token)

    async def report_player_score(
        self, player_token: str, score_report: ScoreReport | Mapping[str, object]
    ) -> None:
        await self.slips.report_score(player_token, score_report)

    async def player_defeated(
        self, defeated_player_token: str, winning_player_token: str
    ) -> None:
        await self.slips.mark_defeated_by(defeated_player_token, winning_player_token)

    async def player_self_defeat(self, defeated_player_token: str) -> None:
        await self.slips.mark_self_defeated(defeated_player_token)

    def start_pool_heartbeat_loop(self, pool_id: str | None = None) -> None:
        self.pool(pool_id).start_heartbeat_loop()

    async def lock_pool(self, pool_id: str | None = None) -> None:
        await self.pool(pool_id).lock()

    async def return_pool(self, reason: str, pool_id: str | None = None) -> None:
        await self.pool(pool_id).return_pool(reason)

    async def settle_pool(
        self, winning_player_token: str, pool_id: str | None = None
    ) -> None:
        await self.pool(pool_id).settle(winning_player_token)

    async def close(self) -> None:
        self.slips.close()
        for controller in self._pools.values():
            controller.cancel_heartbeat()
        await self.client.close()

    async def __aenter__(self) -> "ArcadeServerSDK":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
