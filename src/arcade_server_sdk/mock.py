"""Offline stand-in for environments without a hypervisor."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from arcade_server_sdk.domain.models import (
    ActivateSlipResponse,
    ScoreReport,
    ServerStatus,
)
from arcade_server_sdk.sdk import ServerSDK
from arcade_server_sdk.services.slips import validate_score_report

_logger = logging.getLogger(__name__)


@dataclass
class MockArcadeServerSDK(ServerSDK):
    """Answers every call immediately with canned data and no network activity."""

    calls: list[tuple[str, tuple[object, ...]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        _logger.info("Arcade server SDK running in mock mode")

    async def get_server_status(self) -> ServerStatus:
        self._record("get_server_status")
        return ServerStatus(random_seed="not-random")

    async def shutdown(self) -> None:
        self._record("shutdown")

    async def activate_slip(self, player_token: str) -> ActivateSlipResponse:
        self._record("activate_slip", player_token)
        return ActivateSlipResponse(display_name="Mock Player", player_id="p1")

    async def settle_slip(self, player_token: str) -> None:
        self._record("settle_slip", player_token)

    async def report_player_score(
        self, player_token: str, score_report: ScoreReport | Mapping[str, object]
    ) -> None:
        report = validate_score_report(score_report)
        self._record("report_player_score", player_token, report.score)

    async def player_defeated(
        self, defeated_player_token: str, winning_player_token: str
    ) -> None:
        self._record("player_defeated", defeated_player_token, winning_player_token)

    async def player_self_defeat(self, defeated_player_token: str) -> None:
        self._record("player_self_defeat", defeated_player_token)

    def start_pool_heartbeat_loop(self, pool_id: str | None = None) -> None:
        self._record("start_pool_heartbeat_loop", pool_id)

    async def lock_pool(self, pool_id: str | None = None) -> None:
        self._record("lock_pool", pool_id)

    async def return_pool(self, reason: str, pool_id: str | None = None) -> None:
        self._record("return_pool", reason, pool_id)

    async def settle_pool(
        self, winning_player_token: str, pool_id: str | None = None
    ) -> None:
        self._record("settle_pool", winning_player_token, pool_id)

    async def close(self) -> None:
        self._record("close")

    def _record(self, operation: str, *args: object) -> None:
        self.calls.append((operation, args))
