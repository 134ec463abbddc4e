"""Player slip lifecycle and per-slip heartbeats."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from pydantic import ValidationError

from arcade_server_sdk.adapters.hypervisor_client import HypervisorClient
from arcade_server_sdk.domain.errors import InvalidScoreReport, TransportUnavailable
from arcade_server_sdk.domain.lifecycle import Slip, SlipState
from arcade_server_sdk.domain.models import (
    ActivateSlipResponse,
    ScoreReport,
    parse_payload,
)
from arcade_server_sdk.services.heartbeat import (
    HeartbeatErrorHandler,
    HeartbeatFailure,
    HeartbeatTask,
    Sleep,
    log_heartbeat_failure,
)

_logger = logging.getLogger(__name__)


@dataclass
class SlipRegistry:
    """
    Tracks player slips and owns one heartbeat task per active token.

    Local state only changes after the hypervisor confirmed the call, and a
    heartbeat task exists exactly while a slip is ACTIVE. Once closed the
    recorded states are kept for inspection but no slip is heartbeated.
    """

    client: HypervisorClient
    heartbeat_interval_seconds: float = 10.0
    on_heartbeat_error: HeartbeatErrorHandler = log_heartbeat_failure
    sleep: Sleep = asyncio.sleep
    _slips: dict[str, Slip] = field(default_factory=dict, init=False)
    _heartbeats: dict[str, HeartbeatTask] = field(default_factory=dict, init=False)
    _closed: bool = field(default=False, init=False)

    async def activate(self, token: str) -> ActivateSlipResponse:
        """Activate a slip and start heartbeating it."""
        if self._closed:
            raise TransportUnavailable("slip registry is closed")
        payload = await self.client.invoke(
            "POST", "/api/player/activate", auth_token=token
        )
        activation = parse_payload(ActivateSlipResponse, payload)
        self._slips[token] = Slip(
            token=token, state=SlipState.ACTIVE, activation=activation
        )
        self._install_heartbeat(token)
        _logger.debug("Slip activated: player_id=%s", activation.player_id)
        return activation

    async def heartbeat(self, token: str) -> None:
        """Send one keep-alive for a slip."""
        await self.client.invoke("POST", "/api/player/heartbeat", auth_token=token)

    async def settle(self, token: str) -> None:
        """Settle a slip without a defeat, e.g. a player cashing out."""
        await self.client.invoke("POST", "/api/player/settle", auth_token=token)
        self._finish(token, SlipState.SETTLED)

    async def mark_defeated_by(self, token: str, winner_token: str) -> None:
        """Close a slip as lost against another player."""
        await self.client.invoke(
            "POST",
            "/api/player/defeat",
            body={"winner_token": winner_token},
            auth_token=token,
        )
        self._finish(token, SlipState.DEFEATED_BY_OPPONENT)

    async def mark_self_defeated(self, token: str) -> None:
        """Close a slip as lost against the environment."""
        await self.client.invoke("POST", "/api/player/self-defeat", auth_token=token)
        self._finish(token, SlipState.SELF_DEFEATED)

    async def report_score(
        self, token: str, score_report: ScoreReport | Mapping[str, object]
    ) -> None:
        """Report a leaderboard score; the slip state is left untouched."""
        report = validate_score_report(score_report)
        await self.client.invoke(
            "POST",
            "/api/player/report-score",
            body=report.model_dump(),
            auth_token=token,
        )

    def get(self, token: str) -> Slip | None:
        return self._slips.get(token)

    def state(self, token: str) -> SlipState:
        slip = self._slips.get(token)
        return slip.state if slip else SlipState.INACTIVE

    def is_active(self, token: str) -> bool:
        return self.state(token) is SlipState.ACTIVE

    def active_tokens(self) -> list[str]:
        return [
            token for token, slip in self._slips.items() if slip.state is SlipState.ACTIVE
        ]

    def has_heartbeat(self, token: str) -> bool:
        return token in self._heartbeats

    def cancel_all(self) -> None:
        """Cancel every heartbeat task; slip states are kept."""
        for token in list(self._heartbeats):
            self._cancel_heartbeat(token)

    def close(self) -> None:
        """Stop all heartbeats for good and refuse further activations."""
        self._closed = True
        self.cancel_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def _install_heartbeat(self, token: str) -> None:
        self._cancel_heartbeat(token)
        task = HeartbeatTask(
            name=f"slip:{_short(token)}",
            beat=lambda: self.heartbeat(token),
            interval_seconds=self.heartbeat_interval_seconds,
            on_error=lambda exc: self._heartbeat_failed(token, task, exc),
            sleep=self.sleep,
        )
        self._heartbeats[token] = task
        task.start()

    def _cancel_heartbeat(self, token: str) -> None:
        task = self._heartbeats.pop(token, None)
        if task is not None:
            task.cancel()

    def _finish(self, token: str, state: SlipState) -> None:
        previous = self._slips.get(token)
        self._slips[token] = Slip(
            token=token,
            state=state,
            activation=previous.activation if previous else None,
        )
        self._cancel_heartbeat(token)
        _logger.debug("Slip %s closed as %s", _short(token), state)

    def _heartbeat_failed(
        self, token: str, task: HeartbeatTask, exc: Exception
    ) -> None:
        # a replaced or cancelled task may still finish a beat
        if self._heartbeats.get(token) is not task:
            _logger.debug("Ignoring late heartbeat failure for %s: %s", _short(token), exc)
            return
        self.on_heartbeat_error(HeartbeatFailure(kind="slip", key=token, error=exc))


def validate_score_report(
    score_report: ScoreReport | Mapping[str, object],
) -> ScoreReport:
    """Coerce a score report, rejecting anything but an integer score."""
    if isinstance(score_report, ScoreReport):
        return score_report
    try:
        return ScoreReport.model_validate(dict(score_report))
    except ValidationError as exc:
        raise InvalidScoreReport(f"score must be an integer: {score_report!r}") from exc


def _short(token: str) -> str:
    """Abbreviate a bearer token for log output."""
    return f"{token[:6]}..." if len(token) > 6 else token  # noqa: PLR2004
