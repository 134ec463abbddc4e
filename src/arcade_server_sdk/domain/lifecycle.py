"""Lifecycle records for slips and pools."""

from dataclasses import dataclass
from enum import StrEnum

from arcade_server_sdk.domain.models import ActivateSlipResponse


class SlipState(StrEnum):
    """Lifecycle states of a player slip."""

    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"
    DEFEATED_BY_OPPONENT = "DEFEATED_BY_OPPONENT"
    SELF_DEFEATED = "SELF_DEFEATED"


class PoolState(StrEnum):
    """Lifecycle states of a stake pool."""

    OPEN = "OPEN"
    LOCKED = "LOCKED"
    SETTLED = "SETTLED"
    RETURNED = "RETURNED"


TERMINAL_POOL_STATES = frozenset({PoolState.SETTLED, PoolState.RETURNED})

# operation -> states it may be issued from
POOL_TRANSITIONS: dict[str, frozenset[PoolState]] = {
    "lock": frozenset({PoolState.OPEN}),
    "return": frozenset({PoolState.OPEN, PoolState.LOCKED}),
    "settle": frozenset({PoolState.OPEN, PoolState.LOCKED}),
}


@dataclass(frozen=True)
class Slip:
    """Local view of one player's slip."""

    token: str
    state: SlipState
    activation: ActivateSlipResponse | None = None


@dataclass(frozen=True)
class Pool:
    """Local view of a stake pool."""

    pool_id: str | None
    state: PoolState

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_POOL_STATES
