"""Payload models exchanged with the hypervisor."""

from typing import TypeVar

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

from arcade_server_sdk.domain.errors import InvalidPayload

_Model = TypeVar("_Model", bound=BaseModel)


class ServerStatus(BaseModel):
    """Snapshot of the game server assignment."""

    model_config = ConfigDict(extra="ignore")

    random_seed: str


class ActivateSlipResponse(BaseModel):
    """Player details returned when a slip is activated."""

    model_config = ConfigDict(extra="ignore")

    display_name: str
    player_id: str | None = None


class ScoreReport(BaseModel):
    """Final score for a leaderboard slip. The score MUST be an integer."""

    score: StrictInt


def parse_payload(model: type[_Model], payload: object) -> _Model:
    """Validate a hypervisor response body against its model."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidPayload(
            f"unexpected {model.__name__} payload: {payload!r}"
        ) from exc
