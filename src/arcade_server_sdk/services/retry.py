"""Response classification and retry policies for hypervisor calls."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class Outcome(StrEnum):
    """Classification of a single request attempt."""

    SUCCESS = "SUCCESS"
    RETRYABLE = "RETRYABLE"
    FATAL = "FATAL"


def classify(status_code: int | None) -> Outcome:
    """Classify an HTTP status; ``None`` means the request never got a response."""
    if status_code is None:
        return Outcome.RETRYABLE
    if 200 <= status_code <= 299:  # noqa: PLR2004
        return Outcome.SUCCESS
    if 300 <= status_code <= 499:  # noqa: PLR2004
        return Outcome.FATAL
    return Outcome.RETRYABLE


class RetryPolicy(Protocol):
    """Decides whether and when a failed attempt is retried."""

    def next_delay(self, outcome: Outcome, attempt: int) -> float | None:
        """Return seconds to wait before the next attempt, or None to stop."""


@dataclass(frozen=True)
class LinearBackoff(RetryPolicy):
    """Bounded retries waiting ``base_delay_seconds * attempt`` between tries.

    Client errors are never retried. Used for every call with side effects.
    """

    max_attempts: int = 5
    base_delay_seconds: float = 0.2

    def next_delay(self, outcome: Outcome, attempt: int) -> float | None:
        if outcome is not Outcome.RETRYABLE or attempt >= self.max_attempts:
            return None
        return self.base_delay_seconds * attempt


@dataclass(frozen=True)
class UnboundedPolling(RetryPolicy):
    """Retry any failure forever at a fixed interval.

    Only safe for idempotent reads such as the server status probe, which may
    fail for a long time until the hypervisor assigns a game session.
    """

    interval_seconds: float = 0.1

    def next_delay(self, outcome: Outcome, attempt: int) -> float | None:
        return self.interval_seconds
