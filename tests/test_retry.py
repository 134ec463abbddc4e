"""Tests for response classification and retry policies."""

import pytest

from arcade_server_sdk.services.retry import (
    LinearBackoff,
    Outcome,
    RetryPolicy,
    UnboundedPolling,
    classify,
)


def _backoff_schedule(policy: RetryPolicy, attempts: int) -> list[float]:
    delays: list[float] = []
    for attempt in range(1, attempts + 1):
        delay = policy.next_delay(Outcome.RETRYABLE, attempt)
        if delay is None:
            break
        delays.append(delay)
    return delays


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (200, Outcome.SUCCESS),
        (204, Outcome.SUCCESS),
        (299, Outcome.SUCCESS),
        (300, Outcome.FATAL),
        (404, Outcome.FATAL),
        (499, Outcome.FATAL),
        (500, Outcome.RETRYABLE),
        (503, Outcome.RETRYABLE),
        (None, Outcome.RETRYABLE),
    ],
)
def test_classify_status_codes(status_code: int | None, expected: Outcome) -> None:
    assert classify(status_code) is expected


def test_linear_backoff_schedule_between_five_attempts() -> None:
    delays = _backoff_schedule(LinearBackoff(), attempts=10)

    assert delays == pytest.approx([0.2, 0.4, 0.6, 0.8])


def test_linear_backoff_never_retries_client_errors() -> None:
    policy = LinearBackoff()

    assert policy.next_delay(Outcome.FATAL, 1) is None


def test_linear_backoff_respects_custom_budget() -> None:
    policy = LinearBackoff(max_attempts=2, base_delay_seconds=1.0)

    assert policy.next_delay(Outcome.RETRYABLE, 1) == 1.0
    assert policy.next_delay(Outcome.RETRYABLE, 2) is None


def test_unbounded_polling_retries_everything() -> None:
    policy = UnboundedPolling()

    assert policy.next_delay(Outcome.FATAL, 1) == 0.1
    assert policy.next_delay(Outcome.RETRYABLE, 1000) == 0.1
