"""Errors raised by the SDK."""


class HypervisorError(Exception):
    """Base class for all SDK errors."""


class ClientRejected(HypervisorError):
    """The hypervisor refused the request with a 3xx/4xx status."""

    def __init__(self, status: int, reason: str) -> None:
        super().__init__(f"server returned {status} - {reason}")
        self.status = status
        self.reason = reason


class RetriesExhausted(HypervisorError):
    """Retryable failures persisted past the attempt budget."""

    def __init__(self, last_status: int | None, attempts: int) -> None:
        status_text = "network error" if last_status is None else str(last_status)
        super().__init__(f"gave up after {attempts} attempts (last: {status_text})")
        self.last_status = last_status
        self.attempts = attempts


class TransportUnavailable(HypervisorError):
    """The hypervisor endpoint cannot be used at all."""


class InvalidScoreReport(HypervisorError, ValueError):
    """A score report violated the integer contract."""


class InvalidTransition(HypervisorError):
    """A pool operation is not allowed from the pool's current state."""

    def __init__(self, pool_id: str | None, state: str, operation: str) -> None:
        label = pool_id or "default"
        super().__init__(f"pool {label} cannot {operation} while {state}")
        self.pool_id = pool_id
        self.state = state
        self.operation = operation


class InvalidPayload(HypervisorError):
    """A successful response carried a body that could not be understood."""
