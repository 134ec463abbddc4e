"""Hypervisor HTTP client."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from arcade_server_sdk.domain.errors import (
    ClientRejected,
    InvalidPayload,
    RetriesExhausted,
    TransportUnavailable,
)
from arcade_server_sdk.services.heartbeat import Sleep
from arcade_server_sdk.services.retry import (
    LinearBackoff,
    Outcome,
    RetryPolicy,
    classify,
)

_logger = logging.getLogger(__name__)


class HypervisorClient(Protocol):
    """Interface for one logical call against the hypervisor API."""

    async def invoke(
        self,
        method: str,
        path: str,
        body: dict[str, object] | None = None,
        auth_token: str | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> object:
        """Perform the call and return the decoded payload, if any."""

    async def close(self) -> None:
        """Release any network resources."""


@dataclass
class HttpxHypervisorClient(HypervisorClient):
    """HTTPX-backed hypervisor client applying a retry policy per call."""

    base_url: str
    http_client: httpx.AsyncClient
    retry_policy: RetryPolicy = field(default_factory=LinearBackoff)
    timeout: float = 10.0
    sleep: Sleep = asyncio.sleep

    @classmethod
    def create(
        cls,
        base_url: str,
        retry_policy: RetryPolicy | None = None,
        timeout: float = 10.0,
    ) -> "HttpxHypervisorClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=_validate_base_url(base_url),
            http_client=httpx.AsyncClient(),
            retry_policy=retry_policy or LinearBackoff(),
            timeout=timeout,
        )

    async def invoke(
        self,
        method: str,
        path: str,
        body: dict[str, object] | None = None,
        auth_token: str | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> object:
        """Call the hypervisor, retrying according to the policy."""
        if self.http_client.is_closed:
            raise TransportUnavailable("HTTP session is closed")
        active_policy = policy or self.retry_policy
        url = f"{self.base_url.rstrip('/')}{path}"
        headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else None
        attempt = 0
        while True:
            attempt += 1
            response: httpx.Response | None = None
            try:
                response = await self.http_client.request(
                    method, url, json=body, headers=headers, timeout=self.timeout
                )
            except httpx.RequestError as exc:
                # covers connection failures and bodies that fail to decode
                _logger.debug("%s %s attempt %s failed: %s", method, path, attempt, exc)
            status_code = response.status_code if response is not None else None
            outcome = classify(status_code)
            _logger.debug(
                "%s %s attempt %s: status=%s outcome=%s",
                method,
                path,
                attempt,
                status_code,
                outcome,
            )
            if outcome is Outcome.SUCCESS and response is not None:
                return _decode_payload(response)

            delay = active_policy.next_delay(outcome, attempt)
            if delay is None:
                if outcome is Outcome.FATAL and response is not None:
                    raise ClientRejected(response.status_code, _reason(response))
                raise RetriesExhausted(status_code, attempt)
            _logger.warning(
                "%s %s failed (attempt %s, status=%s), retrying in %.1fs",
                method,
                path,
                attempt,
                status_code if status_code is not None else "n/a",
                delay,
            )
            await self.sleep(delay)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _validate_base_url(base_url: str) -> str:
    """Reject endpoints that can never be reached."""
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise TransportUnavailable(f"invalid hypervisor address: {base_url!r}") from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise TransportUnavailable(f"invalid hypervisor address: {base_url!r}")
    return base_url


def _reason(response: httpx.Response) -> str:
    """Build a reason string from the status line and any response text."""
    text = response.text.strip()
    if text:
        return f"{response.reason_phrase}: {text}" if response.reason_phrase else text
    return response.reason_phrase


def _decode_payload(response: httpx.Response) -> object:
    """Return the JSON body, or None for empty and non-JSON responses."""
    if not response.content:
        return None
    if "json" not in response.headers.get("content-type", ""):
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise InvalidPayload(
            f"malformed JSON from {response.request.url.path}"
        ) from exc
