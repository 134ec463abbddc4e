"""Dependency wiring for the SDK."""

from arcade_server_sdk.adapters.hypervisor_client import HttpxHypervisorClient
from arcade_server_sdk.app_logging import configure_logging
from arcade_server_sdk.config import Settings
from arcade_server_sdk.mock import MockArcadeServerSDK
from arcade_server_sdk.sdk import ArcadeServerSDK, ServerSDK
from arcade_server_sdk.services.heartbeat import (
    HeartbeatErrorHandler,
    log_heartbeat_failure,
)
from arcade_server_sdk.services.retry import LinearBackoff, UnboundedPolling


def build_sdk(
    settings: Settings | None = None,
    *,
    on_heartbeat_error: HeartbeatErrorHandler = log_heartbeat_failure,
) -> ServerSDK:
    """Create the SDK selected by the settings."""
    resolved_settings = settings or Settings()
    configure_logging(debug=resolved_settings.debug)
    if resolved_settings.mock:
        return MockArcadeServerSDK()

    client = HttpxHypervisorClient.create(
        base_url=resolved_settings.hypervisor_addr,
        retry_policy=LinearBackoff(
            max_attempts=resolved_settings.retry_max_attempts,
            base_delay_seconds=resolved_settings.retry_base_delay_seconds,
        ),
        timeout=resolved_settings.request_timeout_seconds,
    )
    return ArcadeServerSDK.create(
        client,
        heartbeat_interval_seconds=resolved_settings.heartbeat_interval_seconds,
        status_policy=UnboundedPolling(
            interval_seconds=resolved_settings.status_poll_interval_seconds
        ),
        on_heartbeat_error=on_heartbeat_error,
    )
