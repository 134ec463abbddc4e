"""Tests for SDK wiring."""

import asyncio

from arcade_server_sdk.adapters.hypervisor_client import HttpxHypervisorClient
from arcade_server_sdk.config import Settings
from arcade_server_sdk.containers import build_sdk
from arcade_server_sdk.mock import MockArcadeServerSDK
from arcade_server_sdk.sdk import ArcadeServerSDK
from arcade_server_sdk.services.retry import LinearBackoff, UnboundedPolling


def test_build_sdk_creates_http_sdk(settings: Settings) -> None:
    sdk = build_sdk(settings)

    assert isinstance(sdk, ArcadeServerSDK)
    assert isinstance(sdk.client, HttpxHypervisorClient)
    assert sdk.client.base_url == "http://hypervisor.test:8083"
    assert sdk.client.retry_policy == LinearBackoff(
        max_attempts=5, base_delay_seconds=0.2
    )
    assert sdk.status_policy == UnboundedPolling(interval_seconds=0.1)
    assert sdk.slips.heartbeat_interval_seconds == 10.0
    asyncio.run(sdk.close())


def test_build_sdk_selects_mock(settings: Settings) -> None:
    sdk = build_sdk(settings.model_copy(update={"mock": True}))

    assert isinstance(sdk, MockArcadeServerSDK)
