"""SDK configuration."""

import os

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """SDK settings loaded from environment variables."""

    hypervisor_addr: str = Field(
        default="http://localhost:8083",
        validation_alias=AliasChoices("UAHV_ADDR", "ARCADE_HYPERVISOR_ADDR"),
    )
    debug: bool = False
    mock: bool = False
    heartbeat_interval_seconds: float = Field(default=10.0, gt=0)
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_base_delay_seconds: float = Field(default=0.2, ge=0)
    status_poll_interval_seconds: float = Field(default=0.1, ge=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    environment: str = Field(
        default=_ENVIRONMENT, validation_alias=AliasChoices("ENVIRONMENT")
    )

    model_config = SettingsConfigDict(
        env_prefix="ARCADE_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
        populate_by_name=True,
    )
