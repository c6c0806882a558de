"""
Broker configuration models and helpers.

Centralizes settings management so the broker factories and the operator CLI
share a consistent configuration surface.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class BrokerSettings(BaseSettings):
    """Root settings object for the credential broker."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(
        ...,
        validation_alias="AUTH_BASE_URL",
        description="Auth server or deployment root; /api/auth is appended when absent.",
    )
    enable_cached_logins: bool = Field(
        True,
        validation_alias="AUTH_ENABLE_CACHED_LOGINS",
    )
    hydrate_after_sign_in: bool = Field(
        False,
        validation_alias="AUTH_HYDRATE_AFTER_SIGN_IN",
        description="Refresh user data with a get-session call after interactive sign-in.",
    )
    http_timeout_seconds: float = Field(
        10.0,
        validation_alias="AUTH_HTTP_TIMEOUT",
    )
    token_db_path: Optional[str] = Field(
        None,
        validation_alias="AUTH_TOKEN_DB_PATH",
        description="SQLite file for the session token. In-memory storage when omitted.",
    )
    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    token_encryption_previous_secrets: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Retired secrets still accepted for decryption during key rotation.",
    )
    log_level: str = Field(
        "INFO",
        validation_alias="APP_LOG_LEVEL",
    )

    @field_validator("token_encryption_previous_secrets", mode="before")
    @classmethod
    def _split_secrets(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing retired secrets as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(secret.strip() for secret in value.split(",") if secret.strip())

    @field_validator("http_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("HTTP timeout must be a positive number of seconds.")
        return value


@lru_cache()
def get_settings() -> BrokerSettings:
    """Return a cached settings object."""
    return BrokerSettings()  # type: ignore[call-arg]


__all__ = ["BrokerSettings", "get_settings"]
