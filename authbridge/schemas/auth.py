"""Schemas for auth server payloads and the credential handed to callers."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class User(BaseModel):
    """User profile hydrated from a session response."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Identifier assigned by the identity provider.")
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: Optional[bool] = Field(None, alias="emailVerified")


class SessionInfo(BaseModel):
    """Session details issued by the identity provider."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    token: str = Field(..., min_length=1)
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")


class AuthPayload(BaseModel):
    """The ``data`` member of an auth envelope."""

    session: SessionInfo
    user: Optional[User] = None


class AuthEnvelope(BaseModel):
    """Response envelope returned by sign-in and get-session calls."""

    success: bool = True
    data: Optional[AuthPayload] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_bare_payloads(cls, value: Any) -> Any:
        """
        Accept bare ``{session, user}`` and ``{token, user}`` bodies as ``data``.

        A ``data`` member without a usable session (no session, or a blank
        token) is treated as absent.
        """
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        if "data" not in value:
            if "session" in value:
                value = {"data": value}
            elif "token" in value:
                value = {
                    "data": {
                        "session": {"token": value["token"]},
                        "user": value.get("user"),
                    }
                }
            else:
                return value
        if not _has_usable_session(value["data"]):
            return {**value, "data": None}
        return value


def _has_usable_session(data: Any) -> bool:
    if not isinstance(data, dict):
        # Left to field validation.
        return data is not None
    session = data.get("session")
    if session is None:
        return False
    if isinstance(session, dict) and session.get("token") in (None, ""):
        return False
    return True


class PlatformTokenResponse(BaseModel):
    """Body returned by the platform token exchange endpoint."""

    token: str = Field(..., min_length=1)


class Credential(BaseModel):
    """Unified result of every credential-producing broker operation."""

    model_config = ConfigDict(frozen=True)

    platform_token: str = Field(..., description="Bearer token for platform calls.")
    user: Optional[User] = None
    expires_at: Optional[datetime] = None


__all__ = [
    "AuthEnvelope",
    "AuthPayload",
    "Credential",
    "PlatformTokenResponse",
    "SessionInfo",
    "User",
]
