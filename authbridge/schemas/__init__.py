"""Public schema exports."""

from .auth import (
    AuthEnvelope,
    AuthPayload,
    Credential,
    PlatformTokenResponse,
    SessionInfo,
    User,
)

__all__ = [
    "AuthEnvelope",
    "AuthPayload",
    "Credential",
    "PlatformTokenResponse",
    "SessionInfo",
    "User",
]
