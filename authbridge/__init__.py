"""Credential broker bridging Better Auth sessions to platform tokens."""

from authbridge.core.errors import (
    AuthBridgeError,
    CachedLoginDisabled,
    CapabilityUnavailable,
    DecodeError,
    InvalidEndpoint,
    InvalidResponse,
    MissingToken,
    TransportError,
)
from authbridge.schemas.auth import Credential, User
from authbridge.services.broker import CredentialBroker
from authbridge.utils.urls import normalize_auth_endpoint

__all__ = [
    "AuthBridgeError",
    "CachedLoginDisabled",
    "CapabilityUnavailable",
    "Credential",
    "CredentialBroker",
    "DecodeError",
    "InvalidEndpoint",
    "InvalidResponse",
    "MissingToken",
    "TransportError",
    "User",
    "normalize_auth_endpoint",
]
