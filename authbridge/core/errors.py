"""Error taxonomy shared by the auth client, token exchanger and broker."""

from __future__ import annotations


class AuthBridgeError(Exception):
    """Base class for every failure surfaced by the broker."""


class InvalidEndpoint(AuthBridgeError):
    """Raised when a base URL cannot be parsed into an auth endpoint."""


class CapabilityUnavailable(AuthBridgeError):
    """Raised when interactive sign-in is not supported on this runtime."""


class MissingToken(AuthBridgeError):
    """Raised when no session token is present where one is required."""


class CachedLoginDisabled(AuthBridgeError):
    """Raised when a cached login is attempted on a broker that disallows it."""


class InvalidResponse(AuthBridgeError):
    """Raised when the auth server answers with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Auth server responded with HTTP {status}.")
        self.status = status
        self.body = body


class DecodeError(AuthBridgeError):
    """Raised when a successful response body cannot be decoded."""


class TransportError(AuthBridgeError):
    """Raised when a request fails before a response is received."""


__all__ = [
    "AuthBridgeError",
    "CachedLoginDisabled",
    "CapabilityUnavailable",
    "DecodeError",
    "InvalidEndpoint",
    "InvalidResponse",
    "MissingToken",
    "TransportError",
]
