"""Service layer exports."""

from .broker import CredentialBroker
from .platform_adapter import PlatformAuthAdapter, PlatformAuthTarget
from .token_cipher import TokenCipherService

__all__ = [
    "CredentialBroker",
    "PlatformAuthAdapter",
    "PlatformAuthTarget",
    "TokenCipherService",
]
