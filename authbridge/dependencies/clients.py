"""
Factory functions providing shared stores and the broker to callers.
"""

from functools import lru_cache

from authbridge.clients import InMemoryTokenStore, SQLiteTokenStore, TokenStore
from authbridge.core.config import BrokerSettings, get_settings
from authbridge.services import CredentialBroker, TokenCipherService


def build_token_cipher(settings: BrokerSettings) -> TokenCipherService | None:
    if not settings.token_encryption_secret:
        return None
    return TokenCipherService(
        secret=settings.token_encryption_secret,
        previous_secrets=settings.token_encryption_previous_secrets,
    )


def build_token_store(settings: BrokerSettings) -> TokenStore:
    """In-memory store unless a database path is configured."""
    if not settings.token_db_path:
        return InMemoryTokenStore()
    return SQLiteTokenStore(settings.token_db_path, cipher=build_token_cipher(settings))


@lru_cache()
def _settings() -> BrokerSettings:
    """Internal helper to cache settings for factories."""
    return get_settings()


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the session token store selected by configuration."""
    return build_token_store(_settings())


@lru_cache()
def get_credential_broker() -> CredentialBroker:
    """Create a singleton broker bound to the configured auth server."""
    return CredentialBroker.from_settings(_settings(), token_store=get_token_store())


def reset_dependency_cache() -> None:
    """Forget cached settings and singletons, e.g. after the environment changed."""
    get_credential_broker.cache_clear()
    get_token_store.cache_clear()
    _settings.cache_clear()
    get_settings.cache_clear()


__all__ = [
    "build_token_cipher",
    "build_token_store",
    "get_credential_broker",
    "get_token_store",
    "reset_dependency_cache",
]
