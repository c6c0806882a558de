"""Expose constructed client wrappers."""

from .better_auth import BetterAuthClient
from .sign_in import EmailPasswordSignIn, IdTokenSignIn, SignInMechanism
from .token_exchange import TokenExchanger
from .token_store import InMemoryTokenStore, SQLiteTokenStore, TokenStore

__all__ = [
    "BetterAuthClient",
    "EmailPasswordSignIn",
    "IdTokenSignIn",
    "InMemoryTokenStore",
    "SQLiteTokenStore",
    "SignInMechanism",
    "TokenExchanger",
    "TokenStore",
]
