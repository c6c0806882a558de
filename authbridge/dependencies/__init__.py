"""Expose dependency helpers for the CLI and embedding applications."""

from .clients import (
    build_token_cipher,
    build_token_store,
    get_credential_broker,
    get_token_store,
    reset_dependency_cache,
)

__all__ = [
    "build_token_cipher",
    "build_token_store",
    "get_credential_broker",
    "get_token_store",
    "reset_dependency_cache",
]
