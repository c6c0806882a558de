"""Symmetric encryption for session tokens kept at rest."""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _derive_fernet(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """
    Encrypt session tokens with a key derived from the configured secret.

    Ciphertexts written under a retired secret stay readable while that secret is
    listed in ``previous_secrets``; ``needs_rotation`` tells the store when to
    rewrite them under the current key.
    """

    def __init__(self, *, secret: str, previous_secrets: Iterable[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        self._current = _derive_fernet(secret)
        self._fernet = MultiFernet(
            [self._current, *(_derive_fernet(old) for old in previous_secrets if old)]
        )

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt session token; the encryption secret may have changed."
            ) from exc
        return plaintext.decode("utf-8")

    def needs_rotation(self, ciphertext: str) -> bool:
        """Return True when ``ciphertext`` was not produced with the current key."""
        try:
            self._current.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken:
            return True
        return False


__all__ = ["TokenCipherService"]
