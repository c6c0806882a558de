"""Session token storage: the store contract plus in-memory and SQLite stores."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Protocol, runtime_checkable

from authbridge.models.session import StoredSessionToken
from authbridge.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenStore(Protocol):
    """Persists a single opaque session token. Each call must be atomic."""

    def store_token(self, token: str) -> None:
        ...

    def retrieve_token(self) -> Optional[str]:
        ...

    def delete_token(self) -> None:
        ...


class InMemoryTokenStore:
    """Process-local token store, lost when the process exits."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token
        self._lock = threading.Lock()

    def store_token(self, token: str) -> None:
        with self._lock:
            self._token = token

    def retrieve_token(self) -> Optional[str]:
        with self._lock:
            return self._token

    def delete_token(self) -> None:
        with self._lock:
            self._token = None


class SQLiteTokenStore:
    """Keep the session token in a single-row SQLite table, optionally encrypted."""

    _SLOT = "default"

    def __init__(self, db_path: str, *, cipher: Optional[TokenCipherService] = None) -> None:
        self._db_path = Path(db_path)
        self._cipher = cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with closing(sqlite3.connect(self._db_path, check_same_thread=False)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS session_tokens (
                    slot TEXT PRIMARY KEY,
                    token TEXT NOT NULL,
                    encrypted INTEGER NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def _write(self, record: StoredSessionToken) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO session_tokens (slot, token, encrypted, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(slot) DO UPDATE SET
                    token = excluded.token,
                    encrypted = excluded.encrypted,
                    updated_at = excluded.updated_at
                """,
                (
                    record.slot,
                    record.token,
                    int(record.encrypted),
                    record.updated_at.isoformat(),
                ),
            )

    def _seal(self, token: str) -> StoredSessionToken:
        if self._cipher is None:
            return StoredSessionToken(slot=self._SLOT, token=token)
        return StoredSessionToken(
            slot=self._SLOT, token=self._cipher.encrypt(token), encrypted=True
        )

    def store_token(self, token: str) -> None:
        if not token:
            raise ValueError("Refusing to store an empty session token.")
        self._write(self._seal(token))

    def retrieve_token(self) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT slot, token, encrypted, updated_at FROM session_tokens WHERE slot = ?",
                (self._SLOT,),
            ).fetchone()
        if not row:
            return None

        record = StoredSessionToken(
            slot=row["slot"],
            token=row["token"],
            encrypted=bool(row["encrypted"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
        if not record.encrypted:
            if self._cipher is not None:
                # Plaintext row from before encryption was enabled.
                logger.info("Encrypting previously plaintext session token")
                self._write(self._seal(record.token))
            return record.token

        if self._cipher is None:
            raise ValueError(
                "Stored session token is encrypted but no encryption secret is configured."
            )
        token = self._cipher.decrypt(record.token)
        if self._cipher.needs_rotation(record.token):
            logger.info("Re-encrypting session token under the current key")
            self._write(self._seal(token))
        return token

    def delete_token(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM session_tokens WHERE slot = ?", (self._SLOT,))

    def last_updated(self) -> Optional[datetime]:
        """Return when the stored token was last written, if any."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT updated_at FROM session_tokens WHERE slot = ?",
                (self._SLOT,),
            ).fetchone()
        if not row:
            return None
        updated_at = datetime.fromisoformat(row["updated_at"])
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return updated_at


__all__ = ["InMemoryTokenStore", "SQLiteTokenStore", "TokenStore"]
