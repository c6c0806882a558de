"""
Domain models for session token persistence.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredSessionToken(BaseModel):
    """Represents the session token row stored by the SQLite token store."""

    slot: str = Field("default", description="Fixed key; the store holds a single token.")
    token: str = Field(..., description="Session token, encrypted when a cipher is configured.")
    encrypted: bool = False
    updated_at: datetime = Field(default_factory=_utcnow)


__all__ = ["StoredSessionToken"]
