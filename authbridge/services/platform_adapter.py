"""Bridge between the credential broker and a platform client's auth hooks."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from authbridge.schemas.auth import Credential
from authbridge.services.broker import CredentialBroker

logger = logging.getLogger(__name__)


class PlatformAuthTarget(Protocol):
    """Auth hooks exposed by a platform client such as ``convex.ConvexClient``."""

    def set_auth(self, token: str) -> None:
        ...

    def clear_auth(self) -> None:
        ...


class PlatformAuthAdapter:
    """
    Keep a platform client authenticated with tokens produced by the broker.

    Offers the same login, cached login, token extraction and logout operations
    as the broker so it can be handed to code expecting an auth provider, and
    pushes each new platform token into the target client.
    """

    def __init__(self, broker: CredentialBroker, target: PlatformAuthTarget) -> None:
        self._broker = broker
        self._target = target
        self.credential: Optional[Credential] = None

    async def login(self) -> Credential:
        return self._apply(await self._broker.login())

    async def login_from_cache(self) -> Credential:
        return self._apply(await self._broker.login_from_cache())

    async def refresh(self) -> Credential:
        return self._apply(await self._broker.get_session())

    def extract_id_token(self, credential: Credential) -> str:
        return self._broker.extract_id_token(credential)

    async def logout(self) -> None:
        try:
            await self._broker.logout()
        finally:
            # The platform client must stop using a token whose session is ending.
            self._target.clear_auth()
            self.credential = None

    def _apply(self, credential: Credential) -> Credential:
        self._target.set_auth(self.extract_id_token(credential))
        self.credential = credential
        logger.debug("Platform client authenticated")
        return credential


__all__ = ["PlatformAuthAdapter", "PlatformAuthTarget"]
