"""
Credential broker.

Orchestrates the Better Auth client and the token exchanger into the login,
cached login, session refresh and logout operations a platform client needs,
and normalizes every outcome into a ``Credential`` or an ``AuthBridgeError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from authbridge.clients.better_auth import BetterAuthClient, TokenChangeSink
from authbridge.clients.sign_in import SignInMechanism
from authbridge.clients.token_exchange import TokenExchanger
from authbridge.clients.token_store import TokenStore
from authbridge.core.errors import CachedLoginDisabled, MissingToken
from authbridge.schemas.auth import AuthEnvelope, AuthPayload, Credential

if TYPE_CHECKING:
    from authbridge.core.config import BrokerSettings

logger = logging.getLogger(__name__)


class CredentialBroker:
    """Turn Better Auth sessions into platform credentials."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[BetterAuthClient] = None,
        enable_cached_logins: bool = True,
        hydrate_after_sign_in: bool = False,
        token_store: Optional[TokenStore] = None,
        sign_in: Optional[SignInMechanism] = None,
        on_token_change: Optional[TokenChangeSink] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if (base_url is None) == (client is None):
            raise TypeError("Provide exactly one of base_url or client.")
        if client is None:
            client = BetterAuthClient(
                base_url,  # type: ignore[arg-type]
                token_store=token_store,
                sign_in=sign_in,
                on_token_change=on_token_change,
                timeout_seconds=timeout_seconds,
                transport=transport,
            )
        self._client = client
        self._exchanger = TokenExchanger(client)
        self.enable_cached_logins = enable_cached_logins
        self.hydrate_after_sign_in = hydrate_after_sign_in

    @classmethod
    def from_settings(
        cls,
        settings: "BrokerSettings",
        *,
        token_store: Optional[TokenStore] = None,
        sign_in: Optional[SignInMechanism] = None,
        on_token_change: Optional[TokenChangeSink] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "CredentialBroker":
        return cls(
            settings.base_url,
            enable_cached_logins=settings.enable_cached_logins,
            hydrate_after_sign_in=settings.hydrate_after_sign_in,
            token_store=token_store,
            sign_in=sign_in,
            on_token_change=on_token_change,
            timeout_seconds=settings.http_timeout_seconds,
            transport=transport,
        )

    @property
    def client(self) -> BetterAuthClient:
        return self._client

    async def login(self, *, hydrate: Optional[bool] = None) -> Credential:
        """Interactive sign-in followed by a platform token exchange."""
        logger.info("Starting interactive login")
        envelope = await self._client.sign_in()
        if envelope.data is None:
            raise MissingToken("Sign-in response did not include a session.")
        payload = envelope.data

        if hydrate is None:
            hydrate = self.hydrate_after_sign_in
        if hydrate:
            refreshed = await self._client.get_session()
            if refreshed.data is not None:
                payload = refreshed.data

        credential = await self._credential_for(payload)
        logger.info("Interactive login complete")
        return credential

    async def login_from_cache(self) -> Credential:
        """Restore the stored session, validate it and exchange it."""
        if not self.enable_cached_logins:
            raise CachedLoginDisabled("Cached logins are disabled for this broker.")
        logger.info("Restoring cached session")
        return await self.get_session()

    async def get_session(self) -> Credential:
        """Validate the stored session against the server and exchange it."""
        if not self._client.current_token:
            raise MissingToken("No cached session token; an interactive login is required.")
        envelope: AuthEnvelope = await self._client.get_session()
        if envelope.data is None:
            logger.info("Session validated without session data; user is unknown")
            return Credential(platform_token=await self._exchanger.exchange())
        return await self._credential_for(envelope.data)

    @staticmethod
    def extract_id_token(credential: Credential) -> str:
        return credential.platform_token

    async def logout(self) -> None:
        """Sign out on the server and clear the local session token."""
        logger.info("Logging out")
        await self._client.sign_out()

    async def _credential_for(self, payload: AuthPayload) -> Credential:
        platform_token = await self._exchanger.exchange()
        return Credential(
            platform_token=platform_token,
            user=payload.user,
            expires_at=payload.session.expires_at,
        )


__all__ = ["CredentialBroker"]
