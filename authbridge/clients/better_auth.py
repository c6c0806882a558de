"""
Better Auth REST client.

Wraps the identity provider's sign-in, get-session and sign-out routes and owns
the token store holding the session token.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from authbridge.clients.sign_in import EmailPasswordSignIn, SignInMechanism
from authbridge.clients.token_store import InMemoryTokenStore, TokenStore
from authbridge.core.errors import (
    CapabilityUnavailable,
    DecodeError,
    InvalidResponse,
    MissingToken,
)
from authbridge.schemas.auth import AuthEnvelope
from authbridge.utils.http import HTTPConfig, decode_json, send_request
from authbridge.utils.urls import join_endpoint, normalize_auth_endpoint

logger = logging.getLogger(__name__)

TokenChangeSink = Callable[[Optional[str]], None]

ROTATED_TOKEN_HEADER = "set-auth-token"


class BetterAuthClient:
    """Drive the provider's session routes and keep the token store current."""

    def __init__(
        self,
        base_url: str,
        *,
        token_store: Optional[TokenStore] = None,
        sign_in: Optional[SignInMechanism] = None,
        on_token_change: Optional[TokenChangeSink] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = normalize_auth_endpoint(base_url)
        self._store: TokenStore = token_store if token_store is not None else InMemoryTokenStore()
        self._sign_in = sign_in
        self._on_token_change = on_token_change
        self.http = HTTPConfig(timeout_seconds=timeout_seconds, transport=transport)

    @property
    def current_token(self) -> Optional[str]:
        """The session token currently held by the token store."""
        return self._store.retrieve_token()

    @property
    def token_store(self) -> TokenStore:
        return self._store

    def url_for(self, route: str) -> str:
        return join_endpoint(self.base_url, route)

    def supports_interactive_sign_in(self) -> bool:
        return self._sign_in is not None and self._sign_in.is_available()

    async def sign_in(self) -> AuthEnvelope:
        """Run the configured interactive sign-in and persist the issued token."""
        if self._sign_in is None or not self._sign_in.is_available():
            raise CapabilityUnavailable(
                "Interactive sign-in is not available on this runtime."
            )
        body = await self._sign_in.build_body()
        return await self._authenticate(self._sign_in.path, body)

    async def sign_in_email(self, email: str, password: str) -> AuthEnvelope:
        mechanism = EmailPasswordSignIn(email, password)
        return await self._authenticate(mechanism.path, await mechanism.build_body())

    async def get_session(self) -> AuthEnvelope:
        """Validate the stored token; a rotated token replaces the stored one."""
        token = self.current_token
        if not token:
            raise MissingToken("No session token stored; sign in first.")

        response = await send_request(self.http, "GET", self.url_for("session"), token=token)
        envelope = self._parse_envelope(response)
        rotated = response.headers.get(ROTATED_TOKEN_HEADER)
        if not rotated and envelope.data is not None:
            rotated = envelope.data.session.token
        if rotated:
            self._replace_token(rotated)
        return envelope

    async def sign_out(self) -> None:
        """End the server session, then drop the local token."""
        response = await send_request(
            self.http, "POST", self.url_for("signout"), token=self.current_token
        )
        logger.debug("Sign-out acknowledged with HTTP %s", response.status_code)
        self._store.delete_token()
        self._notify(None)

    async def _authenticate(self, route: str, body: dict) -> AuthEnvelope:
        response = await send_request(self.http, "POST", self.url_for(route), json_body=body)
        envelope = self._parse_envelope(response)
        if envelope.data is not None:
            token = response.headers.get(ROTATED_TOKEN_HEADER) or envelope.data.session.token
            self._replace_token(token)
        return envelope

    def _parse_envelope(self, response: httpx.Response) -> AuthEnvelope:
        payload = decode_json(response)
        try:
            envelope = AuthEnvelope.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected auth response shape: {exc.error_count()} error(s).") from exc
        if not envelope.success:
            raise InvalidResponse(response.status_code, response.text)
        return envelope

    def _replace_token(self, token: str) -> None:
        if token == self._store.retrieve_token():
            return
        self._store.store_token(token)
        logger.info("Stored new session token")
        self._notify(token)

    def _notify(self, token: Optional[str]) -> None:
        if self._on_token_change is not None:
            self._on_token_change(token)


__all__ = ["BetterAuthClient", "ROTATED_TOKEN_HEADER", "TokenChangeSink"]
