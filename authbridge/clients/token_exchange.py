"""Exchange a provider session token for a platform token."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from authbridge.clients.better_auth import BetterAuthClient
from authbridge.core.errors import DecodeError, MissingToken
from authbridge.schemas.auth import PlatformTokenResponse
from authbridge.utils.http import decode_json, send_request

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Fetch platform tokens from the auth server's Convex token route."""

    ROUTE = "convex/token"

    def __init__(self, auth_client: BetterAuthClient) -> None:
        self._auth = auth_client

    async def exchange(self, session_token: Optional[str] = None) -> str:
        """
        Return a fresh platform token for ``session_token``.

        Falls back to the auth client's stored token when none is passed. The
        result is never cached.
        """
        token = session_token or self._auth.current_token
        if not token:
            raise MissingToken("No session token available for platform token exchange.")

        response = await send_request(
            self._auth.http, "GET", self._auth.url_for(self.ROUTE), token=token
        )
        payload = decode_json(response)
        try:
            body = PlatformTokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError("Token exchange response did not contain a token.") from exc

        logger.debug("Exchanged session token for platform token")
        return body.token


__all__ = ["TokenExchanger"]
