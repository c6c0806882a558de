"""HTTP utilities mapping httpx outcomes onto the broker error taxonomy."""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from authbridge.core.errors import DecodeError, InvalidResponse, TransportError


class HTTPConfig:
    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport)


def bearer_headers(token: Optional[str]) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def send_request(
    config: HTTPConfig,
    method: str,
    url: str,
    *,
    token: Optional[str] = None,
    json_body: Any = None,
) -> httpx.Response:
    """
    Issue a single request and return the response when it is 2xx.

    No retries are attempted. Network failures surface as ``TransportError`` and
    non-2xx statuses as ``InvalidResponse``.
    """
    try:
        async with config.build_client() as client:
            response = await client.request(
                method,
                url,
                headers=bearer_headers(token),
                json=json_body,
            )
    except httpx.HTTPError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc

    if not response.is_success:
        raise InvalidResponse(response.status_code, response.text)
    return response


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON body, treating an empty body as ``None``."""
    if not response.content.strip():
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError("Auth server returned a body that is not valid JSON.") from exc


__all__ = ["HTTPConfig", "bearer_headers", "decode_json", "send_request"]
