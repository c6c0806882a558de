"""Pytest configuration shared across the suite."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

Responder = Callable[[httpx.Request], httpx.Response]


class FakeAuthServer:
    """Route table served through ``httpx.MockTransport`` that records requests."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Responder] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def add(self, method: str, path: str, responder: Responder) -> None:
        self.routes[(method.upper(), path)] = responder

    def add_json(
        self,
        method: str,
        path: str,
        body: Any,
        *,
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        content = json.dumps(body).encode("utf-8")
        response_headers = {"Content-Type": "application/json", **(headers or {})}
        self.add(
            method,
            path,
            lambda request: httpx.Response(
                status, content=content, headers=response_headers
            ),
        )

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, text="not found")
        return responder(request)


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def auth_server() -> FakeAuthServer:
    return FakeAuthServer()
