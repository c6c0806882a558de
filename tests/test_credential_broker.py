try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from authbridge.clients.better_auth import BetterAuthClient
from authbridge.clients.sign_in import IdTokenSignIn
from authbridge.clients.token_store import InMemoryTokenStore
from authbridge.core.config import BrokerSettings
from authbridge.core.errors import (
    CachedLoginDisabled,
    CapabilityUnavailable,
    InvalidEndpoint,
    InvalidResponse,
    MissingToken,
    TransportError,
)
from authbridge.schemas.auth import Credential, User
from authbridge.services.broker import CredentialBroker

SESSION_BODY = {
    "success": True,
    "data": {"session": {"token": "new-token"}, "user": {"id": "u"}},
}


def _broker(auth_server, store, **kwargs) -> CredentialBroker:
    client = BetterAuthClient(
        "https://example.com",
        token_store=store,
        transport=auth_server.transport,
        sign_in=kwargs.pop("sign_in", None),
    )
    return CredentialBroker(client=client, **kwargs)


def _exchange_echoing_bearer(request: httpx.Request) -> httpx.Response:
    bearer = request.headers["Authorization"].removeprefix("Bearer ")
    return httpx.Response(200, json={"token": f"jwt-for-{bearer}"})


def test_broker_requires_exactly_one_source() -> None:
    with pytest.raises(TypeError):
        CredentialBroker()
    with pytest.raises(TypeError):
        CredentialBroker("https://example.com", client=BetterAuthClient("https://example.com"))


def test_broker_rejects_invalid_url() -> None:
    with pytest.raises(InvalidEndpoint):
        CredentialBroker("::not-a-url::")


def test_broker_normalizes_base_url() -> None:
    broker = CredentialBroker("https://example.com", enable_cached_logins=False)
    assert broker.client.base_url == "https://example.com/api/auth"
    assert broker.enable_cached_logins is False


def test_broker_from_settings() -> None:
    settings = BrokerSettings(
        base_url="https://example.com/api/auth",
        enable_cached_logins=False,
        hydrate_after_sign_in=True,
    )
    store = InMemoryTokenStore()
    broker = CredentialBroker.from_settings(settings, token_store=store)

    assert broker.enable_cached_logins is False
    assert broker.hydrate_after_sign_in is True
    assert broker.client.token_store is store


@pytest.mark.asyncio
async def test_login_from_cache_validates_then_exchanges(auth_server) -> None:
    auth_server.add_json("GET", "/api/auth/session", SESSION_BODY)
    auth_server.add("GET", "/api/auth/convex/token", _exchange_echoing_bearer)
    store = InMemoryTokenStore("cached-token")

    credential = await _broker(auth_server, store).login_from_cache()

    assert auth_server.paths == ["/api/auth/session", "/api/auth/convex/token"]
    assert auth_server.requests[0].headers["Authorization"] == "Bearer cached-token"
    assert credential.platform_token == "jwt-for-new-token"
    assert credential.user == User(id="u")
    assert credential.expires_at is None
    assert store.retrieve_token() == "new-token"


@pytest.mark.asyncio
async def test_login_from_cache_disabled_makes_no_requests(auth_server) -> None:
    store = InMemoryTokenStore("cached-token")

    with pytest.raises(CachedLoginDisabled):
        await _broker(auth_server, store, enable_cached_logins=False).login_from_cache()

    assert auth_server.requests == []
    assert store.retrieve_token() == "cached-token"


@pytest.mark.asyncio
async def test_login_from_cache_with_empty_store_makes_no_requests(auth_server) -> None:
    with pytest.raises(MissingToken):
        await _broker(auth_server, InMemoryTokenStore()).login_from_cache()

    assert auth_server.requests == []


@pytest.mark.asyncio
async def test_login_from_cache_surfaces_non_2xx_and_keeps_store(auth_server) -> None:
    auth_server.add("GET", "/api/auth/session", lambda request: httpx.Response(401, text="expired"))
    store = InMemoryTokenStore("cached-token")

    with pytest.raises(InvalidResponse) as exc_info:
        await _broker(auth_server, store).login_from_cache()

    assert exc_info.value.status == 401
    assert auth_server.paths == ["/api/auth/session"]
    assert store.retrieve_token() == "cached-token"


@pytest.mark.asyncio
async def test_login_from_cache_surfaces_transport_error(auth_server) -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    auth_server.add("GET", "/api/auth/session", fail)

    with pytest.raises(TransportError):
        await _broker(auth_server, InMemoryTokenStore("cached-token")).login_from_cache()


@pytest.mark.parametrize(
    "session_body",
    [
        None,
        {"success": True},
        {"success": True, "data": None},
        {"success": True, "data": {}},
        {"success": True, "data": {"user": {"id": "u"}}},
        {"success": True, "data": {"session": {"token": ""}, "user": {"id": "u"}}},
    ],
)
@pytest.mark.asyncio
async def test_empty_session_body_is_partial_success(auth_server, session_body) -> None:
    if session_body is None:
        auth_server.add("GET", "/api/auth/session", lambda request: httpx.Response(200))
    else:
        auth_server.add_json("GET", "/api/auth/session", session_body)
    auth_server.add("GET", "/api/auth/convex/token", _exchange_echoing_bearer)
    store = InMemoryTokenStore("cached-token")

    credential = await _broker(auth_server, store).login_from_cache()

    assert credential == Credential(platform_token="jwt-for-cached-token")
    assert credential.user is None
    assert credential.expires_at is None
    assert store.retrieve_token() == "cached-token"


@pytest.mark.asyncio
async def test_get_session_ignores_cached_login_flag(auth_server) -> None:
    auth_server.add_json(
        "GET",
        "/api/auth/session",
        {
            "success": True,
            "data": {
                "session": {"token": "cached-token", "expiresAt": "2030-01-01T00:00:00Z"},
                "user": {"id": "u"},
            },
        },
    )
    auth_server.add("GET", "/api/auth/convex/token", _exchange_echoing_bearer)

    broker = _broker(auth_server, InMemoryTokenStore("cached-token"), enable_cached_logins=False)
    credential = await broker.get_session()

    assert credential.platform_token == "jwt-for-cached-token"
    assert credential.expires_at == datetime(2030, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_exchange_failure_after_validation_surfaces(auth_server) -> None:
    auth_server.add_json("GET", "/api/auth/session", SESSION_BODY)
    auth_server.add("GET", "/api/auth/convex/token", lambda request: httpx.Response(502, text="bad gateway"))
    store = InMemoryTokenStore("cached-token")

    with pytest.raises(InvalidResponse) as exc_info:
        await _broker(auth_server, store).login_from_cache()

    assert exc_info.value.status == 502
    # The rotated session token is kept; only the platform token failed.
    assert store.retrieve_token() == "new-token"


@pytest.mark.asyncio
async def test_login_requires_sign_in_capability(auth_server) -> None:
    with pytest.raises(CapabilityUnavailable):
        await _broker(auth_server, InMemoryTokenStore()).login()
    assert auth_server.requests == []


@pytest.mark.asyncio
async def test_login_signs_in_then_exchanges(auth_server) -> None:
    auth_server.add_json(
        "POST",
        "/api/auth/sign-in/social",
        {
            "success": True,
            "data": {
                "session": {"token": "signed-in", "expiresAt": "2030-06-01T12:00:00Z"},
                "user": {"id": "u", "name": "Ada"},
            },
        },
    )
    auth_server.add("GET", "/api/auth/convex/token", _exchange_echoing_bearer)
    store = InMemoryTokenStore()

    broker = _broker(auth_server, store, sign_in=IdTokenSignIn("apple", lambda: "id-token"))
    credential = await broker.login()

    assert auth_server.paths == ["/api/auth/sign-in/social", "/api/auth/convex/token"]
    assert credential.platform_token == "jwt-for-signed-in"
    assert credential.user is not None
    assert credential.user.name == "Ada"
    assert credential.expires_at == datetime(2030, 6, 1, 12, tzinfo=timezone.utc)
    assert store.retrieve_token() == "signed-in"


@pytest.mark.parametrize(
    "sign_in_body",
    [
        {"success": True},
        {"success": True, "data": {"user": {"id": "u"}}},
        {"success": True, "data": {"session": {"token": ""}, "user": {"id": "u"}}},
    ],
)
@pytest.mark.asyncio
async def test_login_without_usable_session_is_missing_token(auth_server, sign_in_body) -> None:
    auth_server.add_json("POST", "/api/auth/sign-in/social", sign_in_body)
    store = InMemoryTokenStore()
    broker = _broker(auth_server, store, sign_in=IdTokenSignIn("apple", lambda: "id-token"))

    with pytest.raises(MissingToken):
        await broker.login()
    assert auth_server.paths == ["/api/auth/sign-in/social"]
    assert store.retrieve_token() is None


@pytest.mark.asyncio
async def test_login_with_hydration_refreshes_user(auth_server) -> None:
    auth_server.add_json(
        "POST",
        "/api/auth/sign-in/social",
        {"success": True, "data": {"session": {"token": "signed-in"}, "user": {"id": "u"}}},
    )
    auth_server.add_json(
        "GET",
        "/api/auth/session",
        {
            "success": True,
            "data": {
                "session": {"token": "signed-in"},
                "user": {"id": "u", "email": "fresh@example.com"},
            },
        },
    )
    auth_server.add("GET", "/api/auth/convex/token", _exchange_echoing_bearer)

    broker = _broker(
        auth_server, InMemoryTokenStore(), sign_in=IdTokenSignIn("apple", lambda: "id-token")
    )
    credential = await broker.login(hydrate=True)

    assert auth_server.paths == [
        "/api/auth/sign-in/social",
        "/api/auth/session",
        "/api/auth/convex/token",
    ]
    assert credential.user is not None
    assert credential.user.email == "fresh@example.com"


@pytest.mark.parametrize("session_body", [None, {"success": True}])
@pytest.mark.asyncio
async def test_login_hydration_keeps_sign_in_user_on_empty_session(
    auth_server, session_body
) -> None:
    auth_server.add_json(
        "POST",
        "/api/auth/sign-in/social",
        {
            "success": True,
            "data": {
                "session": {"token": "signed-in", "expiresAt": "2030-01-01T00:00:00Z"},
                "user": {"id": "u", "name": "Ada"},
            },
        },
    )
    if session_body is None:
        auth_server.add("GET", "/api/auth/session", lambda request: httpx.Response(200))
    else:
        auth_server.add_json("GET", "/api/auth/session", session_body)
    auth_server.add("GET", "/api/auth/convex/token", _exchange_echoing_bearer)
    store = InMemoryTokenStore()

    broker = _broker(auth_server, store, sign_in=IdTokenSignIn("apple", lambda: "id-token"))
    credential = await broker.login(hydrate=True)

    assert auth_server.paths == [
        "/api/auth/sign-in/social",
        "/api/auth/session",
        "/api/auth/convex/token",
    ]
    assert credential.platform_token == "jwt-for-signed-in"
    assert credential.user is not None
    assert credential.user.name == "Ada"
    assert credential.expires_at == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert store.retrieve_token() == "signed-in"


@pytest.mark.asyncio
async def test_logout_clears_store(auth_server) -> None:
    auth_server.add_json("POST", "/api/auth/signout", {"success": True})
    store = InMemoryTokenStore("tok")

    await _broker(auth_server, store).logout()

    assert auth_server.paths == ["/api/auth/signout"]
    assert store.retrieve_token() is None


@pytest.mark.asyncio
async def test_logout_failure_propagates(auth_server) -> None:
    auth_server.add("POST", "/api/auth/signout", lambda request: httpx.Response(503, text="down"))
    store = InMemoryTokenStore("tok")

    with pytest.raises(InvalidResponse):
        await _broker(auth_server, store).logout()
    assert store.retrieve_token() == "tok"


def test_extract_id_token_returns_platform_token() -> None:
    broker = CredentialBroker("https://example.com")
    credential = Credential(platform_token="abc", user=User(id="u"))

    assert broker.extract_id_token(credential) == "abc"
    assert credential == Credential(platform_token="abc", user=User(id="u"))


@pytest.mark.asyncio
async def test_cancelled_validation_leaves_store_untouched() -> None:
    started = asyncio.Event()
    release = asyncio.Event()

    class SlowTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
            started.set()
            await release.wait()
            return httpx.Response(200, json=SESSION_BODY)

    store = InMemoryTokenStore("cached-token")
    client = BetterAuthClient("https://example.com", token_store=store, transport=SlowTransport())
    task = asyncio.create_task(CredentialBroker(client=client).login_from_cache())

    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.retrieve_token() == "cached-token"
