"""
Sign-in mechanisms used for interactive login.

A mechanism knows which auth route to call and how to build the request body.
Interactive sign-in is only offered when a mechanism is configured and reports
itself available on the current runtime.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

IdTokenFetcher = Callable[[], Union[str, Awaitable[str]]]


class SignInMechanism(Protocol):
    path: str

    def is_available(self) -> bool:
        ...

    async def build_body(self) -> dict[str, Any]:
        ...


class IdTokenSignIn:
    """
    Social sign-in with an ID token obtained from a native provider prompt.

    ``fetch_id_token`` runs the provider's own UI (for example a Sign in with
    Apple sheet driven by the host application) and returns the raw ID token.
    It may be a plain function or a coroutine function.
    """

    path = "sign-in/social"

    def __init__(
        self,
        provider: str,
        fetch_id_token: Optional[IdTokenFetcher],
        *,
        nonce: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self._fetch_id_token = fetch_id_token
        self._nonce = nonce

    def is_available(self) -> bool:
        return self._fetch_id_token is not None

    async def build_body(self) -> dict[str, Any]:
        result = self._fetch_id_token()  # type: ignore[misc]
        if inspect.isawaitable(result):
            result = await result
        id_token: dict[str, Any] = {"token": result}
        if self._nonce:
            id_token["nonce"] = self._nonce
        return {"provider": self.provider, "idToken": id_token}


class EmailPasswordSignIn:
    """Email and password sign-in against the provider's credential route."""

    path = "sign-in/email"

    def __init__(self, email: str, password: str, *, remember_me: bool = True) -> None:
        self.email = email
        self._password = password
        self.remember_me = remember_me

    def is_available(self) -> bool:
        return bool(self.email and self._password)

    async def build_body(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "password": self._password,
            "rememberMe": self.remember_me,
        }


__all__ = ["EmailPasswordSignIn", "IdTokenFetcher", "IdTokenSignIn", "SignInMechanism"]
