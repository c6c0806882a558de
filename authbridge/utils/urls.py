"""Normalization of auth server base URLs."""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

from authbridge.core.errors import InvalidEndpoint

AUTH_ROOT_PATH = "/api/auth"


def normalize_auth_endpoint(url: str) -> str:
    """
    Return the canonical auth root URL for a server or deployment root.

    ``https://example.com`` becomes ``https://example.com/api/auth``; a URL whose
    path already ends with ``/api/auth`` (any case) is kept as-is apart from a
    trailing slash. Applying the function twice yields the same URL.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidEndpoint("Auth base URL must be a non-empty string.")

    try:
        parts = urlsplit(url.strip())
        # Accessing the port validates it.
        parts.port
    except ValueError as exc:
        raise InvalidEndpoint(f"Unparseable auth base URL: {url!r}") from exc

    if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
        raise InvalidEndpoint(f"Auth base URL must be an absolute http(s) URL: {url!r}")
    if parts.query or parts.fragment:
        raise InvalidEndpoint(
            f"Auth base URL must not carry a query string or fragment: {url!r}"
        )

    path = parts.path.rstrip("/")
    if not path.lower().endswith(AUTH_ROOT_PATH):
        path = f"{path}{AUTH_ROOT_PATH}"

    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def join_endpoint(base_url: str, route: str) -> str:
    """Append a relative route such as ``session`` to a normalized endpoint."""
    return f"{base_url.rstrip('/')}/{route.lstrip('/')}"


__all__ = ["AUTH_ROOT_PATH", "join_endpoint", "normalize_auth_endpoint"]
