"""Operator tool for inspecting and managing the stored auth session.

Commands build a broker from the usual settings (environment plus an optional
``.env`` file) and run one broker operation:

* ``restore`` runs a cached login and prints the resulting user summary.
* ``refresh`` validates the stored session regardless of the cached-login flag.
* ``token`` runs a cached login and prints only the platform token.
* ``logout`` signs out on the server and clears the stored session token.

Example usages::

    python -m scripts.session_cli restore --env-file /opt/app/.env
    export CONVEX_AUTH_TOKEN="$(python -m scripts.session_cli token)"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from authbridge.core.config import BrokerSettings
from authbridge.core.errors import AuthBridgeError, InvalidEndpoint, TransportError
from authbridge.core.logging import configure_logging
from authbridge.dependencies import build_token_store
from authbridge.schemas.auth import Credential
from authbridge.services.broker import CredentialBroker

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_ERROR = 3
EXIT_TRANSPORT_ERROR = 4


def _summarize(credential: Credential) -> dict[str, Any]:
    user = credential.user
    return {
        "authenticated": True,
        "user_id": user.id if user else None,
        "email": user.email if user else None,
        "expires_at": credential.expires_at.isoformat() if credential.expires_at else None,
    }


def _load_settings(args: argparse.Namespace) -> BrokerSettings:
    overrides: dict[str, Any] = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    env_file: Optional[Path] = args.env_file
    if env_file is not None and not env_file.exists():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    return BrokerSettings(_env_file=env_file or ".env", **overrides)  # type: ignore[call-arg]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the stored auth session.")
    parser.add_argument(
        "command",
        choices=("restore", "refresh", "token", "logout"),
        help="Broker operation to run.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to an environment file (default: .env when present).",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Override AUTH_BASE_URL for this invocation.",
    )
    return parser


async def _run(command: str, broker: CredentialBroker) -> str:
    handlers: dict[str, Callable[[], Awaitable[str]]] = {
        "restore": lambda: _as_summary(broker.login_from_cache()),
        "refresh": lambda: _as_summary(broker.get_session()),
        "token": lambda: _as_token(broker),
        "logout": lambda: _as_logout(broker),
    }
    return await handlers[command]()


async def _as_summary(operation: Awaitable[Credential]) -> str:
    return json.dumps(_summarize(await operation))


async def _as_token(broker: CredentialBroker) -> str:
    return broker.extract_id_token(await broker.login_from_cache())


async def _as_logout(broker: CredentialBroker) -> str:
    await broker.logout()
    return json.dumps({"authenticated": False})


def main(
    argv: list[str] | None = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args)
        # stdout carries the command output.
        configure_logging(settings.log_level, stream=sys.stderr)
        broker = CredentialBroker.from_settings(
            settings,
            token_store=build_token_store(settings),
            transport=transport,
        )
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_CONFIG_ERROR
    except InvalidEndpoint as exc:
        print(f"Invalid auth endpoint: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        output = asyncio.run(_run(args.command, broker))
    except TransportError as exc:
        print(f"Could not reach the auth server: {exc}", file=sys.stderr)
        return EXIT_TRANSPORT_ERROR
    except AuthBridgeError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return EXIT_AUTH_ERROR
    except ValueError as exc:
        # Raised by the token store when the stored token cannot be decrypted.
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print(output)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
