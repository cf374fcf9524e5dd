#!/usr/bin/env python3
"""
Command line entry point for the session client
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from collections.abc import Sequence

import aiohttp
from pydantic import ValidationError

from .application_context import SessionContext
from .auth_token.types import AuthState
from .config import JsonFileStorage, SessionSettings, load_settings, update_settings
from .errors.handling import log_error
from .errors.internal import AuthError, RefreshError
from .logging_config import LoggerConfigurator, error_aggregator, token_fingerprint
from .utils import format_duration, parse_assignment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authsession", description="Manage a client-side authenticated session"
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="reconcile stored credentials and show the state")
    login = sub.add_parser("login", help="store an access token issued by the backend")
    login.add_argument("token")
    login.add_argument(
        "--session-cookie",
        dest="session_cookie",
        metavar="NAME=VALUE",
        help="session cookie issued alongside the token",
    )
    sub.add_parser("refresh", help="obtain a new access token now")
    get = sub.add_parser("get", help="GET a URL with bearer auth")
    get.add_argument("url")
    logout = sub.add_parser("logout", help="end the session")
    logout.add_argument(
        "--all", dest="all_sessions", action="store_true", help="revoke every session"
    )
    settings = sub.add_parser("settings", help="show or change app settings")
    settings.add_argument(
        "--set", dest="assignments", action="append", default=[], metavar="KEY=VALUE"
    )
    return parser


def _navigate(path: str) -> None:
    print(f"➡️ Navigate to {path}")


def _print_status(ctx: SessionContext) -> None:
    state = ctx.state_machine.state
    print(f"🔐 State: {state.value}")
    credential = ctx.store.load()
    if state is not AuthState.AUTHENTICATED or credential is None:
        return
    lifetime = ctx.settings.token_lifetime_seconds
    remaining = credential.expires_at(lifetime) - time.time()
    print(f"🎫 Token: {token_fingerprint(credential.token)}")
    print(f"⏳ Expires in: {format_duration(max(remaining, 0))}")


async def _cmd_settings(storage: JsonFileStorage, assignments: Sequence[str]) -> int:
    if assignments:
        changes = dict(parse_assignment(a) for a in assignments)
        settings = update_settings(storage, **changes)
        print("✅ Settings saved")
    else:
        settings = load_settings(storage)
    for key, value in settings.to_storage().items():
        print(f"  {key}: {value}")
    return 0


async def _run_command(args: argparse.Namespace, settings: SessionSettings) -> int:
    storage = JsonFileStorage(settings.storage_file, namespace=settings.origin)
    if args.command == "settings":
        return await _cmd_settings(storage, args.assignments)

    ctx = await SessionContext.create(
        settings, storage, navigate=_navigate, cookie_file=settings.cookie_file
    )
    try:
        if args.command == "login":
            if args.session_cookie:
                ctx.add_session_cookie(*parse_assignment(args.session_cookie))
            ctx.state_machine.login(args.token)
            _print_status(ctx)
            return 0

        await ctx.start()
        if args.command == "status":
            _print_status(ctx)
            return 0
        if args.command == "refresh":
            credential = await ctx.refresher.refresh()
            print(f"✅ Token refreshed: {token_fingerprint(credential.token)}")
            return 0
        if args.command == "get":
            resp = await ctx.requests.get(args.url)
            print(f"📡 HTTP {resp.status}")
            print(await resp.text())
            return 0 if resp.status < 400 else 1
        if args.command == "logout":
            if args.all_sessions:
                await ctx.state_machine.logout_all_sessions()
            else:
                await ctx.state_machine.logout()
            return 0
        raise ValueError(f"unknown command: {args.command}")
    finally:
        await ctx.shutdown()


async def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run one command and return the exit code."""
    args = build_parser().parse_args(argv)
    try:
        settings = SessionSettings.from_env()
        return await _run_command(args, settings)
    except asyncio.CancelledError:
        raise
    except RefreshError as e:
        log_error("Token refresh failed", e)
    except AuthError as e:
        log_error("Authenticated request failed", e)
    except (ValidationError, ValueError) as e:
        log_error("Invalid input", e)
    except (aiohttp.ClientError, OSError) as e:
        log_error("Request failed", e)
    finally:
        if logging.getLogger().isEnabledFor(logging.DEBUG):
            error_aggregator.log_summary_report()
    return 1


def run(argv: Sequence[str] | None = None) -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: Always, with the command's exit code.
    """
    configurator = LoggerConfigurator()
    configurator.configure()
    try:
        code = asyncio.run(main(argv))
    except KeyboardInterrupt:
        code = 0
    except Exception as e:
        log_error("Top-level error", e)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    run()
