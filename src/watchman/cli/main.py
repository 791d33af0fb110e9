# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Watchman CLI."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from ..config import ProbeSettings, load_probe_settings
from ..errors import ConfigError, InvalidRequestError
from ..log import setup_logging
from ..models.check import DURATION_FIELDS, CheckResponse
from ..runtime import Watchman
from ..utils.duration import format_duration

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Watchman synthetic HTTP(S) probe")
    parser.add_argument(
        "--debug-transport",
        action="store_true",
        help="Let httpx/httpcore connection logging through at the configured level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the JSON probe service")
    serve.add_argument("--host", help="Listen address (default: $HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Listen port (default: $PORT or 8080)")

    check = subparsers.add_parser("check", help="Probe a single URL and print its timings")
    check.add_argument("url", help="Target URL to probe")
    check.add_argument("--timeout", help="Per-hop timeout, e.g. 500ms or 2s (default: $TIMEOUT or 100ms)")
    check.add_argument(
        "--redirects",
        type=int,
        default=0,
        help="Redirects to follow (default: $MAX_REDIRECTS or 3)",
    )
    check.add_argument(
        "--no-verify-certs",
        action="store_true",
        help="Skip TLS certificate verification (useful for lab/self-signed targets)",
    )
    check.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of human-friendly summary",
    )
    return parser


def _print_json(data: dict[str, Any]) -> None:
    json.dump(data, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _pretty_print(url: str, response: CheckResponse) -> None:
    print(f"[watchman] {url}")
    print(f"Status: {response.status or '-'}")
    if response.error:
        print(f"Error: {response.error}")
    width = max(len(name) for name in DURATION_FIELDS)
    for name in DURATION_FIELDS:
        value = getattr(response, name)
        print(f"  {name:<{width}}  {format_duration(value / 1e9)}")


def _serve(args: argparse.Namespace, settings: ProbeSettings) -> int:
    import uvicorn

    from ..server.app import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("using %s as default timeout", format_duration(settings.timeout))
    logger.info("listening on %s:%s", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def _check(args: argparse.Namespace, settings: ProbeSettings) -> int:
    payload: dict[str, Any] = {
        "url": args.url,
        "timeout": args.timeout,
        "redirects_to_follow": args.redirects,
        "verify_certs": not args.no_verify_certs,
    }
    watchman = Watchman(settings)
    try:
        response = watchman.check(payload)
    except InvalidRequestError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.json:
        _print_json(response.to_dict())
    else:
        _pretty_print(args.url, response)
    return 0 if response.ok else 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_probe_settings()
    except ConfigError as exc:
        setup_logging()
        logger.error("%s", exc)
        return 1
    setup_logging(settings.log_level, transport_debug=args.debug_transport)

    if args.command == "serve":
        return _serve(args, settings)
    return _check(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
