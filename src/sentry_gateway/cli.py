"""
Send a test event through the gateway.

Usage:
    sentry-gateway message "disk full"
    sentry-gateway exception "something broke" --environment production
    sentry-gateway query "SELECT 1" --engine postgresql --dsn https://key@sentry.example.com/1
"""

import argparse
import sys
from typing import List, Optional

from .config import GatewaySettings
from .exceptions import GatewayError
from .gateway import Gateway
from .logging_config import configure_logging
from .models import CaptureOptions


class GatewayTestError(Exception):
    """Raised on purpose to test exception capture."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send a test event to Sentry through the gateway")
    parser.add_argument("kind", choices=["message", "exception", "query"], help="Event type")
    parser.add_argument("text", help="Message text, exception message or query")
    parser.add_argument("--dsn", default=None, help="Sentry DSN (default: SENTRY_DSN)")
    parser.add_argument(
        "--environment",
        default=None,
        help="Active environment (default: SENTRY_ENVIRONMENT)",
    )
    parser.add_argument("--engine", default="", help="Query engine name")
    parser.add_argument("--level", default="info", help="Event level for messages and queries")
    parser.add_argument("--debug", action="store_true", help="Show underlying failure details")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.dsn is not None:
        overrides["dsn"] = args.dsn
    if args.environment is not None:
        overrides["environment"] = args.environment
    if args.debug:
        overrides["debug"] = True

    settings = GatewaySettings(**overrides)
    configure_logging(settings.log_level, json_logs=False)

    try:
        gateway = Gateway(settings)

        if args.kind == "message":
            result = gateway.capture_message(args.text, options=CaptureOptions(level=args.level))
        elif args.kind == "exception":
            try:
                raise GatewayTestError(args.text)
            except GatewayTestError as e:
                result = gateway.capture_exception(e)
        else:
            result = gateway.capture_query(args.text, level=args.level, engine_name=args.engine)

    except GatewayError as e:
        print(f"✗ {e}")
        return 1

    close = getattr(gateway.client, "close", None)
    if callable(close):
        close()

    if result.captured:
        print(f"✓ Event sent: {result.event_id}")
    else:
        print(f"⚠ Event not sent ({result.status.value}, environment={settings.environment})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
