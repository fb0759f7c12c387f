"""Entry point: ``python -m cli``."""

import argparse
import asyncio
import sys
from pathlib import Path

from .config import CLIConfig, load_build_context
from .wheelchat_cli import main


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Interactive terminal client for the wheelchat API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="localhost", help="Server host (default: localhost)")
    parser.add_argument("--port", type=int, default=8080, help="Server port (default: 8080)")
    parser.add_argument("--api-path", default="/chat", help="Chat path (default: /chat)")
    parser.add_argument(
        "--build-context",
        type=Path,
        default=None,
        help="JSON file with the buildContext to send, e.g. {\"position\": \"rear\"}",
    )
    parser.add_argument("--admin", action="store_true", help="Send isAdmin=true")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def cli_entry() -> None:
    args = parse_args()
    try:
        build_context = load_build_context(args.build_context)
    except (OSError, ValueError) as e:
        sys.exit(f"Could not read build context: {e}")

    config = CLIConfig(
        host=args.host,
        port=args.port,
        api_path=args.api_path,
        build_context=build_context,
        is_admin=args.admin,
    )
    try:
        asyncio.run(main(config, debug=args.debug))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli_entry()
