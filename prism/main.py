"""Prism entry point.

Commands: watch (default; show PRs and auto-refresh until Ctrl+C),
login (device-code flow), list (fetch once and print), logout.
Usage: prism [--config config.yaml] [watch|login|list|logout].
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from prism.app import PrismApp
from prism.config import AppConfig, load_config
from prism.logging import setup_logging
from prism.view import ConsoleView

COMMANDS = ("watch", "login", "list", "logout")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="prism",
        description="Prism - your GitHub pull requests, grouped",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=COMMANDS,
        default="watch",
        help="What to do (default: watch)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    return parser.parse_args(argv)


async def _login(app: PrismApp) -> int:
    await app.auth.check_initial_auth()
    if app.auth.is_authenticated:
        return 0
    ok = await app.connect()
    await app.auth.wait_idle()
    return 0 if ok else 1


async def _list(app: PrismApp) -> int:
    await app.auth.check_initial_auth()
    if not app.auth.is_authenticated:
        return 1
    return 0 if app.feed.last_fetch_ok else 1


async def _logout(app: PrismApp) -> int:
    await app.auth.sign_out(forget_token=True)
    return 0


async def run_command(config: AppConfig, command: str) -> int:
    app = PrismApp(config)
    view = ConsoleView(app.bus)
    try:
        if command == "login":
            return await _login(app)
        if command == "list":
            return await _list(app)
        if command == "logout":
            return await _logout(app)
        return 0 if await app.run(connect=True) else 1
    finally:
        view.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point for prism."""
    args = parse_args(argv)
    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("prism").warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)

    if args.check:
        print("Config OK:", config.github.graphql_url, config.feed.auto_refresh_seconds)
        return 0

    setup_logging(config.logging)
    try:
        return asyncio.run(run_command(config, args.command))
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logging.getLogger("prism").exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
