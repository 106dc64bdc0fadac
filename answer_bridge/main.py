#!/usr/bin/env python
"""Answer bridge - Main Entry Point.

Connects Slack (Socket Mode) to the RACEN answer API.

Usage:
    python -m answer_bridge.main
    python -m answer_bridge.main --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

# Load environment from .env.local, then .env (existing variables win)
from dotenv import load_dotenv

for _env_name in (".env.local", ".env"):
    _env_file = Path.cwd() / _env_name
    if _env_file.exists():
        load_dotenv(_env_file)

import structlog

from answer_bridge import __version__
from answer_bridge.channels.slack import SlackHandler
from answer_bridge.config import Settings
from answer_bridge.observability import configure_logging, init_tracing, shutdown_tracing

logger = structlog.get_logger(__name__)


async def run(settings: Settings) -> None:
    """Run the Slack handler until a shutdown signal arrives."""
    handler = SlackHandler(settings)
    loop = asyncio.get_running_loop()
    slack_task = asyncio.create_task(handler.start_async(), name="slack-socket-mode")

    def handle_shutdown(sig: signal.Signals) -> None:
        logger.info("Shutdown signal received", signal=sig.name)
        slack_task.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    try:
        await slack_task
    except asyncio.CancelledError:
        logger.info("Slack handler stopped")
    finally:
        await handler.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Slack bridge for the RACEN answer API",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL or INFO)",
    )
    args = parser.parse_args()

    settings = Settings.from_env()

    # Routes structlog through Python logging
    configure_logging(args.log_level or settings.log_level)
    tracing = init_tracing()
    logger.info(
        "Starting answer bridge",
        version=__version__,
        answer_url=settings.answer_url,
        allowlist_preset=settings.allowlist_preset,
        tracing=tracing,
    )

    if not settings.slack_bot_token:
        logger.error("SLACK_BOT_TOKEN not configured")
        sys.exit(1)
    if not settings.slack_app_token:
        logger.error("SLACK_APP_TOKEN not configured - Socket Mode requires it")
        sys.exit(1)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error("Fatal error", error=str(e))
        sys.exit(1)
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
