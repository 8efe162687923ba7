# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""CareSignal relay entry point.

Serves /notify, /status and /health for the monitor and forwards alerts to
a Telegram chat. Settings come from CARESIGNAL_RELAY_* environment
variables or .env; the command line only overrides where to listen.

Usage:
    python -m caresignal_relay.main
    caresignal-relay --host 0.0.0.0 --port 3001
"""

import argparse
import logging
import sys

import uvicorn

from caresignal_relay.config import RelaySettings, get_settings
from caresignal_relay.server import create_app


def setup_logging(level: str = "INFO") -> None:
    """Log to stdout alongside uvicorn's own output."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # One access line per alert is noise; relay routes log what matters
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _log_startup(settings: RelaySettings, host: str, port: int) -> None:
    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("CareSignal Relay")
    logger.info("NOT FOR MEDICAL USE - Proof of concept only")
    logger.info("=" * 60)
    # An unconfigured bot is reported by the app lifespan
    if settings.telegram_configured:
        logger.info(f"Forwarding alerts to Telegram chat {settings.telegram_chat_id}")
    logger.info(f"Monitor should post to http://{host}:{port}/notify and /status")


def main():
    """Parse overrides, then serve the relay until interrupted."""
    parser = argparse.ArgumentParser(
        description="CareSignal Relay - forwards caregiver alerts to Telegram"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: from settings)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: from settings)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from settings)",
    )

    args = parser.parse_args()

    settings = get_settings()
    log_level = args.log_level or settings.log_level.upper()

    setup_logging(log_level)

    host = args.host or settings.host
    port = args.port or settings.port
    _log_startup(settings, host, port)

    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
