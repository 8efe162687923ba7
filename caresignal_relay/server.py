# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""FastAPI application factory for the relay service."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from caresignal_relay.config import RelaySettings, get_settings
from caresignal_relay.routes import health, notify, status
from caresignal_relay.telegram import TelegramClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings: RelaySettings = app.state.settings

    logger.info("Relay service starting...")
    if not settings.telegram_configured:
        logger.warning("Telegram not configured; /notify will return 500")
    logger.info(f"Relay service ready on {settings.host}:{settings.port}")

    yield

    logger.info("Relay service shutting down...")
    await app.state.telegram.close()
    logger.info("Relay service stopped")


def create_app(
    settings: Optional[RelaySettings] = None,
    telegram: Optional[TelegramClient] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Relay settings (global settings if omitted)
        telegram: Telegram client (built from settings if omitted)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    if telegram is None:
        telegram = TelegramClient(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            api_url=settings.telegram_api_url,
            timeout_seconds=settings.request_timeout_seconds,
        )

    app = FastAPI(
        title="CareSignal Relay",
        description=(
            "Relays caregiver alerts from the CareSignal monitor to Telegram "
            "and keeps the latest patient status report. "
            "NOT FOR MEDICAL USE - proof of concept only."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.telegram = telegram
    app.state.latest_status = None

    # The monitor UI may run on another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(notify.router, tags=["Notify"])
    app.include_router(status.router, tags=["Status"])

    return app
