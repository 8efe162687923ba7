# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Notification endpoint - forwards monitor alerts to Telegram."""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter()

logger = logging.getLogger(__name__)


class NotifyRequest(BaseModel):
    """Request body sent by the monitor."""

    message: Optional[str] = None


@router.post("/notify")
async def notify(request: Request, body: Optional[NotifyRequest] = None):
    """Forward one alert message to the caregiver chat.

    Returns:
        200 when Telegram accepted the message, 400 when the message is
        missing or empty, 500 when delivery failed
    """
    message = (body.message or "").strip() if body else ""
    if not message:
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    telegram = request.app.state.telegram
    if not await telegram.send_message(message):
        return JSONResponse(
            status_code=500, content={"error": "Failed to send notification"}
        )

    return {"status": "Notification sent successfully"}
