# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Relay liveness endpoint."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Report whether the relay can forward alerts and when the monitor last
    checked in.

    Telegram itself is not contacted. ``last_report_at`` is null until the
    monitor has posted its first status report.
    """
    state = request.app.state
    latest = state.latest_status
    return {
        "status": "ok",
        "service": "relay",
        "telegram_configured": state.settings.telegram_configured,
        "last_report_at": latest["received_at"].isoformat() if latest else None,
    }
