# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Status endpoints - latest periodic report from the monitor."""

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request

from caresignal.models import StatusReport

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/status")
async def receive_status(request: Request, data: Dict[str, Any] = Body(...)):
    """Store the latest status report.

    The body is a StatusReport as sent by the monitor every few seconds.
    """
    try:
        report = StatusReport.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid status report: {e}")

    previous = request.app.state.latest_status
    if previous is None or previous["report"].status != report.status:
        logger.info(f"Patient status: {report.status.value}")

    request.app.state.latest_status = {
        "report": report,
        "received_at": datetime.now(),
    }
    return {"status": "ok"}


@router.get("/status")
async def get_status(request: Request):
    """Get the most recent status report.

    Returns:
        The report plus the time the relay received it
    """
    latest = request.app.state.latest_status
    if latest is None:
        raise HTTPException(status_code=404, detail="No status report received yet")

    result = latest["report"].to_dict()
    result["received_at"] = latest["received_at"].isoformat()
    return result
