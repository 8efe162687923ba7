"""Alert dispatch for CareSignal.

This module handles everything between pipeline events and the caregiver:
- Edge-triggered alert selection and deduplication
- Notification delivery over HTTP (human-readable message)
- Periodic status/duration reports over HTTP

Usage:
    from caresignal.alerting import AlertDispatcher, NotificationClient

    notifier = NotificationClient(config.notifications.notify_url)
    dispatcher = AlertDispatcher(config)
    condition = dispatcher.select(events)
    if condition:
        await notifier.send_message(dispatcher.render(condition))
    await notifier.close()
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import aiohttp

from caresignal.models import (
    AlertCondition, BlinkAction, Event, GestureAction, SleepState,
    SleepTransition, StatusReport, is_alert_condition
)

logger = logging.getLogger(__name__)


class DispatchTransportError(Exception):
    """An outbound notification could not be delivered."""


class _JsonPoster:
    """Shared aiohttp session handling for the outbound clients."""

    def __init__(self, url: str, timeout_seconds: float = 5.0):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _post(self, payload: Dict[str, Any]) -> None:
        """POST JSON and require a 2xx response.

        Raises:
            DispatchTransportError: On non-2xx status or transport failure
        """
        try:
            session = await self._get_session()
            async with session.post(self.url, json=payload) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    raise DispatchTransportError(f"HTTP {resp.status}: {text}")
        except DispatchTransportError:
            raise
        except Exception as e:
            raise DispatchTransportError(f"{type(e).__name__}: {e}") from e


class NotificationClient(_JsonPoster):
    """Sends human-readable alert messages to the notification endpoint.

    The endpoint accepts ``{"message": "<text>"}``; any 2xx means the
    message was accepted for delivery.
    """

    async def send_message(self, message: str) -> bool:
        """Send an alert message.

        Args:
            message: Alert text

        Returns:
            True if the endpoint accepted it
        """
        if not self.url:
            logger.debug("Notification URL not configured")
            return False

        try:
            await self._post({"message": message})
        except DispatchTransportError as e:
            logger.warning(f"Notification failed ({message}): {e}")
            return False

        logger.info(f"Notification sent: {message}")
        return True


class StatusReportClient(_JsonPoster):
    """Sends periodic status/duration snapshots."""

    async def send_report(self, report: StatusReport) -> bool:
        """Send a status report.

        Args:
            report: Snapshot to send

        Returns:
            True if the endpoint accepted it
        """
        if not self.url:
            logger.debug("Status URL not configured")
            return False

        try:
            await self._post(report.to_dict())
        except DispatchTransportError as e:
            logger.warning(f"Status report failed: {e}")
            return False

        logger.debug(f"Status report sent: {report.status.value}")
        return True


class AlertDispatcher:
    """Edge-triggered alert selection.

    Each tick the highest-priority pending condition is chosen:
    1. Blink or gesture actions
    2. Sleep/wake transitions

    A condition equal to the last one sent is dropped, so a persisting or
    repeated condition produces one notification until something else has
    been sent in between. ``last_sent`` is updated before delivery is
    attempted and is never rolled back.

    Attributes:
        last_sent: Last condition handed out for delivery
        last_status: Sleep state in the last periodic report
        last_report_at: Monotonic time of the last periodic report
    """

    PRIORITY = {
        BlinkAction: 0,
        GestureAction: 0,
        SleepTransition: 1,
    }

    def __init__(self, config):
        """Initialize dispatcher.

        Args:
            config: Config object (messages and report interval)
        """
        self.config = config
        self.last_sent: Optional[AlertCondition] = None
        self.last_status: Optional[SleepState] = None
        self.last_report_at: Optional[float] = None
        self._pending: List[AlertCondition] = []
        self.suppressed_count = 0

    @property
    def pending(self) -> List[AlertCondition]:
        """Conditions produced but not yet considered for sending."""
        return list(self._pending)

    def select(self, events: Iterable[Event]) -> Optional[AlertCondition]:
        """Choose at most one condition to send for this tick.

        Args:
            events: Events produced by the pipeline this tick

        Returns:
            The condition to deliver, or None
        """
        self._pending.extend(e for e in events if is_alert_condition(e))
        if not self._pending:
            return None

        # Stable sort keeps arrival order within a priority level
        self._pending.sort(key=lambda c: self.PRIORITY[type(c)])
        condition = self._pending.pop(0)

        if condition == self.last_sent:
            self.suppressed_count += 1
            logger.debug(f"Suppressed duplicate alert: {self.render(condition)}")
            return None

        self.last_sent = condition
        return condition

    def render(self, condition: AlertCondition) -> str:
        """Human-readable message for a condition."""
        if isinstance(condition, SleepTransition):
            key = condition.state.value
        else:
            key = condition.action
        return self.config.message_for(key)

    def build_report(
        self,
        status: SleepState,
        durations: Dict[str, float],
        total_blinks: int = 0,
        expression=None,
        now: Optional[float] = None,
    ) -> StatusReport:
        """Snapshot current state into a StatusReport.

        Durations are copied, never drained.
        """
        self.last_report_at = time.monotonic() if now is None else now

        if status != self.last_status:
            logger.info(f"Reporting patient status: {status.value}")
            self.last_status = status

        report = StatusReport(
            status=status,
            expression_durations=dict(durations),
            total_blinks=total_blinks,
            timestamp=datetime.now(),
        )
        if expression is not None:
            report.expression = expression
        return report
