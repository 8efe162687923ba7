# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Monitoring session for CareSignal.

This module runs one camera session end to end:
- Pulls landmark frames from a source in arrival order
- Runs each frame through the detection pipeline
- Hands alert conditions to the dispatcher and fires notifications
- Sends a status/duration report every few seconds

Frame ticks and the report timer share one asyncio loop and one lock;
HTTP calls run as background tasks and never hold the lock.

Usage:
    from caresignal.monitor import PatientMonitor

    monitor = PatientMonitor(config)
    await monitor.run(source)
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import AsyncIterator, List, Optional, Set

from caresignal.alerting import (
    AlertDispatcher, NotificationClient, StatusReportClient
)
from caresignal.detection.pipeline import SessionState, process_frame
from caresignal.models import (
    AlertCondition, Event, LandmarkFrame, MonitorStatus, StatusReport
)

logger = logging.getLogger(__name__)


class PatientMonitor:
    """Drives the landmark-to-alert pipeline for one session.

    Attributes:
        state: SessionState for the current session
        dispatcher: AlertDispatcher holding dedup state
    """

    def __init__(
        self,
        config,
        notifier: Optional[NotificationClient] = None,
        reporter: Optional[StatusReportClient] = None,
    ):
        """Initialize monitor.

        Args:
            config: Configuration object
            notifier: Notification client (built from config if omitted)
            reporter: Status report client (built from config if omitted)
        """
        self.config = config
        notifications = config.notifications

        if notifier is None and notifications.enabled:
            notifier = NotificationClient(
                notifications.notify_url, notifications.timeout_seconds
            )
        if reporter is None and notifications.enabled:
            reporter = StatusReportClient(
                notifications.status_url, notifications.timeout_seconds
            )
        self.notifier = notifier
        self.reporter = reporter

        self.state = SessionState.create(config)
        self.dispatcher = AlertDispatcher(config)

        self._lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self._report_task: Optional[asyncio.Task] = None
        self._running = False
        self._last_alert: Optional[str] = None
        self._start_time = datetime.now()

        logger.info("PatientMonitor initialized")

    # ==================== Properties ====================

    @property
    def is_running(self) -> bool:
        """Whether a session is in progress."""
        return self._running

    @property
    def uptime(self) -> timedelta:
        """How long the monitor has been running."""
        return datetime.now() - self._start_time

    def get_status(self) -> MonitorStatus:
        """Get comprehensive session status snapshot."""
        state = self.state
        return MonitorStatus(
            timestamp=datetime.now(),
            sleep_state=state.blink.sleep_state,
            head_pose=state.head_pose.current,
            expression=state.expression.current,
            consecutive_blinks=state.blink.state.consecutive_blink_count,
            total_blinks=state.blink.state.total_blink_count,
            gesture_sequence=list(state.gestures.sequence),
            expression_durations=state.expression.snapshot(),
            frames_processed=state.frames_processed,
            frames_missing=state.frames_missing,
            skipped_frames=state.geometry.skipped_frames,
            last_alert=self._last_alert,
            uptime_seconds=self.uptime.total_seconds(),
        )

    # ==================== Main Loop ====================

    async def run(self, source: AsyncIterator[LandmarkFrame]) -> None:
        """Process frames until the source ends or stop() is called.

        Args:
            source: Async iterator of LandmarkFrame
        """
        self._running = True
        self._start_time = datetime.now()
        logger.info("Monitoring session starting")

        self._report_task = asyncio.create_task(self._report_loop())

        try:
            async for frame in source:
                if not self._running:
                    break
                await self.handle_frame(frame)
        finally:
            await self._cleanup()

    async def handle_frame(self, frame: LandmarkFrame) -> List[Event]:
        """Run one tick: pipeline, then alert selection.

        Errors are logged and swallowed so one bad frame never ends the
        session.

        Returns:
            Events produced by the pipeline this tick
        """
        try:
            async with self._lock:
                events = process_frame(frame, self.state)
                condition = self.dispatcher.select(events)
        except Exception as e:
            logger.error(f"Error processing frame: {e}")
            return []

        if condition is not None:
            self._send_alert(condition)

        return events

    def stop(self) -> None:
        """Signal shutdown."""
        logger.info("Monitoring session stopping")
        self._running = False

    async def _cleanup(self) -> None:
        """Stop the timer, flush in-flight sends, close clients."""
        self._running = False

        if self._report_task:
            self._report_task.cancel()
            try:
                await self._report_task
            except asyncio.CancelledError:
                pass
            self._report_task = None

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        if self.notifier:
            await self.notifier.close()
        if self.reporter:
            await self.reporter.close()

        status = self.get_status()
        logger.info(
            f"Session ended: {status.frames_processed} frames, "
            f"{status.frames_missing} missing, {status.total_blinks} blinks"
        )

    # ==================== Alerting ====================

    def _send_alert(self, condition: AlertCondition) -> None:
        """Fire-and-forget delivery of one alert condition."""
        message = self.dispatcher.render(condition)
        self._last_alert = message
        logger.warning(f"ALERT: {message}")

        if self.notifier:
            self._spawn(self.notifier.send_message(message))

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ==================== Periodic Report ====================

    async def snapshot_report(self) -> StatusReport:
        """Take a status report under the session lock."""
        async with self._lock:
            state = self.state
            return self.dispatcher.build_report(
                status=state.blink.sleep_state,
                durations=state.expression.snapshot(),
                total_blinks=state.blink.state.total_blink_count,
                expression=state.expression.current,
            )

    async def _report_loop(self) -> None:
        """Send a status report every report_interval_seconds."""
        interval = self.config.notifications.report_interval_seconds
        while True:
            try:
                await asyncio.sleep(interval)
                report = await self.snapshot_report()
                if self.reporter:
                    self._spawn(self.reporter.send_report(report))
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Status report error: {e}")
