# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Blink counting and sleep/wake detection.

Eyes are closed when the averaged EAR falls below the blink threshold.

Blink counting:
    A blink is counted on the rising edge into "closed" only. Blinks in a
    burst accumulate in a consecutive counter; once the eyes stay open for
    reset_frames ticks the burst is over, its final count is looked up in
    the blink action table (5 -> water, 7 -> food by default) and the
    counter returns to 0.

Sleep/wake:
    AWAKE -> SLEEPING after sleep_threshold_frames consecutive closed ticks
    SLEEPING -> AWAKE after awake_threshold_frames consecutive open ticks

Missing detections never count as seen eyes, so they can neither start a
new blink nor wake a sleeping patient.
"""

import logging
from typing import Dict, List, Optional

from caresignal.config import BlinkConfig
from caresignal.models import (
    BlinkAction, BlinkDetected, BlinkState, Event, SleepState, SleepTransition
)

logger = logging.getLogger(__name__)


class BlinkSleepDetector:
    """Edge-triggered blink counter with a debounced sleep/wake sub-state.

    Attributes:
        state: Current BlinkState counters
        sleep_state: Current SleepState
    """

    def __init__(self, config: BlinkConfig, blink_actions: Optional[Dict[int, str]] = None):
        """Initialize detector.

        Args:
            config: Blink thresholds and debounce windows
            blink_actions: Map of terminal blink count -> action name
        """
        self.config = config
        self.blink_actions = dict(blink_actions or {})
        self.state = BlinkState()
        self._sleep_state = SleepState.AWAKE
        # Open frames actually observed in the current open streak
        self._seen_open_frames = 0

    @property
    def sleep_state(self) -> SleepState:
        """Current sleep/wake state."""
        return self._sleep_state

    def is_closed(self, avg_ear: float) -> bool:
        """Whether an averaged EAR counts as closed eyes."""
        return avg_ear < self.config.threshold

    def update(self, avg_ear: float) -> List[Event]:
        """Process one tick's averaged EAR.

        Args:
            avg_ear: Mean of left and right EAR

        Returns:
            Events produced this tick (blink edge, blink action, sleep transition)
        """
        if self.is_closed(avg_ear):
            return self._on_closed()
        return self._on_open()

    def update_missing(self) -> List[Event]:
        """Process a tick with no face detected.

        Under "hold" (the default) nothing changes. Under "open" the
        blink-reset window keeps running so a burst still completes and a
        closed streak ends. The eye-closed flag and the wake debounce are
        left alone, so a closure spanning the gap is still one blink.
        """
        if self.config.missing_detection == "hold":
            return []

        state = self.state
        state.consecutive_open_frames += 1
        state.consecutive_closed_frames = 0
        return self._check_burst_end()

    def _on_closed(self) -> List[Event]:
        events: List[Event] = []
        state = self.state

        if not state.is_eye_closed:
            state.is_eye_closed = True
            state.consecutive_blink_count += 1
            state.total_blink_count += 1
            events.append(BlinkDetected(
                consecutive=state.consecutive_blink_count,
                total=state.total_blink_count,
            ))
            logger.debug(
                f"Blink {state.consecutive_blink_count} "
                f"(total {state.total_blink_count})"
            )

        state.consecutive_closed_frames += 1
        state.consecutive_open_frames = 0
        self._seen_open_frames = 0

        if state.consecutive_closed_frames >= self.config.sleep_threshold_frames:
            if self.apply_sleep_state(SleepState.SLEEPING):
                events.append(SleepTransition(SleepState.SLEEPING))

        return events

    def _on_open(self) -> List[Event]:
        events: List[Event] = []
        state = self.state

        state.is_eye_closed = False
        state.consecutive_open_frames += 1
        state.consecutive_closed_frames = 0
        self._seen_open_frames += 1

        events.extend(self._check_burst_end())

        if self._seen_open_frames >= self.config.awake_threshold_frames:
            if self.apply_sleep_state(SleepState.AWAKE):
                events.append(SleepTransition(SleepState.AWAKE))

        return events

    def _check_burst_end(self) -> List[Event]:
        state = self.state
        if (state.consecutive_blink_count > 0
                and state.consecutive_open_frames >= self.config.reset_frames):
            action = self._finish_burst()
            if action:
                return [BlinkAction(action)]
        return []

    def _finish_burst(self) -> Optional[str]:
        """Close out a blink burst and map its count to an action."""
        count = self.state.consecutive_blink_count
        self.state.consecutive_blink_count = 0

        action = self.blink_actions.get(count)
        if action:
            logger.info(f"Blink burst of {count} -> {action}")
        else:
            logger.debug(f"Blink burst of {count} ignored")
        return action

    def apply_sleep_state(self, target: SleepState) -> bool:
        """Move to a sleep state.

        Idempotent: a no-op when already in ``target``.

        Returns:
            True if the state changed
        """
        if self._sleep_state == target:
            return False

        logger.info(f"Sleep state: {self._sleep_state.value} -> {target.value}")
        self._sleep_state = target
        return True
