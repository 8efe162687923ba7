# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Head-gesture sequence matching.

Direction-change events are recorded in a short rolling sequence and
compared against fixed patterns, e.g.:

    washroom:  left, right, left, right
    emergency: up, down, up, down

A partial sequence expires after timeout_frames ticks without a new
direction change.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional

from caresignal.config import GestureConfig
from caresignal.models import HeadPose

logger = logging.getLogger(__name__)


class GestureSequenceMatcher:
    """Rolling gesture sequence with pattern matching and timeout.

    Attributes:
        sequence: Recorded non-center directions, oldest first
        age: Ticks since the last direction change
    """

    def __init__(self, config: GestureConfig):
        self.config = config
        self.patterns: Dict[str, List[HeadPose]] = {
            name: [HeadPose(step) for step in steps]
            for name, steps in config.patterns.items()
        }
        self.sequence: Deque[HeadPose] = deque(maxlen=config.max_sequence)
        self.age = 0

    def record(self, direction: HeadPose) -> Optional[str]:
        """Record a direction-change event.

        Args:
            direction: New non-center direction

        Returns:
            Name of the matched gesture, if any
        """
        if direction == HeadPose.CENTER:
            return None

        self.sequence.append(direction)
        self.age = 0

        recorded = list(self.sequence)
        for name, pattern in self.patterns.items():
            if recorded[-len(pattern):] == pattern:
                logger.info(
                    f"Gesture matched: {name} "
                    f"({', '.join(p.value for p in pattern)})"
                )
                self.sequence.clear()
                return name

        return None

    def tick(self) -> bool:
        """Advance the age of a pending sequence by one tick.

        Returns:
            True if the pending sequence just expired
        """
        if not self.sequence:
            return False

        self.age += 1
        if self.age > self.config.timeout_frames:
            logger.debug(
                f"Gesture sequence expired after {self.age} frames: "
                f"{[p.value for p in self.sequence]}"
            )
            self.clear()
            return True
        return False

    def clear(self) -> None:
        """Discard the pending sequence."""
        self.sequence.clear()
        self.age = 0
