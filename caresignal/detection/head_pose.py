# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Head direction classification from the nose offset."""

import logging
from typing import Optional

from caresignal.config import HeadPoseConfig
from caresignal.models import GeometryFrame, HeadPose

logger = logging.getLogger(__name__)


class HeadPoseClassifier:
    """Classifies the nose position into one of five directions.

    The dominant axis decides which pair of thresholds applies. The center
    band is wider than the jitter of a still head, so no extra debounce is
    needed.

    ``last_direction`` remembers the last non-center label. A direction
    change fires only for a non-center label that differs from it, so
    left -> center -> left is one event, left -> center -> right is two.
    """

    def __init__(self, config: HeadPoseConfig):
        self.config = config
        self.current = HeadPose.CENTER
        self.last_direction = HeadPose.CENTER
        self._rearm_at_center = False

    def classify(self, geometry: GeometryFrame) -> HeadPose:
        """Classify a single frame (no state involved)."""
        cfg = self.config
        if abs(geometry.nose_offset_x) > abs(geometry.nose_offset_y):
            x = geometry.nose_x
            if x < cfg.left:
                return HeadPose.LEFT
            if x > cfg.right:
                return HeadPose.RIGHT
            return HeadPose.CENTER

        y = geometry.nose_y
        if y < cfg.up:
            return HeadPose.UP
        if y > cfg.down:
            return HeadPose.DOWN
        return HeadPose.CENTER

    def update(self, geometry: GeometryFrame) -> Optional[HeadPose]:
        """Classify a frame and report a direction change.

        Returns:
            The new direction if this tick is a direction-change event
        """
        pose = self.classify(geometry)
        self.current = pose

        if pose == HeadPose.CENTER and self._rearm_at_center:
            self.last_direction = HeadPose.CENTER
            self._rearm_at_center = False

        if pose == HeadPose.CENTER or pose == self.last_direction:
            return None

        logger.debug(f"Head direction: {self.last_direction.value} -> {pose.value}")
        self.last_direction = pose
        self._rearm_at_center = False
        return pose

    def reset(self) -> None:
        """Forget the last direction (gesture timed out)."""
        self.last_direction = HeadPose.CENTER
        self._rearm_at_center = False

    def rearm(self) -> None:
        """Forget the last direction once the head is back at center.

        Used after a completed gesture so the next gesture may start with
        the direction the previous one ended on, without the head still
        held in that direction counting as a new step.
        """
        self._rearm_at_center = True
