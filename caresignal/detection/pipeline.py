# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Per-frame processing pipeline.

Runs one landmark frame through every stage in order:
1. Geometry extraction (EAR, nose offset, mouth ratios)
2. Blink counting + sleep/wake detection
3. Head pose classification
4. Gesture sequence matching (consumes stage 3 direction changes)
5. Expression classification + duration accounting

All mutable state lives in a SessionState owned by the caller.
"""

import logging
from dataclasses import dataclass
from typing import List

from caresignal.config import Config
from caresignal.detection.blink import BlinkSleepDetector
from caresignal.detection.expression import ExpressionClassifier
from caresignal.detection.geometry import GeometryExtractor
from caresignal.detection.gesture import GestureSequenceMatcher
from caresignal.detection.head_pose import HeadPoseClassifier
from caresignal.models import (
    DirectionChanged, Event, GestureAction, LandmarkFrame
)

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Everything the pipeline remembers between frames."""

    geometry: GeometryExtractor
    blink: BlinkSleepDetector
    head_pose: HeadPoseClassifier
    gestures: GestureSequenceMatcher
    expression: ExpressionClassifier
    expected_landmarks: int = 478
    frames_processed: int = 0
    frames_missing: int = 0

    @classmethod
    def create(cls, config: Config) -> "SessionState":
        """Build fresh state for a new session."""
        return cls(
            geometry=GeometryExtractor(config.landmarks),
            blink=BlinkSleepDetector(config.blink, config.blink_actions),
            head_pose=HeadPoseClassifier(config.head_pose),
            gestures=GestureSequenceMatcher(config.gestures),
            expression=ExpressionClassifier(config.expression),
            expected_landmarks=config.landmarks.count,
        )


def _has_detection(frame: LandmarkFrame, expected: int) -> bool:
    if not frame.valid or frame.points is None:
        return False
    if frame.point_count != expected:
        logger.warning(
            f"Frame has {frame.point_count} landmarks, expected {expected}; "
            f"treating as missing"
        )
        return False
    return True


def process_frame(frame: LandmarkFrame, state: SessionState) -> List[Event]:
    """Process a single frame through the pipeline.

    Args:
        frame: Landmark frame for this tick
        state: Session state, mutated in place

    Returns:
        Events produced this tick, in stage order
    """
    events: List[Event] = []

    if not _has_detection(frame, state.expected_landmarks):
        state.frames_missing += 1
        events.extend(state.blink.update_missing())
        state.expression.mark_gap()
        return events

    state.frames_processed += 1

    # Stage 1: Geometry
    geometry = state.geometry.extract(frame)

    # Stage 2: Blink / sleep
    events.extend(state.blink.update(geometry.avg_ear))

    # Stage 3: Head pose
    direction = state.head_pose.update(geometry)

    # Stage 4: Gesture sequence
    if direction is not None:
        events.append(DirectionChanged(direction))
        action = state.gestures.record(direction)
        if action:
            events.append(GestureAction(action))
            state.head_pose.rearm()
    elif state.gestures.tick():
        state.head_pose.reset()

    # Stage 5: Expression
    changed = state.expression.update(geometry, frame.timestamp)
    if changed is not None:
        events.append(changed)

    return events
