# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Data models for CareSignal.

Frames, per-tick geometry, detector state, and the events produced by the
landmark-to-event pipeline.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np


class SleepState(Enum):
    """Patient sleep/wake state."""

    AWAKE = "awake"
    SLEEPING = "sleeping"


class HeadPose(Enum):
    """Discrete head direction."""

    CENTER = "center"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


class Expression(Enum):
    """Facial expression label."""

    NEUTRAL = "neutral"
    HAPPY = "happy"
    SURPRISED = "surprised"


@dataclass(frozen=True, eq=False)
class LandmarkFrame:
    """One tick of detector output.

    Attributes:
        points: Array of shape (N, 2) with normalized x, y coordinates
        valid: False when no face was found this tick
        timestamp: Seconds (monotonic clock) when the frame was captured
    """

    points: Optional[np.ndarray] = None
    valid: bool = True
    timestamp: float = field(default_factory=time.monotonic)

    @classmethod
    def missing(cls, timestamp: Optional[float] = None) -> "LandmarkFrame":
        """Create a no-detection frame."""
        if timestamp is None:
            timestamp = time.monotonic()
        return cls(points=None, valid=False, timestamp=timestamp)

    @classmethod
    def from_points(
        cls,
        points: Sequence[Sequence[float]],
        timestamp: Optional[float] = None,
    ) -> "LandmarkFrame":
        """Create a valid frame from a sequence of (x, y) pairs."""
        array = np.asarray(points, dtype=float)
        if array.ndim != 2 or array.shape[1] < 2:
            raise ValueError(f"Expected (N, 2) landmarks, got shape {array.shape}")
        array = array[:, :2].copy()
        array.setflags(write=False)
        if timestamp is None:
            timestamp = time.monotonic()
        return cls(points=array, valid=True, timestamp=timestamp)

    @property
    def point_count(self) -> int:
        """Number of landmarks in the frame (0 when missing)."""
        if self.points is None:
            return 0
        return int(self.points.shape[0])


@dataclass(frozen=True)
class GeometryFrame:
    """Scalar measurements derived from one frame."""

    left_ear: float
    right_ear: float
    avg_ear: float
    nose_offset_x: float  # mirrored, distance from 0.5
    nose_offset_y: float
    smile_ratio: float
    mouth_open_ratio: float
    degenerate: bool = False

    @property
    def nose_x(self) -> float:
        """Mirrored nose position in [0, 1]."""
        return 0.5 + self.nose_offset_x

    @property
    def nose_y(self) -> float:
        """Nose vertical position in [0, 1]."""
        return 0.5 + self.nose_offset_y


@dataclass
class BlinkState:
    """Blink counters, mutated every tick by the blink/sleep detector."""

    is_eye_closed: bool = False
    consecutive_closed_frames: int = 0
    consecutive_open_frames: int = 0
    consecutive_blink_count: int = 0
    total_blink_count: int = 0


# ==================== Events ====================


class Event:
    """Base class for everything the pipeline emits."""


@dataclass(frozen=True)
class BlinkDetected(Event):
    """Rising edge into the closed-eye state."""

    consecutive: int
    total: int


@dataclass(frozen=True)
class DirectionChanged(Event):
    """Head moved to a new non-center direction."""

    direction: HeadPose


@dataclass(frozen=True)
class ExpressionChanged(Event):
    """Expression label changed."""

    previous: Expression
    current: Expression


@dataclass(frozen=True)
class BlinkAction(Event):
    """Request signalled by a blink count (e.g. water, food)."""

    action: str


@dataclass(frozen=True)
class GestureAction(Event):
    """Request signalled by a head-gesture pattern (e.g. washroom, emergency)."""

    action: str


@dataclass(frozen=True)
class SleepTransition(Event):
    """Sleep/wake state changed."""

    state: SleepState


AlertCondition = Union[BlinkAction, GestureAction, SleepTransition]


def is_alert_condition(event: Event) -> bool:
    """Whether an event is something the dispatcher may notify about."""
    return isinstance(event, (BlinkAction, GestureAction, SleepTransition))


# ==================== Reports ====================


@dataclass
class StatusReport:
    """Periodic snapshot sent to the status sink."""

    status: SleepState
    expression_durations: Dict[str, float]
    total_blinks: int = 0
    expression: Expression = Expression.NEUTRAL
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "status": self.status.value,
            "expression_durations": dict(self.expression_durations),
            "total_blinks": self.total_blinks,
            "expression": self.expression.value,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusReport":
        """Create from dictionary."""
        return cls(
            status=SleepState(data.get("status", "awake")),
            expression_durations={
                str(k): float(v) for k, v in (data.get("expression_durations") or {}).items()
            },
            total_blinks=int(data.get("total_blinks", 0)),
            expression=Expression(data.get("expression", "neutral")),
            timestamp=datetime.fromisoformat(data["timestamp"]) if data.get("timestamp") else datetime.now(),
        )


@dataclass
class MonitorStatus:
    """Comprehensive snapshot of a running session."""

    timestamp: datetime
    sleep_state: SleepState
    head_pose: HeadPose
    expression: Expression
    consecutive_blinks: int
    total_blinks: int
    gesture_sequence: list
    expression_durations: Dict[str, float]
    frames_processed: int = 0
    frames_missing: int = 0
    skipped_frames: int = 0
    last_alert: Optional[str] = None
    uptime_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "sleep_state": self.sleep_state.value,
            "head_pose": self.head_pose.value,
            "expression": self.expression.value,
            "consecutive_blinks": self.consecutive_blinks,
            "total_blinks": self.total_blinks,
            "gesture_sequence": [p.value for p in self.gesture_sequence],
            "expression_durations": dict(self.expression_durations),
            "frames_processed": self.frames_processed,
            "frames_missing": self.frames_missing,
            "skipped_frames": self.skipped_frames,
            "last_alert": self.last_alert,
            "uptime_seconds": self.uptime_seconds,
        }
