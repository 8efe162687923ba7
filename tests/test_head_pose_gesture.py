"""Tests for head direction changes and gesture sequence matching."""

from typing import List, Optional

from caresignal.config import (
    Config, GestureConfig, HeadPoseConfig, get_default_config
)
from caresignal.detection.gesture import GestureSequenceMatcher
from caresignal.detection.head_pose import HeadPoseClassifier
from caresignal.detection.pipeline import SessionState, process_frame
from caresignal.mocks import build_frame
from caresignal.models import (
    DirectionChanged, Event, GeometryFrame, GestureAction, HeadPose
)

L = HeadPose.LEFT
R = HeadPose.RIGHT
U = HeadPose.UP
D = HeadPose.DOWN

NOSE = {
    "center": {},
    "left": {"nose_x": 0.38},
    "right": {"nose_x": 0.62},
    "up": {"nose_y": 0.38},
    "down": {"nose_y": 0.68},
}


# ── Helpers ───────────────────────────────────────────────────

def _geometry(nose_x: float = 0.5, nose_y: float = 0.5) -> GeometryFrame:
    return GeometryFrame(
        left_ear=0.3,
        right_ear=0.3,
        avg_ear=0.3,
        nose_offset_x=nose_x - 0.5,
        nose_offset_y=nose_y - 0.5,
        smile_ratio=0.35,
        mouth_open_ratio=0.05,
    )


def _run(poses: List[str], config: Optional[Config] = None) -> List[Event]:
    """Feed one frame per named pose through a fresh session."""
    state = SessionState.create(config or get_default_config())
    events: List[Event] = []
    for i, pose in enumerate(poses):
        events.extend(process_frame(build_frame(i / 30.0, **NOSE[pose]), state))
    return events


def _gestures(events) -> List[str]:
    return [e.action for e in events if isinstance(e, GestureAction)]


def _directions(events) -> List[HeadPose]:
    return [e.direction for e in events if isinstance(e, DirectionChanged)]


# ── Classification ────────────────────────────────────────────

def test_classify_thresholds():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    assert classifier.classify(_geometry()) == HeadPose.CENTER
    assert classifier.classify(_geometry(nose_x=0.44)) == L
    assert classifier.classify(_geometry(nose_x=0.56)) == R
    assert classifier.classify(_geometry(nose_y=0.44)) == U
    assert classifier.classify(_geometry(nose_y=0.61)) == D
    assert classifier.classify(_geometry(nose_x=0.46)) == HeadPose.CENTER
    assert classifier.classify(_geometry(nose_y=0.58)) == HeadPose.CENTER


def test_dominant_axis_decides():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    # Mostly down, a little left
    assert classifier.classify(_geometry(nose_x=0.44, nose_y=0.7)) == D
    # Mostly left, slightly low but inside the vertical band
    assert classifier.classify(_geometry(nose_x=0.3, nose_y=0.58)) == L
    # Dominant horizontal axis inside its band is center
    assert classifier.classify(_geometry(nose_x=0.54, nose_y=0.53)) == HeadPose.CENTER


def test_return_to_same_direction_is_one_change():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    changes = [
        classifier.update(_geometry(nose_x=x))
        for x in (0.38, 0.5, 0.38, 0.5, 0.38)
    ]
    assert [c for c in changes if c] == [L]
    assert classifier.current == L


def test_change_through_center_is_two_changes():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    changes = [classifier.update(_geometry(nose_x=x)) for x in (0.38, 0.5, 0.62)]
    assert [c for c in changes if c] == [L, R]


def test_reset_forgets_last_direction():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    classifier.update(_geometry(nose_x=0.38))
    classifier.reset()
    assert classifier.update(_geometry(nose_x=0.38)) == L


def test_rearm_waits_for_center():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    classifier.update(_geometry(nose_x=0.62))
    classifier.rearm()

    # Still held right: not a new step
    assert classifier.update(_geometry(nose_x=0.62)) is None
    assert classifier.update(_geometry()) is None
    assert classifier.update(_geometry(nose_x=0.62)) == R


def test_rearm_dropped_by_next_change():
    classifier = HeadPoseClassifier(HeadPoseConfig())
    classifier.update(_geometry(nose_x=0.62))
    classifier.rearm()

    assert classifier.update(_geometry(nose_x=0.38)) == L
    classifier.update(_geometry())
    assert classifier.update(_geometry(nose_x=0.38)) is None


# ── Matcher ───────────────────────────────────────────────────

def test_matcher_rolls_over_old_directions():
    matcher = GestureSequenceMatcher(GestureConfig())
    results = [matcher.record(d) for d in (R, L, R, L, R)]
    assert results == [None, None, None, None, "washroom"]
    assert len(matcher.sequence) == 0


def test_matcher_ignores_center():
    matcher = GestureSequenceMatcher(GestureConfig())
    assert matcher.record(HeadPose.CENTER) is None
    assert len(matcher.sequence) == 0


def test_matcher_expires_after_timeout():
    matcher = GestureSequenceMatcher(GestureConfig(timeout_frames=60))
    matcher.record(L)

    assert not any(matcher.tick() for _ in range(60))
    assert list(matcher.sequence) == [L]

    assert matcher.tick() is True
    assert len(matcher.sequence) == 0
    assert matcher.age == 0


def test_tick_without_sequence_does_nothing():
    matcher = GestureSequenceMatcher(GestureConfig())
    assert matcher.tick() is False
    assert matcher.age == 0


# ── Through the pipeline ──────────────────────────────────────

def test_washroom_gesture():
    events = _run(["left", "right", "left", "right"])
    assert _gestures(events) == ["washroom"]
    assert _directions(events) == [L, R, L, R]


def test_emergency_gesture():
    events = _run(["up", "down", "up", "down"])
    assert _gestures(events) == ["emergency"]


def test_interleaved_center_matches_like_direct_sequence():
    direct = _run(["left", "right", "left", "right"])
    interleaved = _run(["left", "center", "right", "center", "left", "center", "right"])
    assert _gestures(direct) == _gestures(interleaved) == ["washroom"]
    assert _directions(direct) == _directions(interleaved)


def test_holding_each_direction_still_matches():
    poses = []
    for direction in ("left", "right", "left", "right"):
        poses += [direction] * 5 + ["center"] * 5
    assert _gestures(_run(poses)) == ["washroom"]


def test_gap_within_timeout_still_matches():
    events = _run(["left", "right", "left"] + ["center"] * 60 + ["right"])
    assert _gestures(events) == ["washroom"]


def test_gap_beyond_timeout_prevents_match():
    events = _run(["left", "right", "left"] + ["center"] * 61 + ["right"])
    assert _gestures(events) == []
    # The late right starts a fresh sequence
    assert _directions(events) == [L, R, L, R]


def test_mixed_sequence_matches_nothing():
    events = _run(["left", "up", "right", "down"])
    assert _gestures(events) == []


def test_timeout_lets_same_direction_register_again():
    events = _run(["left"] + ["center"] * 61 + ["left"])
    assert _directions(events) == [L, L]

    events = _run(["left"] + ["center"] * 30 + ["left"])
    assert _directions(events) == [L]


def test_next_gesture_may_start_with_previous_last_step():
    config = get_default_config()
    config.gestures.patterns["call_nurse"] = ["right", "left", "right", "left"]

    washroom = ["left", "right", "left", "right"]
    call_nurse = ["right", "left", "right", "left"]
    events = _run(washroom + ["right"] * 5 + ["center"] + call_nurse, config)

    assert _gestures(events) == ["washroom", "call_nurse"]
    assert _directions(events) == [L, R, L, R, R, L, R, L]


def test_holding_last_step_after_match_adds_nothing():
    events = _run(["left", "right", "left", "right"] + ["right"] * 20)
    assert _directions(events) == [L, R, L, R]
