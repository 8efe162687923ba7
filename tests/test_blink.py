"""Tests for blink counting, burst actions and sleep/wake detection."""

from typing import List

from caresignal.config import BlinkConfig
from caresignal.detection.blink import BlinkSleepDetector
from caresignal.models import (
    BlinkAction, BlinkDetected, Event, SleepState, SleepTransition
)

OPEN = 0.30
CLOSED = 0.10


# ── Helpers ───────────────────────────────────────────────────

def _detector(**overrides) -> BlinkSleepDetector:
    return BlinkSleepDetector(BlinkConfig(**overrides), {5: "water", 7: "food"})


def _feed(detector: BlinkSleepDetector, ear: float, count: int) -> List[Event]:
    events: List[Event] = []
    for _ in range(count):
        events.extend(detector.update(ear))
    return events


def _burst(detector: BlinkSleepDetector, blinks: int) -> List[Event]:
    """Blinks separated by short open gaps, then a long open stretch."""
    events: List[Event] = []
    for _ in range(blinks):
        events.extend(_feed(detector, CLOSED, 2))
        events.extend(_feed(detector, OPEN, 5))
    events.extend(_feed(detector, OPEN, 40))
    return events


def _of_type(events, cls):
    return [e for e in events if isinstance(e, cls)]


# ── Blink edges ───────────────────────────────────────────────

def test_single_crossing_counts_one_blink():
    detector = _detector()
    assert detector.update(OPEN) == []

    events = detector.update(CLOSED)
    assert events == [BlinkDetected(consecutive=1, total=1)]
    assert detector.state.consecutive_blink_count == 1
    assert detector.state.total_blink_count == 1

    # Staying closed is not another blink
    assert _of_type(_feed(detector, CLOSED, 10), BlinkDetected) == []
    assert detector.state.total_blink_count == 1


def test_threshold_is_strict():
    detector = _detector(threshold=0.22)
    assert not detector.is_closed(0.22)
    assert detector.is_closed(0.2199)


def test_total_keeps_counting_across_bursts():
    detector = _detector()
    _burst(detector, 3)
    _burst(detector, 2)
    assert detector.state.total_blink_count == 5
    assert detector.state.consecutive_blink_count == 0


# ── Burst actions ─────────────────────────────────────────────

def test_five_blinks_request_water():
    detector = _detector()
    events = _burst(detector, 5)
    assert _of_type(events, BlinkAction) == [BlinkAction("water")]


def test_seven_blinks_request_food():
    detector = _detector()
    events = _burst(detector, 7)
    assert _of_type(events, BlinkAction) == [BlinkAction("food")]


def test_unmapped_counts_produce_no_action():
    for blinks in (1, 2, 3, 4, 6, 8):
        detector = _detector()
        events = _burst(detector, blinks)
        assert _of_type(events, BlinkAction) == [], blinks
        assert detector.state.consecutive_blink_count == 0


def test_burst_ends_after_exactly_reset_frames_open():
    detector = _detector(reset_frames=30)
    _feed(detector, CLOSED, 1)

    _feed(detector, OPEN, 29)
    assert detector.state.consecutive_blink_count == 1

    _feed(detector, OPEN, 1)
    assert detector.state.consecutive_blink_count == 0


def test_action_fires_on_the_resetting_tick():
    detector = _detector(reset_frames=30)
    for _ in range(5):
        _feed(detector, CLOSED, 1)
        _feed(detector, OPEN, 1)

    # 1 open frame already counted after the last blink
    assert _feed(detector, OPEN, 28) == []
    assert detector.update(OPEN) == [BlinkAction("water")]


# ── Sleep / wake ──────────────────────────────────────────────

def test_209_closed_frames_do_not_sleep():
    detector = _detector()
    events = _feed(detector, CLOSED, 209)
    events.extend(detector.update(OPEN))

    assert _of_type(events, SleepTransition) == []
    assert detector.sleep_state == SleepState.AWAKE


def test_210_closed_frames_sleep_exactly_once():
    detector = _detector()
    assert _of_type(_feed(detector, CLOSED, 209), SleepTransition) == []

    assert _of_type(detector.update(CLOSED), SleepTransition) == [
        SleepTransition(SleepState.SLEEPING)
    ]
    assert _of_type(_feed(detector, CLOSED, 300), SleepTransition) == []
    assert detector.sleep_state == SleepState.SLEEPING


def test_wakes_after_awake_threshold_open_frames():
    detector = _detector()
    _feed(detector, CLOSED, 210)

    assert _of_type(_feed(detector, OPEN, 44), SleepTransition) == []
    assert detector.sleep_state == SleepState.SLEEPING

    assert _of_type(detector.update(OPEN), SleepTransition) == [
        SleepTransition(SleepState.AWAKE)
    ]
    assert _of_type(_feed(detector, OPEN, 100), SleepTransition) == []


def test_short_opening_does_not_wake():
    detector = _detector()
    _feed(detector, CLOSED, 210)
    _feed(detector, OPEN, 20)
    _feed(detector, CLOSED, 5)
    events = _feed(detector, OPEN, 44)

    assert _of_type(events, SleepTransition) == []
    assert detector.sleep_state == SleepState.SLEEPING


def test_apply_sleep_state_is_idempotent():
    detector = _detector()
    assert detector.apply_sleep_state(SleepState.AWAKE) is False
    assert detector.apply_sleep_state(SleepState.SLEEPING) is True
    assert detector.apply_sleep_state(SleepState.SLEEPING) is False
    assert detector.sleep_state == SleepState.SLEEPING


# ── Missing detections ────────────────────────────────────────

def test_missing_frames_complete_a_burst_under_open_policy():
    detector = _detector(missing_detection="open")
    for _ in range(5):
        _feed(detector, CLOSED, 2)
        _feed(detector, OPEN, 3)

    events: List[Event] = []
    for _ in range(30):
        events.extend(detector.update_missing())

    assert _of_type(events, BlinkAction) == [BlinkAction("water")]


def test_missing_frame_breaks_closed_streak_under_open_policy():
    detector = _detector(missing_detection="open")
    _feed(detector, CLOSED, 150)
    detector.update_missing()
    events = _feed(detector, CLOSED, 150)

    assert _of_type(events, SleepTransition) == []
    assert detector.state.consecutive_closed_frames == 150
    # Same closure on both sides of the gap
    assert _of_type(events, BlinkDetected) == []
    assert detector.state.total_blink_count == 1
    assert detector.state.consecutive_blink_count == 1


def test_closure_across_gap_is_one_blink_under_both_policies():
    for policy in ("open", "hold"):
        detector = _detector(missing_detection=policy)
        events = detector.update(CLOSED)
        for _ in range(3):
            events.extend(detector.update_missing())
        events.extend(detector.update(CLOSED))

        assert _of_type(events, BlinkDetected) == [BlinkDetected(consecutive=1, total=1)], policy
        assert detector.state.is_eye_closed


def test_four_blinks_with_gaps_do_not_request_water():
    detector = _detector(missing_detection="open")
    events: List[Event] = []
    for _ in range(4):
        events.extend(detector.update(CLOSED))
        events.extend(detector.update_missing())
        events.extend(detector.update(CLOSED))
        events.extend(_feed(detector, OPEN, 3))
    events.extend(_feed(detector, OPEN, 40))

    assert detector.state.total_blink_count == 4
    assert _of_type(events, BlinkAction) == []


def test_missing_frames_never_wake_a_sleeper():
    for policy in ("open", "hold"):
        detector = _detector(missing_detection=policy)
        _feed(detector, CLOSED, 210)

        events: List[Event] = []
        for _ in range(100):
            events.extend(detector.update_missing())

        assert events == [], policy
        assert detector.sleep_state == SleepState.SLEEPING


def test_wake_needs_observed_open_frames_after_gap():
    detector = _detector(missing_detection="open")
    _feed(detector, CLOSED, 210)
    for _ in range(44):
        detector.update_missing()

    # Gap frames do not shorten the wake debounce
    assert _of_type(_feed(detector, OPEN, 44), SleepTransition) == []
    assert _of_type(detector.update(OPEN), SleepTransition) == [
        SleepTransition(SleepState.AWAKE)
    ]


def test_default_policy_is_hold():
    assert BlinkConfig().missing_detection == "hold"


def test_missing_frames_change_nothing_under_hold_policy():
    detector = _detector(missing_detection="hold")
    _feed(detector, CLOSED, 150)

    for _ in range(20):
        assert detector.update_missing() == []

    assert detector.state.consecutive_closed_frames == 150
    assert detector.state.is_eye_closed

    events = _feed(detector, CLOSED, 60)
    assert _of_type(events, BlinkDetected) == []
    assert _of_type(events, SleepTransition) == [SleepTransition(SleepState.SLEEPING)]
