"""Tests for alert selection, deduplication and the HTTP clients."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp

from caresignal.alerting import (
    AlertDispatcher, NotificationClient, StatusReportClient
)
from caresignal.config import get_default_config
from caresignal.models import (
    BlinkAction, BlinkDetected, DirectionChanged, Expression, GestureAction,
    HeadPose, SleepState, SleepTransition, StatusReport
)


# ── Helpers ───────────────────────────────────────────────────

def _dispatcher() -> AlertDispatcher:
    return AlertDispatcher(get_default_config())


def _fake_session(status: int = 200, error: Exception = None) -> MagicMock:
    """aiohttp.ClientSession stand-in whose post() returns ``status``."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value="upstream error")

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = context
    return session


def _client(cls, session, url="http://relay.test/notify"):
    client = cls(url, timeout_seconds=1.0)
    client._session = session
    return client


# ── Dispatcher: dedup ─────────────────────────────────────────

def test_repeated_condition_sent_once():
    dispatcher = _dispatcher()
    assert dispatcher.select([BlinkAction("water")]) == BlinkAction("water")

    sent = [dispatcher.select([BlinkAction("water")]) for _ in range(1000)]
    assert sent == [None] * 1000
    assert dispatcher.suppressed_count == 1000


def test_change_and_revert_resends():
    dispatcher = _dispatcher()
    sequence = [BlinkAction("water"), BlinkAction("food"), BlinkAction("water")]
    assert [dispatcher.select([c]) for c in sequence] == sequence


def test_same_action_from_blink_and_gesture_are_distinct():
    dispatcher = _dispatcher()
    assert dispatcher.select([BlinkAction("emergency")]) is not None
    assert dispatcher.select([GestureAction("emergency")]) is not None


def test_persisting_sleep_state_not_resent():
    dispatcher = _dispatcher()
    assert dispatcher.select([SleepTransition(SleepState.SLEEPING)]) is not None
    for _ in range(50):
        assert dispatcher.select([]) is None
    assert dispatcher.select([SleepTransition(SleepState.AWAKE)]) is not None


def test_non_alert_events_ignored():
    dispatcher = _dispatcher()
    events = [BlinkDetected(consecutive=1, total=1), DirectionChanged(HeadPose.LEFT)]
    assert dispatcher.select(events) is None
    assert dispatcher.pending == []


# ── Dispatcher: priority ──────────────────────────────────────

def test_action_beats_sleep_transition():
    dispatcher = _dispatcher()
    events = [SleepTransition(SleepState.SLEEPING), GestureAction("emergency")]
    assert dispatcher.select(events) == GestureAction("emergency")
    assert dispatcher.pending == [SleepTransition(SleepState.SLEEPING)]


def test_pending_condition_sent_on_later_tick():
    dispatcher = _dispatcher()
    dispatcher.select([SleepTransition(SleepState.SLEEPING), BlinkAction("water")])
    assert dispatcher.select([]) == SleepTransition(SleepState.SLEEPING)
    assert dispatcher.pending == []


def test_last_sent_not_rolled_back():
    dispatcher = _dispatcher()
    dispatcher.select([BlinkAction("water")])
    # Delivery outcome is never reported back
    assert dispatcher.last_sent == BlinkAction("water")
    assert dispatcher.select([BlinkAction("water")]) is None


# ── Dispatcher: rendering / reports ───────────────────────────

def test_render_messages():
    dispatcher = _dispatcher()
    assert dispatcher.render(BlinkAction("water")) == "Water Requested"
    assert dispatcher.render(BlinkAction("food")) == "Food Requested"
    assert dispatcher.render(GestureAction("washroom")) == "Washroom Requested"
    assert dispatcher.render(GestureAction("emergency")) == "EMERGENCY ALERT"
    assert dispatcher.render(SleepTransition(SleepState.SLEEPING)) == "Patient is Sleeping"
    assert dispatcher.render(SleepTransition(SleepState.AWAKE)) == "Patient is Awake"


def test_render_unknown_action_falls_back_to_title_case():
    assert _dispatcher().render(GestureAction("call_nurse")) == "Call Nurse"


def test_build_report_copies_durations():
    dispatcher = _dispatcher()
    durations = {"neutral": 4.0, "happy": 1.0, "surprised": 0.0}
    report = dispatcher.build_report(
        SleepState.AWAKE, durations, total_blinks=3,
        expression=Expression.HAPPY, now=12.0,
    )
    durations["neutral"] = 99.0

    assert report.expression_durations["neutral"] == 4.0
    assert report.total_blinks == 3
    assert report.expression == Expression.HAPPY
    assert dispatcher.last_report_at == 12.0
    assert dispatcher.last_status == SleepState.AWAKE


# ── HTTP clients ──────────────────────────────────────────────

def test_notification_posts_message():
    session = _fake_session(200)
    client = _client(NotificationClient, session)

    assert asyncio.run(client.send_message("Water Requested")) is True
    session.post.assert_called_once_with(
        "http://relay.test/notify", json={"message": "Water Requested"}
    )


def test_notification_non_2xx_returns_false():
    client = _client(NotificationClient, _fake_session(500))
    assert asyncio.run(client.send_message("Water Requested")) is False


def test_notification_connection_error_returns_false():
    error = aiohttp.ClientConnectionError("connection refused")
    client = _client(NotificationClient, _fake_session(error=error))
    assert asyncio.run(client.send_message("Water Requested")) is False


def test_notification_timeout_returns_false():
    client = _client(NotificationClient, _fake_session(error=asyncio.TimeoutError()))
    assert asyncio.run(client.send_message("Water Requested")) is False


def test_notification_without_url_does_not_post():
    session = _fake_session(200)
    client = _client(NotificationClient, session, url="")
    assert asyncio.run(client.send_message("Water Requested")) is False
    session.post.assert_not_called()


def test_status_report_posts_dict():
    session = _fake_session(204)
    client = _client(StatusReportClient, session, url="http://relay.test/status")
    report = StatusReport(
        status=SleepState.SLEEPING,
        expression_durations={"neutral": 1.5, "happy": 0.0, "surprised": 0.0},
    )

    assert asyncio.run(client.send_report(report)) is True
    _, kwargs = session.post.call_args
    assert kwargs["json"]["status"] == "sleeping"
    assert kwargs["json"]["expression_durations"]["neutral"] == 1.5


def test_close_closes_session():
    session = _fake_session(200)
    client = _client(NotificationClient, session)
    asyncio.run(client.close())
    session.close.assert_awaited_once()
    assert client._session is None
