# tests/test_scheduler.py
# PURPOSE: pass semantics of the background loop: end-to-end pass, duplicate sends
# across ticks, no overlapping passes, and failures contained per pass.

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from workaholic.db_models import TaskDB, UserDB
from workaholic.notifications import (
    DueWindow,
    NotificationDispatcher,
    NotificationScheduler,
    ScanPolicy,
    run_due_pass,
)

NOW = datetime(2025, 9, 23, 17, 30)


def _seed(db, *, device_token="fcm-token", expo_push_token=None, **task_fields):
    db.add(UserDB(username="alice", password_hash="x", device_token=device_token, expo_push_token=expo_push_token))
    values = {"owner": "alice", "title": "Dentist", "repeat": "date", "dates": ["2025-09-23"], "time": "18:00"}
    values.update(task_fields)
    task = TaskDB(**values)
    db.add(task)
    db.commit()
    return task.id


def _scheduler(session_factory, direct, relay, **kwargs) -> NotificationScheduler:
    kwargs.setdefault("clock", lambda: NOW)
    return NotificationScheduler(
        session_factory,
        NotificationDispatcher(direct, relay),
        kwargs.pop("policy", ScanPolicy()),
        **kwargs,
    )


def test_end_to_end_pass_sends_to_direct_push(db, direct, relay):
    task_id = _seed(db, expo_push_token="ExponentPushToken[abc]")

    report = run_due_pass(
        db,
        NotificationDispatcher(direct, relay),
        DueWindow.upcoming(NOW, 30),
        ScanPolicy(),
        now=NOW,
    )

    assert report.due == 1
    assert report.attempted == 1
    assert report.sent == 1
    assert report.outcomes[0].task_id == task_id
    assert [c.address for c in direct.calls] == ["fcm-token"]
    assert relay.calls == []


def test_two_passes_notify_twice(session_factory, db, direct, relay):
    # No dedupe across ticks: an unchanged due set is notified on every pass
    _seed(db)
    scheduler = _scheduler(session_factory, direct, relay)

    first = scheduler.run_once()
    second = scheduler.run_once()

    assert first.attempted == 1
    assert second.attempted == 1
    assert len(direct.calls) == 2


def test_dedupe_policy_suppresses_second_send(session_factory, db, direct, relay):
    _seed(db)
    scheduler = _scheduler(session_factory, direct, relay, policy=ScanPolicy(dedupe_seconds=120))

    assert scheduler.run_once().sent == 1
    assert scheduler.run_once().due == 0
    assert len(direct.calls) == 1


def test_window_depends_on_schema(session_factory, direct, relay):
    repeat = _scheduler(session_factory, direct, relay, lead_minutes=30)
    assert repeat.window_for(NOW) == DueWindow.upcoming(NOW, 30)

    stamped = _scheduler(
        session_factory, direct, relay, policy=ScanPolicy(schema="timestamp"), lead_minutes=30, span_minutes=1
    )
    assert stamped.window_for(NOW) == DueWindow.ahead(NOW, lead_minutes=30, span_minutes=1)


def test_overlapping_pass_is_skipped(session_factory, direct, relay):
    scheduler = _scheduler(session_factory, direct, relay)
    scheduler._pass_lock.acquire()
    try:
        assert scheduler.run_once() is None
    finally:
        scheduler._pass_lock.release()
    assert scheduler.run_once() is not None


def test_failing_pass_is_contained(direct, relay):
    def broken_factory():
        raise RuntimeError("database is down")

    scheduler = _scheduler(broken_factory, direct, relay)
    assert scheduler.run_once() is None
    # The guard is released, so the next tick runs again
    assert scheduler.run_once() is None
    assert scheduler._pass_lock.locked() is False


def test_loop_keeps_ticking_until_stopped(session_factory, db, direct, relay):
    _seed(db)
    scheduler = _scheduler(session_factory, direct, relay, interval_seconds=0.01)

    async def scenario():
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.2)
        await scheduler.stop()

    asyncio.run(scenario())

    assert scheduler.running is False
    assert len(direct.calls) >= 2


def test_late_wakeups_do_not_skip_a_boundary_minute(session_factory, db, direct, relay):
    # Every wakeup lands 5 ms late, so the tick drifts across a minute edge
    db.add(UserDB(username="alice", password_hash="x", device_token="fcm-token"))
    first = datetime(2025, 9, 23, 17, 59)
    minutes = [(first + timedelta(minutes=i)).strftime("%H:%M") for i in range(21)]
    for hhmm in minutes:
        db.add(TaskDB(owner="alice", title=f"Task {hhmm}", repeat="date", dates=["2025-09-23"], time=hhmm))
    db.commit()
    scheduler = _scheduler(session_factory, direct, relay)

    start = datetime(2025, 9, 23, 17, 29, 59, 950000)
    for tick in range(20):
        assert scheduler.run_once(start + tick * timedelta(seconds=60.005)) is not None

    assert [c.title for c in direct.calls] == [f"Upcoming Task: Task {hhmm}" for hhmm in minutes]


def test_catch_up_covers_each_skipped_minute(session_factory, direct, relay):
    scheduler = _scheduler(session_factory, direct, relay)
    scheduler.run_once(NOW)

    windows = scheduler.windows_for(NOW + timedelta(minutes=3))
    assert [w.boundary_time for w in windows] == ["18:01", "18:02", "18:03"]
    # Repeated ticks inside one minute add nothing
    assert scheduler.windows_for(NOW) == [scheduler.window_for(NOW)]


def test_catch_up_is_bounded(session_factory, direct, relay):
    scheduler = _scheduler(session_factory, direct, relay)
    scheduler.run_once(NOW)

    later = NOW + timedelta(hours=3)
    assert scheduler.windows_for(later) == [scheduler.window_for(later)]


def test_timestamp_windows_stay_contiguous_across_late_ticks(session_factory, db, direct, relay):
    _seed(db, task_time=NOW + timedelta(minutes=31, milliseconds=2))
    scheduler = _scheduler(session_factory, direct, relay, policy=ScanPolicy(schema="timestamp"))

    assert scheduler.run_once(NOW).due == 0
    late = scheduler.run_once(NOW + timedelta(seconds=60.005))

    assert late.window.start == NOW + timedelta(minutes=31)
    assert late.due == 1
    assert len(direct.calls) == 1


def test_failed_pass_does_not_advance_coverage(session_factory, direct, relay):
    scheduler = _scheduler(session_factory, direct, relay)
    scheduler.run_once(NOW)
    healthy_factory = scheduler.session_factory

    def broken_factory():
        raise RuntimeError("database is down")

    scheduler.session_factory = broken_factory
    assert scheduler.run_once(NOW + timedelta(minutes=1)) is None

    # The minute the failed pass owned is still pending
    assert [w.boundary_time for w in scheduler.windows_for(NOW + timedelta(minutes=2))] == ["18:01", "18:02"]

    scheduler.session_factory = healthy_factory
    assert scheduler.run_once(NOW + timedelta(minutes=2)) is not None
    assert scheduler.windows_for(NOW + timedelta(minutes=2)) == [scheduler.window_for(NOW + timedelta(minutes=2))]
