"""
Due-task notification scheduler.

A single background loop that, every interval:
- computes the due window from the current wall clock,
- scans the task store for due tasks,
- dispatches them one at a time through the NotificationDispatcher.

Passes never overlap: a pass that finds another one still running is skipped.
A tick that wakes up late also scans whatever the previous window left uncovered,
so timer drift never skips a boundary minute.
A failing pass is logged and the loop continues at the next interval.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session, sessionmaker

from .dispatcher import NotificationDispatcher, NotificationOutcome
from .scanner import DueWindow, ScanPolicy, scan_due_tasks

logger = logging.getLogger(__name__)

CATCH_UP_LIMIT = timedelta(hours=1)


@dataclass(slots=True)
class PassReport:
    window: DueWindow
    due: int = 0
    outcomes: list[NotificationOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return sum(1 for o in self.outcomes if o.channel != "none")

    @property
    def sent(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return self.attempted - self.sent


def run_due_pass(
    db: Session,
    dispatcher: NotificationDispatcher,
    window: DueWindow,
    policy: ScanPolicy,
    *,
    now: datetime,
) -> PassReport:
    """One full scan -> dispatch pass. Store errors propagate to the caller."""
    tasks = scan_due_tasks(db, window, policy, now=now)
    report = PassReport(window=window, due=len(tasks))
    report.outcomes = dispatcher.dispatch_all(db, tasks, now)
    logger.info(
        "due pass window_end=%s due=%d attempted=%d sent=%d failed=%d",
        window.end.isoformat(timespec="minutes"),
        report.due,
        report.attempted,
        report.sent,
        report.failed,
    )
    return report


def wall_clock(timezone: str) -> Callable[[], datetime]:
    tz = ZoneInfo(timezone)
    return lambda: datetime.now(tz)


def _minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


class NotificationScheduler:
    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: NotificationDispatcher,
        policy: ScanPolicy,
        *,
        interval_seconds: float = 60.0,
        lead_minutes: int = 30,
        span_minutes: int = 1,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.policy = policy
        self.interval_seconds = max(0.01, float(interval_seconds))
        self.lead_minutes = lead_minutes
        self.span_minutes = span_minutes
        self.clock = clock or wall_clock("UTC")
        self._pass_lock = threading.Lock()
        self._last_window: DueWindow | None = None
        self._task: asyncio.Task | None = None

    def window_for(self, now: datetime) -> DueWindow:
        if self.policy.schema == "timestamp":
            return DueWindow.ahead(now, lead_minutes=self.lead_minutes, span_minutes=self.span_minutes)
        return DueWindow.upcoming(now, self.lead_minutes)

    def windows_for(self, now: datetime) -> list[DueWindow]:
        """This tick's window preceded by any coverage the last successful pass left out."""
        current = self.window_for(now)
        last = self._last_window
        if last is None:
            return [current]
        if self.policy.schema == "timestamp":
            if current.start - CATCH_UP_LIMIT <= last.end < current.start:
                return [DueWindow(start=last.end, end=current.end)]
            return [current]

        last_minute = _minute(last.end)
        current_minute = _minute(current.end)
        if current_minute - last_minute > CATCH_UP_LIMIT:
            logger.warning(
                "due scan gap too large to catch up last=%s current=%s",
                last_minute.isoformat(timespec="minutes"),
                current_minute.isoformat(timespec="minutes"),
            )
            return [current]
        lead = timedelta(minutes=self.lead_minutes)
        missed = []
        boundary = last_minute + timedelta(minutes=1)
        while boundary < current_minute:
            logger.info("catching up skipped boundary %s", boundary.strftime("%H:%M"))
            missed.append(DueWindow(start=boundary - lead, end=boundary))
            boundary += timedelta(minutes=1)
        return missed + [current]

    def run_once(self, now: datetime | None = None) -> PassReport | None:
        """Run one pass; None if another pass is in progress or this one failed."""
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("previous due pass still running; skipping this tick")
            return None
        try:
            now = now or self.clock()
            windows = self.windows_for(now)
            report = PassReport(window=windows[-1])
            db = self.session_factory()
            try:
                for window in windows:
                    part = run_due_pass(db, self.dispatcher, window, self.policy, now=now)
                    report.due += part.due
                    report.outcomes.extend(part.outcomes)
            finally:
                db.close()
            # Only a completed pass moves the coverage forward
            self._last_window = windows[-1]
            return report
        except Exception:
            logger.exception("due pass failed")
            return None
        finally:
            self._pass_lock.release()

    async def run_forever(self) -> None:
        """Fixed-cadence loop; cancel the coroutine to stop it."""
        logger.info("notification scheduler started interval=%ss", self.interval_seconds)
        delay = self.interval_seconds
        while True:
            await asyncio.sleep(delay)
            started = time.monotonic()
            await asyncio.to_thread(self.run_once)
            delay = max(0.0, self.interval_seconds - (time.monotonic() - started))

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="notification-scheduler")
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("notification scheduler stopped")
