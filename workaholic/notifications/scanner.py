"""
Due-task scanner.

Finds the tasks whose scheduled moment falls inside a lookahead window. The
matching rule depends on which task schema backs the store:

- timestamp: ``window.start <= task_time < window.end``
- repeat: ``time`` must equal the window's boundary minute (``end`` as HH:mm),
  and the task's date(s) must fall inside the window's date range.

Only ``repeat = date`` tasks are matched unless other kinds are opted in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List

from sqlalchemy.orm import Session

from ..config import Settings
from ..db_models import TaskDB
from ..store_db import to_naive_utc

logger = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(slots=True, frozen=True)
class DueWindow:
    start: datetime
    end: datetime

    @classmethod
    def ahead(cls, now: datetime, *, lead_minutes: int = 30, span_minutes: int = 1) -> DueWindow:
        """[now + lead, now + lead + span): the background reminder window."""
        start = now + timedelta(minutes=lead_minutes)
        return cls(start=start, end=start + timedelta(minutes=span_minutes))

    @classmethod
    def upcoming(cls, now: datetime, minutes: int) -> DueWindow:
        """[now, now + minutes]: the on-demand window."""
        return cls(start=now, end=now + timedelta(minutes=minutes))

    @property
    def boundary_time(self) -> str:
        return self.end.strftime("%H:%M")

    @property
    def first_date(self) -> str:
        return self.start.date().isoformat()

    @property
    def last_date(self) -> str:
        return self.end.date().isoformat()

    @property
    def boundary_weekday(self) -> str:
        return WEEKDAYS[self.end.weekday()]

    def contains_date(self, value: str) -> bool:
        # ISO dates compare correctly as strings
        return self.first_date <= value <= self.last_date


@dataclass(slots=True, frozen=True)
class ScanPolicy:
    schema: str = "repeat"
    pending_only: bool = True
    repeat_kinds: tuple[str, ...] = ("date",)
    dedupe_seconds: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> ScanPolicy:
        return cls(
            schema=settings.TASK_SCHEMA,
            pending_only=settings.SCAN_PENDING_ONLY,
            repeat_kinds=tuple(settings.SCAN_REPEAT_KINDS),
            dedupe_seconds=max(0, int(settings.NOTIFY_DEDUPE_SECONDS)),
        )


def _matches_repeat(task: TaskDB, window: DueWindow) -> bool:
    dates = task.dates or []
    if task.repeat == "date":
        return any(window.contains_date(d) for d in dates)
    if task.repeat == "once":
        return bool(dates) and window.contains_date(dates[0])
    if task.repeat == "days":
        return window.boundary_weekday in (task.days or [])
    return False


def _recently_notified(task: TaskDB, now: datetime, dedupe_seconds: int) -> bool:
    if dedupe_seconds <= 0 or task.last_notified_at is None:
        return False
    return to_naive_utc(now) - task.last_notified_at < timedelta(seconds=dedupe_seconds)


def scan_due_tasks(
    db: Session,
    window: DueWindow,
    policy: ScanPolicy,
    *,
    now: datetime | None = None,
) -> List[TaskDB]:
    """Return the tasks due inside `window`, in store order."""
    query = db.query(TaskDB)
    if policy.pending_only:
        query = query.filter(TaskDB.status == "pending")

    if policy.schema == "timestamp":
        query = query.filter(
            TaskDB.task_time.is_not(None),
            TaskDB.task_time >= to_naive_utc(window.start),
            TaskDB.task_time < to_naive_utc(window.end),
        )
        candidates: Iterable[TaskDB] = query.order_by(TaskDB.task_time.asc()).all()
    else:
        query = query.filter(
            TaskDB.repeat.in_(policy.repeat_kinds),
            TaskDB.time == window.boundary_time,
        )
        candidates = [t for t in query.order_by(TaskDB.created_at.asc()).all() if _matches_repeat(t, window)]

    reference = now or window.start
    due = [t for t in candidates if not _recently_notified(t, reference, policy.dedupe_seconds)]
    logger.debug(
        "scan schema=%s window=[%s, %s) due=%d",
        policy.schema,
        window.start.isoformat(),
        window.end.isoformat(),
        len(due),
    )
    return due
