# PURPOSE: owner-scoped task store and user directory on top of SQLAlchemy.

from __future__ import annotations

from datetime import UTC, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from .db_models import TaskDB, UserDB, now_utc


# --- Session dependency ----------------------------------------------------


def get_db():
    """Yield a SQLAlchemy session (used as a FastAPI dependency)."""
    from .db import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# --- Helpers ---------------------------------------------------------------


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to naive UTC; naive input is assumed to be UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _apply_fields(row: TaskDB, data) -> None:
    row.title = data.title
    row.description = getattr(data, "description", None)
    row.status = getattr(data, "status", "pending")
    row.priority = getattr(data, "priority", "medium")
    row.repeat = getattr(data, "repeat", "once")
    row.days = list(getattr(data, "days", None) or [])
    row.dates = list(getattr(data, "dates", None) or [])
    row.time = getattr(data, "time", None)
    row.task_time = to_naive_utc(getattr(data, "task_time", None))


def _schedule_of(row: TaskDB) -> tuple:
    return (row.repeat, tuple(row.days or []), tuple(row.dates or []), row.time, row.task_time)


# --- CRUD: Tasks -----------------------------------------------------------


def list_tasks(db: Session, *, owner: str) -> List[TaskDB]:
    """Return all tasks of one owner, oldest first."""
    return (
        db.query(TaskDB)
        .filter(TaskDB.owner == owner)
        .order_by(TaskDB.created_at.asc(), TaskDB.id.asc())
        .all()
    )


def create_task(db: Session, data, *, owner: str) -> TaskDB:
    """Create a task from a Pydantic-like object."""
    now = now_utc()
    row = TaskDB(owner=owner, created_at=now, updated_at=now)
    _apply_fields(row, data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_task(db: Session, task_id: str, *, owner: str) -> Optional[TaskDB]:
    """Fetch a single task belonging to `owner`."""
    return (
        db.query(TaskDB)
        .filter(TaskDB.id == task_id, TaskDB.owner == owner)
        .one_or_none()
    )


def replace_task(db: Session, task_id: str, data, *, owner: str) -> Optional[TaskDB]:
    """Full replace of a task (PUT). Returns updated row or None if not found."""
    row = get_task(db, task_id, owner=owner)
    if not row:
        return None
    before = _schedule_of(row)
    _apply_fields(row, data)
    if _schedule_of(row) != before:
        # A rescheduled task is due again, even inside the dedupe window
        row.last_notified_at = None
    row.updated_at = now_utc()
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_task(db: Session, task_id: str, *, owner: str) -> bool:
    """Delete a task; returns True if deleted, False if not found/forbidden."""
    row = get_task(db, task_id, owner=owner)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True


def mark_notified(db: Session, task: TaskDB, when: datetime) -> None:
    """Stamp the last successful notification; does not touch updated_at."""
    task.last_notified_at = to_naive_utc(when)
    db.add(task)
    db.commit()


# --- User directory --------------------------------------------------------


def get_user(db: Session, username: str) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.username == username).one_or_none()


def create_user(db: Session, username: str, password_hash: str) -> UserDB:
    user = UserDB(username=username, password_hash=password_hash, created_at=now_utc())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_push_tokens(
    db: Session,
    username: str,
    *,
    device_token: Optional[str] = None,
    expo_push_token: Optional[str] = None,
) -> Optional[UserDB]:
    """Persist whichever push address is supplied; None leaves a field untouched."""
    user = get_user(db, username)
    if user is None:
        return None
    if device_token:
        user.device_token = device_token
    if expo_push_token:
        user.expo_push_token = expo_push_token
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
