# PURPOSE: define how Task and User rows look in the database.

import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def now_utc():
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


def new_task_id() -> str:
    return uuid.uuid4().hex


class TaskDB(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=new_task_id)
    owner = Column(String, nullable=False, index=True)  # username, not a relationship
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="pending")  # pending | in-progress | completed | cancelled
    priority = Column(String, default="medium")  # low | medium | high
    repeat = Column(String, default="once")  # once | days | date
    days = Column(JSON, default=list)  # ["Monday", "Wednesday"]
    dates = Column(JSON, default=list)  # ["2025-09-23", "2025-09-25"]
    time = Column(String(5), nullable=True)  # "18:00"
    task_time = Column(DateTime, nullable=True)  # naive UTC; timestamp schema only
    last_notified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc)


class UserDB(Base):
    __tablename__ = "users"
    username: Mapped[str] = mapped_column(String, primary_key=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    device_token: Mapped[str | None] = mapped_column(String, nullable=True)  # FCM
    expo_push_token: Mapped[str | None] = mapped_column(String, nullable=True)  # Expo relay
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc)


# Indexes used by the due-task scan
Index("ix_tasks_status", TaskDB.status)
Index("ix_tasks_time", TaskDB.time)
Index("ix_tasks_task_time", TaskDB.task_time)
