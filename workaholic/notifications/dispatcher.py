from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Literal

from sqlalchemy.orm import Session

from ..db_models import TaskDB, UserDB
from ..store_db import get_user, mark_notified
from .channels import PushChannel, PushResult

logger = logging.getLogger(__name__)

OutcomeChannel = Literal["fcm", "expo", "none"]

NO_DESTINATION = "no destination"


@dataclass(slots=True, frozen=True)
class Delivery:
    """Final result of the fallback chain for one message."""

    result: PushResult | None
    attempts: int

    @property
    def ok(self) -> bool:
        return self.result is not None and self.result.ok

    @property
    def channel(self) -> OutcomeChannel:
        return self.result.channel if self.result is not None else "none"


@dataclass(slots=True, frozen=True)
class NotificationOutcome:
    task_id: str
    username: str
    channel: OutcomeChannel
    success: bool
    error_detail: str | None = None


def build_task_message(task: TaskDB) -> tuple[str, str]:
    """Title and body for an upcoming-task reminder."""
    title = f"Upcoming Task: {task.title}"
    if task.task_time is not None:
        return title, f"Your task starts at {task.task_time.strftime('%Y-%m-%d %H:%M')} UTC"
    if task.time:
        return title, f'Task "{task.title}" is due soon! It starts at {task.time}.'
    return title, f'Task "{task.title}" is due soon!'


class NotificationDispatcher:
    """
    Sends one message to a user, preferring direct push and falling back to
    the relay. For scanned tasks it also resolves the owner, stamps
    ``last_notified_at`` on success and appends failures to the failure log.
    """

    def __init__(
        self,
        direct: PushChannel,
        relay: PushChannel,
        *,
        failure_log: logging.Logger | None = None,
    ) -> None:
        self.direct = direct
        self.relay = relay
        self.failure_log = failure_log

    def deliver(
        self,
        user: UserDB,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> Delivery:
        result: PushResult | None = None
        attempts = 0

        if user.device_token:
            result = self.direct.send(user.device_token, title, body, data)
            attempts += 1
            if result.ok:
                return Delivery(result=result, attempts=attempts)
            logger.warning(
                "FCM send failed user=%s kind=%s: %s",
                user.username,
                result.error.kind if result.error else "-",
                result.detail,
            )

        if user.expo_push_token:
            result = self.relay.send(user.expo_push_token, title, body, data)
            attempts += 1

        return Delivery(result=result, attempts=attempts)

    def dispatch_task(self, db: Session, task: TaskDB, now: datetime) -> NotificationOutcome | None:
        """Notify the owner of one due task; None when the owner no longer exists."""
        user = get_user(db, task.owner)
        if user is None:
            logger.debug("skip task_id=%s: owner %s not found", task.id, task.owner)
            return None

        title, body = build_task_message(task)
        delivery = self.deliver(user, title, body, {"taskId": task.id})

        if delivery.result is None:
            logger.info("No push address for user=%s task_id=%s", user.username, task.id)
            return NotificationOutcome(
                task_id=task.id,
                username=user.username,
                channel="none",
                success=False,
                error_detail=NO_DESTINATION,
            )

        if delivery.ok:
            mark_notified(db, task, now)
            logger.info(
                "Notification sent to %s for task %s via %s", user.username, task.title, delivery.channel
            )
            return NotificationOutcome(
                task_id=task.id, username=user.username, channel=delivery.channel, success=True
            )

        detail = delivery.result.detail
        logger.warning("Failed to send notification to %s for task %s: %s", user.username, task.title, detail)
        if self.failure_log is not None:
            self.failure_log.error(
                "Failed to send notification to %s for task %s: %s", user.username, task.title, detail
            )
        return NotificationOutcome(
            task_id=task.id,
            username=user.username,
            channel=delivery.channel,
            success=False,
            error_detail=detail,
        )

    def dispatch_all(self, db: Session, tasks: Iterable[TaskDB], now: datetime) -> list[NotificationOutcome]:
        """Dispatch sequentially, in scan order."""
        outcomes: list[NotificationOutcome] = []
        for task in tasks:
            outcome = self.dispatch_task(db, task, now)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes
