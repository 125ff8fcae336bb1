from datetime import datetime
from typing import Callable

from fastapi import Depends, HTTPException, Query, Request

from ..config import settings
from ..notifications import NotificationDispatcher
from ..notifications.channels import PushChannel
from ..notifications.scheduler import wall_clock


def get_direct_channel(request: Request) -> PushChannel:
    """FCM channel initialized in the lifespan (may be uninitialized)."""
    return request.app.state.fcm


def get_relay_channel(request: Request) -> PushChannel:
    return request.app.state.expo


def get_dispatcher(
    request: Request,
    direct: PushChannel = Depends(get_direct_channel),
    relay: PushChannel = Depends(get_relay_channel),
) -> NotificationDispatcher:
    return NotificationDispatcher(
        direct,
        relay,
        failure_log=getattr(request.app.state, "failure_log", None),
    )


def parse_minutes(minutes: str | None = Query(None)) -> int:
    """Lookahead for the on-demand scan; empty or unparsable falls back to 10."""
    if minutes is None or minutes == "":
        return 10
    try:
        value = int(minutes)
    except (TypeError, ValueError):
        return 10
    if value <= 0:
        return 10
    if value > 24 * 60:
        raise HTTPException(
            status_code=422,
            detail=[
                {
                    "type": "less_than_equal",
                    "loc": ["query", "minutes"],
                    "msg": "minutes must be at most 1440",
                    "input": minutes,
                }
            ],
        )
    return value


def get_clock() -> Callable[[], datetime]:
    """Wall clock used for due windows (HH:mm / YYYY-MM-DD in settings.TIMEZONE)."""
    return wall_clock(settings.TIMEZONE)
