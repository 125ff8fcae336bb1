# PURPOSE: push endpoints (direct FCM, Expo relay, per-user fallback),
# push-token registration and the on-demand due-task pass.

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import settings
from ..models import (
    DirectPushRequest,
    DueScanResponse,
    PushResponse,
    PushTokensUpdate,
    RelayPushRequest,
    UserPushRequest,
    UserPublic,
)
from ..notifications import (
    ChannelNotInitialized,
    DueWindow,
    InvalidPushAddress,
    NotificationDispatcher,
    PushResult,
    ScanPolicy,
    run_due_pass,
)
from ..notifications.channels import PushChannel
from ..store_db import get_db, get_user, update_push_tokens
from ..api.deps import get_clock, get_direct_channel, get_dispatcher, get_relay_channel, parse_minutes

router = APIRouter(tags=["notifications"])

METHOD_NAMES = {"fcm": "FCM", "expo": "Expo"}


def _raise_for_result(result: PushResult, error: str) -> None:
    if result.ok:
        return
    if isinstance(result.error, ChannelNotInitialized):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "FCM not initialized. Add firebase-service-account.json."},
        )
    if isinstance(result.error, InvalidPushAddress):
        # Rejected before any network call
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": error, "details": result.detail},
        )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": error, "details": result.detail},
    )


@router.post("/send-notification", response_model=PushResponse)
def send_notification(payload: DirectPushRequest, direct: PushChannel = Depends(get_direct_channel)):
    if not direct.initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "FCM not initialized. Add firebase-service-account.json."},
        )
    if not payload.device_token or not payload.title or not payload.body:
        raise HTTPException(status_code=400, detail="deviceToken, title, and body required")
    result = direct.send(payload.device_token, payload.title, payload.body)
    _raise_for_result(result, "Notification send failed")
    return PushResponse(response=result.response)


@router.post("/send-expo-notification", response_model=PushResponse)
def send_expo_notification(payload: RelayPushRequest, relay: PushChannel = Depends(get_relay_channel)):
    if not payload.expo_push_token or not payload.title or not payload.body:
        raise HTTPException(status_code=400, detail="expoPushToken, title, and body required")
    result = relay.send(payload.expo_push_token, payload.title, payload.body)
    _raise_for_result(result, "Expo notification send failed")
    return PushResponse(response=result.response)


@router.post("/send-user-notification", response_model=PushResponse)
def send_user_notification(
    payload: UserPushRequest,
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    if not payload.title or not payload.body:
        raise HTTPException(status_code=400, detail="Missing title or body")
    row = get_user(db, user.username)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")

    delivery = dispatcher.deliver(row, payload.title, payload.body)
    if delivery.result is None:
        raise HTTPException(status_code=400, detail="No push token found for user.")
    error = "Expo notification send failed" if delivery.channel == "expo" else "Notification send failed"
    _raise_for_result(delivery.result, error)
    return PushResponse(method=METHOD_NAMES[delivery.channel], response=delivery.result.response)


@router.post("/test-notification")
def test_notification(
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
    direct: PushChannel = Depends(get_direct_channel),
):
    if not direct.initialized:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="FCM not initialized.")
    row = get_user(db, user.username)
    if row is None or not row.device_token:
        raise HTTPException(status_code=400, detail="No device token found for user.")
    result = direct.send(
        row.device_token,
        "Welcome Back!",
        f"Welcome back, {row.username}! This is a test notification.",
    )
    _raise_for_result(result, "Failed to send test notification")
    return {"success": True, "message": "Test notification sent."}


@router.post("/update-device-token")
def update_device_token(
    payload: PushTokensUpdate,
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
):
    if not payload.device_token and not payload.expo_push_token:
        raise HTTPException(status_code=400, detail="deviceToken or expoPushToken required")
    row = update_push_tokens(
        db,
        user.username,
        device_token=payload.device_token,
        expo_push_token=payload.expo_push_token,
    )
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "Push token(s) updated"}


@router.post("/save-push-token")
def save_push_token(
    payload: PushTokensUpdate,
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
):
    if not payload.expo_push_token:
        raise HTTPException(status_code=400, detail="expoPushToken is required")
    row = update_push_tokens(db, user.username, expo_push_token=payload.expo_push_token)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "Expo push token saved"}


@router.get("/send-due-task-notifications", response_model=DueScanResponse)
def send_due_task_notifications(
    minutes: int = Depends(parse_minutes),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Run one scan -> dispatch pass now, over [now, now + minutes]."""
    now = clock()
    report = run_due_pass(
        db,
        dispatcher,
        DueWindow.upcoming(now, minutes),
        ScanPolicy.from_settings(settings),
        now=now,
    )
    return DueScanResponse(
        message="Notifications sent (if any due tasks found).",
        attempted=report.attempted,
    )
