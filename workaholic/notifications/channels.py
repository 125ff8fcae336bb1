"""
Push channel adapters.

Both adapters expose the same capability, ``send(address, title, body, data)``,
and return a PushResult instead of raising, so the dispatcher's fallback chain is
an explicit branch:

- FcmChannel: direct push through Firebase Cloud Messaging (firebase-admin).
- ExpoRelayChannel: HTTP relay through the Expo push gateway (requests).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Protocol

import firebase_admin
import requests
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from .errors import ChannelNotInitialized, InvalidPushAddress, PushError, PushSendFailure

logger = logging.getLogger(__name__)

Channel = Literal["fcm", "expo"]

FIREBASE_APP_NAME = "workaholic"
DEFAULT_EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"

_EXPO_UUID_TOKEN = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class PushResult:
    channel: Channel
    ok: bool
    response: Any = None
    error: PushError | None = None

    @classmethod
    def success(cls, channel: Channel, response: Any = None) -> PushResult:
        return cls(channel=channel, ok=True, response=response)

    @classmethod
    def failure(cls, channel: Channel, error: PushError) -> PushResult:
        return cls(channel=channel, ok=False, error=error)

    @property
    def detail(self) -> str | None:
        return str(self.error) if self.error is not None else None


class PushChannel(Protocol):
    name: Channel

    @property
    def initialized(self) -> bool: ...

    def send(self, address: str, title: str, body: str, data: dict[str, Any] | None = None) -> PushResult: ...


# --- Direct push (FCM) -------------------------------------------------------


class FcmChannel:
    name: Channel = "fcm"

    def __init__(self, app: firebase_admin.App | None = None) -> None:
        self._app = app

    @classmethod
    def from_credentials_file(cls, path: str | Path | None, *, timeout: float = 10.0) -> FcmChannel:
        """
        Initialize a named firebase app from a service-account JSON file.

        A missing or unreadable credential yields an uninitialized channel; the
        process keeps running and only this channel is disabled.
        """
        if not path or not Path(path).is_file():
            logger.warning("FCM not initialized: credential file %s not found", path)
            return cls(None)
        try:
            cred = credentials.Certificate(str(path))
            app = firebase_admin.initialize_app(
                cred,
                options={"httpTimeout": timeout},
                name=FIREBASE_APP_NAME,
            )
        except (ValueError, OSError) as exc:
            logger.warning("FCM not initialized: %s", exc)
            return cls(None)
        logger.info("FCM initialized project=%s", app.project_id)
        return cls(app)

    @property
    def initialized(self) -> bool:
        return self._app is not None

    def send(self, address: str, title: str, body: str, data: dict[str, Any] | None = None) -> PushResult:
        if self._app is None:
            return PushResult.failure(self.name, ChannelNotInitialized("FCM not initialized."))
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data={str(k): str(v) for k, v in (data or {}).items()} or None,
            token=address,
        )
        try:
            message_id = messaging.send(message, app=self._app)
        except (firebase_exceptions.FirebaseError, ValueError) as exc:
            return PushResult.failure(self.name, PushSendFailure(str(exc)))
        return PushResult.success(self.name, message_id)

    def close(self) -> None:
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None


# --- Relay push (Expo) -------------------------------------------------------


def is_expo_push_token(token: Any) -> bool:
    """Same acceptance rules as the Expo server SDK's isExpoPushToken."""
    if not isinstance(token, str):
        return False
    if (token.startswith("ExponentPushToken[") or token.startswith("ExpoPushToken[")) and token.endswith("]"):
        return True
    return bool(_EXPO_UUID_TOKEN.match(token))


class ExpoRelayChannel:
    name: Channel = "expo"

    def __init__(
        self,
        url: str = DEFAULT_EXPO_PUSH_URL,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.s = session or requests.Session()
        self.s.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    @property
    def initialized(self) -> bool:
        # No credential to load; address checks happen per send
        return True

    def send(self, address: str, title: str, body: str, data: dict[str, Any] | None = None) -> PushResult:
        if not is_expo_push_token(address):
            logger.error("Push token %s is not a valid Expo push token", address)
            return PushResult.failure(
                self.name, InvalidPushAddress(f"{address!r} is not a valid Expo push token")
            )
        payload = {
            "to": address,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }
        try:
            r = self.s.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            return PushResult.failure(self.name, PushSendFailure(str(exc)))
        # Per-message tickets are not inspected: any HTTP answer counts as delivered.
        try:
            response = r.json()
        except ValueError:
            response = r.text
        return PushResult.success(self.name, response)

    def close(self) -> None:
        self.s.close()
