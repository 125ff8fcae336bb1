# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from workaholic.notifications import PushResult
from workaholic.notifications.errors import ChannelNotInitialized, PushError, PushSendFailure


@dataclass
class SentPush:
    address: str
    title: str
    body: str
    data: dict[str, Any] | None


@dataclass
class FakeChannel:
    """In-memory push channel: records every send and answers as configured."""

    name: str
    initialized: bool = True
    fail_with: PushError | None = None
    calls: list[SentPush] = field(default_factory=list)

    def send(self, address, title, body, data=None) -> PushResult:
        if not self.initialized:
            return PushResult.failure(self.name, ChannelNotInitialized("FCM not initialized."))
        self.calls.append(SentPush(address, title, body, data))
        if self.fail_with is not None:
            return PushResult.failure(self.name, self.fail_with)
        return PushResult.success(self.name, {"id": f"{self.name}-{len(self.calls)}"})

    def close(self) -> None:
        pass

    def fail(self, message: str = "provider unavailable") -> FakeChannel:
        self.fail_with = PushSendFailure(message)
        return self


class FakeResponse:
    def __init__(self, payload: Any = None, text: str = "") -> None:
        self._payload = payload
        self.text = text
        self.status_code = 200

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHttpSession:
    """Stand-in for requests.Session used by ExpoRelayChannel."""

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.headers: dict[str, str] = {}
        self.posts: list[dict[str, Any]] = []
        self.response = response or FakeResponse({"data": {"status": "ok", "id": "ticket-1"}})
        self.error = error
        self.closed = False

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True
