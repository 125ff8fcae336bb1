# PURPOSE: request/response schemas (pydantic v2).
# JSON is camelCase to match the mobile client; Python attributes stay snake_case.

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

Status = Literal["pending", "in-progress", "completed", "cancelled"]
Priority = Literal["low", "medium", "high"]
Repeat = Literal["once", "days", "date"]
Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

DateStr = Annotated[str, StringConstraints(pattern=r"^\d{4}-\d{2}-\d{2}$")]
TimeStr = Annotated[str, StringConstraints(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# --- Tasks ---


class TaskIn(CamelModel):
    """Body of POST /api/tasks and PUT /api/tasks/{id} (PUT replaces every field)."""

    title: NonEmpty
    description: str | None = None
    status: Status = "pending"
    priority: Priority = "medium"
    repeat: Repeat = "once"
    days: list[Weekday] = Field(default_factory=list)
    dates: list[DateStr] = Field(default_factory=list)
    time: TimeStr | None = None
    task_time: datetime | None = None
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"title": "Gym", "repeat": "days", "days": ["Monday", "Thursday"], "time": "07:30"},
                {"title": "Dentist", "repeat": "date", "dates": ["2025-09-23"], "time": "18:00"},
            ]
        },
    )


class Task(CamelModel):
    id: str
    title: str
    description: str | None
    status: Status
    priority: Priority
    repeat: Repeat
    days: list[str]
    dates: list[str]
    time: str | None
    task_time: datetime | None = None
    last_notified_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    user: str = Field(validation_alias="owner")

    model_config = ConfigDict(from_attributes=True)  # ORM -> schema


class TaskList(CamelModel):
    user: str
    tasks: list[Task]


class TaskEnvelope(CamelModel):
    success: bool = True
    user: str
    task: Task


# --- User / Auth ---


class Credentials(BaseModel):
    username: NonEmpty
    password: NonEmpty


class UserPublic(CamelModel):
    username: str
    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    success: bool = True
    token: str


# --- Notifications ---


class DirectPushRequest(CamelModel):
    device_token: str | None = None
    title: str | None = None
    body: str | None = None


class RelayPushRequest(CamelModel):
    expo_push_token: str | None = None
    title: str | None = None
    body: str | None = None


class UserPushRequest(CamelModel):
    title: str | None = None
    body: str | None = None


class PushTokensUpdate(CamelModel):
    device_token: str | None = None
    expo_push_token: str | None = None


class PushResponse(BaseModel):
    success: bool = True
    method: str | None = None
    response: Any = None


class DueScanResponse(BaseModel):
    success: bool = True
    message: str
    attempted: int
