# tests/test_tasks_api.py
# PURPOSE: owner-scoped CRUD with full-replace edits.

from datetime import datetime
from typing import Dict

from workaholic.db_models import TaskDB

from .conftest import signup_and_login


def _create_task(client, title: str, **fields) -> Dict:
    """Helper: create a task and return the task JSON."""
    payload = {"title": title, **fields}
    r = client.post("/api/tasks", json=payload)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    return body["task"]


def test_tasks_require_login(client):
    r = client.get("/api/tasks")
    assert r.status_code == 401


def test_create_with_defaults(auth_client):
    task = _create_task(auth_client, "Buy milk")
    assert task["status"] == "pending"
    assert task["priority"] == "medium"
    assert task["repeat"] == "once"
    assert task["days"] == [] and task["dates"] == []
    assert task["user"] == "alice"
    assert task["id"]
    assert "createdAt" in task and "updatedAt" in task


def test_create_and_list(auth_client):
    created = _create_task(
        auth_client,
        "Dentist",
        description="https://example.com/clinic",
        priority="high",
        repeat="date",
        dates=["2025-09-23", "2025-09-25"],
        time="18:00",
    )

    r = auth_client.get("/api/tasks")
    assert r.status_code == 200
    data = r.json()
    assert data["user"] == "alice"
    assert [t["id"] for t in data["tasks"]] == [created["id"]]
    got = data["tasks"][0]
    assert got["dates"] == ["2025-09-23", "2025-09-25"]
    assert got["time"] == "18:00"
    assert got["description"] == "https://example.com/clinic"


def test_invalid_fields_are_rejected(auth_client):
    assert auth_client.post("/api/tasks", json={"title": ""}).status_code == 422
    assert auth_client.post("/api/tasks", json={"title": "x", "status": "done"}).status_code == 422
    assert auth_client.post("/api/tasks", json={"title": "x", "time": "25:00"}).status_code == 422
    assert auth_client.post("/api/tasks", json={"title": "x", "dates": ["23/09/2025"]}).status_code == 422


def test_put_replaces_every_field(auth_client):
    created = _create_task(auth_client, "Gym", repeat="days", days=["Monday"], time="07:00", priority="high")

    r = auth_client.put(f"/api/tasks/{created['id']}", json={"title": "Gym (evening)", "status": "in-progress"})
    assert r.status_code == 200
    task = r.json()["task"]
    assert task["title"] == "Gym (evening)"
    assert task["status"] == "in-progress"
    # Fields omitted from a PUT fall back to defaults
    assert task["priority"] == "medium"
    assert task["repeat"] == "once"
    assert task["days"] == []
    assert task["time"] is None
    assert task["createdAt"] == created["createdAt"]


def test_rescheduling_clears_last_notification(auth_client, db):
    fields = {"repeat": "date", "dates": ["2025-09-23"], "time": "18:00"}
    created = _create_task(auth_client, "Dentist", **fields)
    db.query(TaskDB).filter(TaskDB.id == created["id"]).update({"last_notified_at": datetime(2025, 9, 23, 17, 30)})
    db.commit()

    # Same schedule, new title: the notification stamp stays
    r = auth_client.put(f"/api/tasks/{created['id']}", json={"title": "Dentist (Dr. Lee)", **fields})
    assert r.json()["task"]["lastNotifiedAt"].startswith("2025-09-23T17:30")

    r = auth_client.put(f"/api/tasks/{created['id']}", json={"title": "Dentist", **fields, "time": "18:30"})
    assert r.status_code == 200
    assert r.json()["task"]["lastNotifiedAt"] is None


def test_timestamp_field_round_trips_as_utc(auth_client):
    created = _create_task(auth_client, "Standup", taskTime="2025-09-23T11:00:00+02:00")
    assert created["taskTime"].startswith("2025-09-23T09:00:00")


def test_delete_task(auth_client):
    created = _create_task(auth_client, "To remove")

    r = auth_client.delete(f"/api/tasks/{created['id']}")
    assert r.status_code == 200
    assert r.json() == {"success": True}

    r2 = auth_client.delete(f"/api/tasks/{created['id']}")
    assert r2.status_code == 404


def test_tasks_are_owner_scoped(client):
    signup_and_login(client, "alice", "pw")
    mine = _create_task(client, "Alice's task")

    signup_and_login(client, "bob", "pw")
    assert client.get("/api/tasks").json()["tasks"] == []
    assert client.put(f"/api/tasks/{mine['id']}", json={"title": "hijack"}).status_code == 404
    assert client.delete(f"/api/tasks/{mine['id']}").status_code == 404
