# tests/conftest.py
# PURPOSE: create a TestClient, override the DB dependency to use a temp SQLite file,
# and replace both push channels with in-memory fakes.

# Ensure project root is on sys.path so `import workaholic` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import tempfile

# Settings are read at import time: no background loop, no real credential, no failure file.
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["FIREBASE_CREDENTIALS_FILE"] = ""
os.environ["NOTIFICATION_FAILURE_LOG"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.mkdtemp(), "app.db"))

import pytest
from fastapi.testclient import TestClient

from workaholic.api.deps import get_direct_channel, get_relay_channel
from workaholic.db import Base, make_engine, make_session_factory
from workaholic.main import app  # FastAPI app
from workaholic.rate_limit import limiter
from workaholic.store_db import get_db  # original dependency to override

from .fakes import FakeChannel


@pytest.fixture()
def session_factory():
    # 1) Create a temporary SQLite file (so data is isolated per test)
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    engine = make_engine(f"sqlite:///{tmp.name}")
    TestingSessionLocal = make_session_factory(engine)

    # 2) Create tables for tests
    Base.metadata.create_all(bind=engine)

    yield TestingSessionLocal

    # 3) Cleanup: drop tables, dispose engine, delete temp file
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.unlink(tmp.name)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def direct():
    return FakeChannel("fcm")


@pytest.fixture()
def relay():
    return FakeChannel("expo")


@pytest.fixture()
def client(session_factory, direct, relay):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_direct_channel] = lambda: direct
    app.dependency_overrides[get_relay_channel] = lambda: relay
    limiter.reset()

    # TestClient as a context manager runs the lifespan (session map, channels)
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    limiter.reset()


def signup_and_login(client, username: str = "alice", password: str = "secret") -> str:
    """Helper: register + log in; the client keeps the session cookie."""
    r = client.post("/api/signup", json={"username": username, "password": password})
    assert r.status_code == 200
    r = client.post("/api/login", json={"username": username, "password": password})
    assert r.status_code == 200
    return r.json()["token"]


@pytest.fixture()
def auth_client(client):
    signup_and_login(client)
    return client
