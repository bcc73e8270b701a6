from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app
from security import TokenService
from settings import Settings


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def tokens(clock):
    return TokenService("test-secret", clock=clock)


@pytest.fixture
def db():
    return mongomock.MongoClient()["budget_tracker_test"]


@pytest.fixture
def settings():
    return Settings(jwt_secret="test-secret", bcrypt_rounds=4, database_name="budget_tracker_test")


@pytest.fixture
def client(settings, db, tokens):
    app = create_app(settings=settings, database=db, tokens=tokens)
    with TestClient(app) as c:
        yield c


def register(client, email="alice@example.com", password="s3cret"):
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": response.json()["token"]}


@pytest.fixture
def alice(client):
    return register(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return register(client, "bob@example.com")
