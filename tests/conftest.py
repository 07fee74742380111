import os
import tempfile
from datetime import date

# Settings are read at import time, so the environment must be ready first
os.environ["DB_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="one-smile-logs-")
os.environ["LOG_COLORS"] = "false"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.user import User
from routers.dependencies import get_today

SIGNUP_DATE = date(2024, 1, 1)


def smile_text(n=100, word="sunshine "):
    """Entry text of at least n characters"""
    return (word * (n // len(word) + 1))[:n]


class FixedClock:
    def __init__(self, today):
        self.today = today


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    account = User(email="smiler@example.com", password_hash="not-a-real-hash", signup_date=SIGNUP_DATE)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def clock():
    return FixedClock(SIGNUP_DATE)


@pytest.fixture
def client(clock):
    app.dependency_overrides[get_today] = lambda: clock.today
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    response = client.post(
        "/auth/register",
        json={"email": "smiler@example.com", "password": "secret123"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
