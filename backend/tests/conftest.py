import os
import shutil
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

# Configure a throwaway database and upload root before importing app modules.
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="robot_booking_pytest_"))

os.environ["DATABASE_URL"] = f"sqlite:///{_SESSION_DIR / 'test.db'}"
os.environ["UPLOAD_ROOT"] = str(_SESSION_DIR / "uploads")
os.environ["JWT_SECRET"] = "test-secret-0123456789-abcdefghijklmnop"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "Password!1"
os.environ["DB_INIT_MAX_ATTEMPTS"] = "1"
# Keep external integrations quiet during tests
os.environ["REDIS_URL"] = ""
os.environ["SMTP_HOST"] = ""

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from robot_booking import models  # noqa: E402,F401
from robot_booking.db import engine  # noqa: E402
from robot_booking.main import app  # noqa: E402
from robot_booking.models import Robot  # noqa: E402
from robot_booking.users import create_user  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Password!1"
USER_PASSWORD = "Secret!23"


def pytest_sessionfinish(session, exitstatus):
    """Cleanup temporary test files after the test session."""
    shutil.rmtree(_SESSION_DIR, ignore_errors=True)


def upcoming_wednesday(weeks_ahead: int = 1) -> datetime:
    today = date.today()
    days = (2 - today.weekday()) % 7 or 7
    day = today + timedelta(days=days + 7 * (weeks_ahead - 1))
    return datetime.combine(day, datetime.min.time())


@pytest.fixture(autouse=True)
def fresh_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_user(session):
    def _make(email: str, is_admin: bool = False, **fields):
        return create_user(session, email=email, password=USER_PASSWORD, is_admin=is_admin, **fields)
    return _make


@pytest.fixture
def make_robot(session):
    def _make(name: str = "R1", is_available: bool = True):
        robot = Robot(name=name, description=f"{name} test robot", is_available=is_available)
        session.add(robot)
        session.commit()
        session.refresh(robot)
        return robot
    return _make


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def login(client, email: str, password: str) -> dict:
    response = client.post("/api/account/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def register(client):
    def _register(email: str, **extra) -> dict:
        body = {"email": email, "password": USER_PASSWORD, "firstName": "Test", "lastName": "User"}
        body.update(extra)
        response = client.post("/api/account/register", json=body)
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _register
