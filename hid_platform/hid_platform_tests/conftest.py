"""
Shared fixtures: every test gets its own SQLite file database and a freshly
built application.
"""
import pytest
from fastapi.testclient import TestClient

from hid_platform.hid_platform.hid_service.config import Settings
from hid_platform.hid_platform.hid_service.exceptions import NotificationError
from hid_platform.hid_platform.hid_service.main import create_app

TEST_SECRET = "test-secret-key-for-hid-backend-0123456789"
DEFAULT_PASSWORD = "pw123456"


class RecordingNotifier:
    """Collects OTP deliveries instead of sending email."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_otp(self, to_email: str, code: str, expires_minutes: int) -> None:
        if self.fail:
            raise NotificationError("SMTP server unavailable")
        self.sent.append((to_email, code))


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        JWT_SECRET=TEST_SECRET,
        DATABASE_URL=f"sqlite:///{tmp_path / 'hid_test.db'}",
        PASSWORD_HASH_ROUNDS=4,
        ENVIRONMENT="test",
        DEV_MODE=True,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(settings, notifier):
    return create_app(settings, notifier=notifier)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def database(app, client):
    return app.state.database


@pytest.fixture
def service(app, client):
    return app.state.credential_service


def signup(client, email="a@x.com", password=DEFAULT_PASSWORD, first_name="A", last_name="B", **extra):
    body = {"email": email, "password": password, "firstName": first_name, "lastName": last_name}
    body.update(extra)
    return client.post("/api/auth/signup", json=body)


def login(client, email="a@x.com", password=DEFAULT_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def auth_headers(client, email="a@x.com", password=DEFAULT_PASSWORD):
    token = login(client, email, password).json()["accessToken"]
    return {"Authorization": f"Bearer {token}"}
