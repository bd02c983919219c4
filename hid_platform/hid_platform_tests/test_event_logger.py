"""Tests for auth event logging and the dev event-log endpoint."""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from hid_platform.hid_platform.hid_service.main import create_app
from hid_platform.hid_platform.hid_service.models import AuthEvent
from hid_platform.hid_platform.hid_service.utils.event_logger import (
    ClientInfo,
    client_info,
    log_auth_event,
)

from .conftest import RecordingNotifier, login, make_settings, signup


def test_log_auth_event_persists_event(client, database):
    user_id = signup(client).json()["user"]["userId"]

    log_auth_event(database, "otp_verified", user_id, "a@x.com",
                   ClientInfo(ip_address="10.0.0.7", user_agent="pytest"), {"source": "test"})

    with database.session_scope() as session:
        event = session.query(AuthEvent).filter(AuthEvent.event_type == "otp_verified").one()
        assert event.user_id == user_id
        assert event.ip_address == "10.0.0.7"
        assert event.user_agent == "pytest"
        assert event.to_dict()["metadata"] == {"source": "test"}


def test_log_auth_event_rejects_unknown_type(database):
    with pytest.raises(ValueError):
        log_auth_event(database, "2fa_success", 1, "a@x.com")


def test_log_auth_event_swallows_database_errors(client, database):
    user_id = signup(client).json()["user"]["userId"]
    with patch("sqlalchemy.orm.Session.commit", side_effect=SQLAlchemyError("disk full")):
        log_auth_event(database, "login_success", user_id, "a@x.com")

    with database.session_scope() as session:
        assert session.query(AuthEvent).filter(AuthEvent.event_type == "login_success").count() == 0


def test_client_info_falls_back_to_forwarded_for():
    class FakeRequest:
        client = None
        headers = {"x-forwarded-for": "203.0.113.9, 10.0.0.1", "user-agent": "curl/8"}

    info = client_info(FakeRequest())
    assert info == ClientInfo(ip_address="203.0.113.9", user_agent="curl/8")


def test_signup_event_records_client_address(client, database):
    signup(client)
    with database.session_scope() as session:
        event = session.query(AuthEvent).filter(AuthEvent.event_type == "signup").one()
        assert event.ip_address is not None
        assert event.email == "a@x.com"


def test_dev_event_logs_lists_newest_first(client):
    user_id = signup(client).json()["user"]["userId"]
    login(client)
    login(client, password="wrongpassword")

    response = client.get("/dev/event-logs")
    assert response.status_code == 200
    events = response.json()
    assert [e["event_type"] for e in events][0] == "login_failure"
    assert {e["user_id"] for e in events} == {user_id}

    filtered = client.get("/dev/event-logs", params={"event_type": "signup"}).json()
    assert [e["event_type"] for e in filtered] == ["signup"]

    limited = client.get("/dev/event-logs", params={"limit": 1}).json()
    assert len(limited) == 1


def test_dev_event_logs_limit_bounds(client):
    response = client.get("/dev/event-logs", params={"limit": 1001})
    assert response.status_code == 400
    assert "error" in response.json()


def test_dev_event_logs_hidden_outside_dev_mode(tmp_path):
    app = create_app(make_settings(tmp_path, DEV_MODE=False), notifier=RecordingNotifier())
    with TestClient(app) as client:
        response = client.get("/dev/event-logs")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
