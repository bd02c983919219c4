"""Signup runs as one transaction and duplicate emails are settled by the store."""
from concurrent.futures import ThreadPoolExecutor
import threading

import pytest

from hid_platform.hid_platform.hid_service import store as store_module
from hid_platform.hid_platform.hid_service.exceptions import (
    ConflictError,
    DuplicateIdentityError,
    TransientServerError,
)
from hid_platform.hid_platform.hid_service.models import HealthId, User, UserProfile
from hid_platform.hid_platform.hid_service.schemas import SignupRequest

from .conftest import signup


def signup_request(email):
    return SignupRequest(email=email, password="pw123456", first_name="A", last_name="B")


def row_counts(database):
    with database.session_scope() as session:
        return (
            session.query(User).count(),
            session.query(UserProfile).count(),
            session.query(HealthId).count(),
        )


def test_duplicate_identity_is_a_conflict(service):
    service.signup(signup_request("a@x.com"))
    with pytest.raises(DuplicateIdentityError) as exc_info:
        service.signup(signup_request("a@x.com"))
    assert isinstance(exc_info.value, ConflictError)
    assert exc_info.value.status_code == 409


def test_failed_signup_leaves_no_partial_rows(service, database, monkeypatch):
    monkeypatch.setattr(store_module, "generate_health_id", lambda: "HID-fixed")

    service.signup(signup_request("first@x.com"))
    assert row_counts(database) == (1, 1, 1)

    # The health id collides after the account and profile rows were written
    with pytest.raises(TransientServerError):
        service.signup(signup_request("second@x.com"))

    assert row_counts(database) == (1, 1, 1)
    with database.session_scope() as session:
        assert session.query(User).filter(User.email == "second@x.com").count() == 0


def test_failed_signup_over_http_returns_generic_error(client, database, monkeypatch):
    monkeypatch.setattr(store_module, "generate_health_id", lambda: "HID-fixed")
    assert signup(client, "first@x.com").status_code == 201

    response = signup(client, "second@x.com")
    assert response.status_code == 500
    assert response.json() == {"error": "Server error during registration."}
    assert row_counts(database) == (1, 1, 1)


def test_concurrent_signups_same_email(service, database):
    barrier = threading.Barrier(2)

    def attempt(_):
        barrier.wait()
        try:
            service.signup(signup_request("race@x.com"))
            return 201
        except DuplicateIdentityError:
            return 409

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = sorted(pool.map(attempt, range(2)))

    assert outcomes == [201, 409]
    assert row_counts(database) == (1, 1, 1)


def test_concurrent_signups_distinct_emails(service, database):
    emails = [f"user{i}@x.com" for i in range(5)]
    with ThreadPoolExecutor(max_workers=5) as pool:
        results = list(pool.map(lambda email: service.signup(signup_request(email)), emails))

    assert sorted(r.email for r in results) == sorted(emails)
    assert len({r.health_id for r in results}) == len(emails)
    assert row_counts(database) == (5, 5, 5)
