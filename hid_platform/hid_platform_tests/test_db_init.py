"""Tests for database initialization."""
from sqlalchemy import inspect

from hid_platform.hid_platform.hid_service.db import Database

from .conftest import make_settings


def test_init_db_creates_all_tables(tmp_path):
    database = Database(make_settings(tmp_path))
    try:
        database.init_db()
        tables = set(inspect(database.engine).get_table_names())
        assert {
            "users", "user_profiles", "health_ids", "otp_verification", "allergies",
            "chronic_conditions", "current_medications", "emergency_contacts", "auth_events",
        } <= tables
    finally:
        database.dispose()


def test_users_email_is_unique(tmp_path):
    database = Database(make_settings(tmp_path))
    try:
        database.init_db()
        inspector = inspect(database.engine)
        unique_columns = [
            idx["column_names"] for idx in inspector.get_indexes("users") if idx["unique"]
        ]
        assert ["email"] in unique_columns
    finally:
        database.dispose()


def test_otp_table_is_keyed_by_email(tmp_path):
    database = Database(make_settings(tmp_path))
    try:
        database.init_db()
        columns = {col["name"]: col for col in inspect(database.engine).get_columns("otp_verification")}
        for name in ("email", "otp_code", "created_at", "expires_at"):
            assert name in columns
            assert columns[name]["nullable"] is False
        assert "user_id" not in columns
    finally:
        database.dispose()


def test_session_scope_rolls_back_on_error(tmp_path):
    from hid_platform.hid_platform.hid_service.models import User

    database = Database(make_settings(tmp_path))
    try:
        database.init_db()
        try:
            with database.session_scope() as session:
                session.add(User(email="a@x.com", password_hash="x"))
                session.flush()
                raise RuntimeError("abort")
        except RuntimeError:
            pass

        with database.session_scope() as session:
            assert session.query(User).count() == 0
        assert database.check_db_connection() is True
    finally:
        database.dispose()
