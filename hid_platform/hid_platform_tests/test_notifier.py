"""Tests for SMTP delivery of OTP codes."""
import logging
import smtplib
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from hid_platform.hid_platform.hid_service.exceptions import NotificationError
from hid_platform.hid_platform.hid_service.main import create_app
from hid_platform.hid_platform.hid_service.notifier import EmailNotifier

from .conftest import make_settings, signup

NOTIFIER_LOGGER = "hid_platform.hid_platform.hid_service.notifier"


def smtp_settings(tmp_path, **overrides):
    values = dict(SMTP_HOST="smtp.test", SMTP_PORT=2525, SMTP_USERNAME="mailer",
                  SMTP_PASSWORD="secret", EMAIL_FROM="no-reply@hid.test")
    values.update(overrides)
    return make_settings(tmp_path, **values)


def test_send_without_smtp_host_only_logs(tmp_path, caplog):
    notifier = EmailNotifier(make_settings(tmp_path, SMTP_HOST=""))

    with patch("smtplib.SMTP") as smtp, caplog.at_level(logging.INFO, logger=NOTIFIER_LOGGER):
        notifier.send_otp("a@x.com", "123456", 10)

    smtp.assert_not_called()
    assert "[DEV EMAIL]" in caplog.text
    assert "123456" in caplog.text


def test_send_delivers_over_smtp(tmp_path):
    notifier = EmailNotifier(smtp_settings(tmp_path))

    with patch("smtplib.SMTP") as smtp:
        notifier.send_otp("a@x.com", "123456", 10)

    smtp.assert_called_once_with("smtp.test", 2525, timeout=30)
    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer", "secret")
    sender, recipients, message = server.sendmail.call_args.args
    assert sender == "no-reply@hid.test"
    assert recipients == ["a@x.com"]
    assert "Subject: Your HID verification code" in message


def test_send_skips_tls_and_login_when_not_configured(tmp_path):
    notifier = EmailNotifier(smtp_settings(tmp_path, SMTP_USE_TLS=False, SMTP_USERNAME=""))

    with patch("smtplib.SMTP") as smtp:
        notifier.send("a@x.com", "Subject", "Body")

    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_not_called()
    server.login.assert_not_called()
    server.sendmail.assert_called_once()


@pytest.mark.parametrize("error", [
    smtplib.SMTPAuthenticationError(535, b"bad credentials"),
    ConnectionRefusedError("connection refused"),
    OSError("network unreachable"),
])
def test_send_failure_raises_notification_error(tmp_path, error):
    notifier = EmailNotifier(smtp_settings(tmp_path))

    with patch("smtplib.SMTP", side_effect=error):
        with pytest.raises(NotificationError):
            notifier.send_otp("a@x.com", "123456", 10)


def test_send_otp_succeeds_when_smtp_is_down(tmp_path):
    app = create_app(smtp_settings(tmp_path))

    with patch("smtplib.SMTP", side_effect=ConnectionRefusedError("connection refused")), \
            TestClient(app) as client:
        signup(client)
        response = client.post("/api/auth/send-otp", json={"email": "a@x.com"})
        assert response.status_code == 200
        assert response.json()["message"] == "OTP sent successfully."

        code = response.json()["otp"]
        verified = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": code})
        assert verified.status_code == 200
