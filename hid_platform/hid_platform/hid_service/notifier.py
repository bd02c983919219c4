"""
Outbound email delivery for OTP codes.
"""
from email.mime.text import MIMEText
import logging
import smtplib

from .config import Settings
from .exceptions import NotificationError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your HID verification code"


class EmailNotifier:
    """
    Sends OTP codes over SMTP.

    With no SMTP_HOST configured the message is written to the log instead,
    which is how codes reach developers in local environments.
    """

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.sender = settings.EMAIL_FROM

    def send_otp(self, to_email: str, code: str, expires_minutes: int) -> None:
        body = (
            f"Your HID verification code is {code}.\n\n"
            f"It expires in {expires_minutes} minute(s).\n\n"
            "If you did not request this code, you can ignore this email."
        )
        self.send(to_email, OTP_SUBJECT, body)

    def send(self, to_email: str, subject: str, body: str) -> None:
        if not self.host:
            logger.info("[DEV EMAIL] To: %s Subject: %s\n%s", to_email, subject, body)
            return

        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = subject

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Failed to send email to {to_email}: {exc}") from exc

        logger.info("Email sent: to=%s subject=%s", to_email, subject)
