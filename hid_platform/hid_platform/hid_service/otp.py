from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import secrets

from sqlalchemy.orm import Session

from .exceptions import ValidationError
from .models import utcnow
from .store import CredentialStore

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


@dataclass(frozen=True)
class OtpRecord:
    email: str
    code: str
    expires_at: datetime


class OtpManager:
    """
    Issues and checks email one-time passwords.

    Only the newest entry for an email is ever live: issuing deletes every
    earlier entry, and a successful check deletes the entry it matched.
    """

    def __init__(self, store: CredentialStore, expire_minutes: int = 10):
        self._store = store
        self.expire_minutes = expire_minutes

    @staticmethod
    def generate_code() -> str:
        return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))

    def issue(self, session: Session, email: str) -> OtpRecord:
        code = self.generate_code()
        expires_at = utcnow() + timedelta(minutes=self.expire_minutes)
        self._store.replace_otp(session, email, code, expires_at)
        logger.info("OTP issued: email=%s expires_at=%s", email, expires_at.isoformat())
        return OtpRecord(email=email, code=code, expires_at=expires_at)

    def verify(self, session: Session, email: str, code: str) -> None:
        """
        Check `code` against the newest entry for `email` and consume it.

        Raises ValidationError when there is no entry, when the entry has
        expired (the entry is kept until the next request replaces it) or
        when the code does not match (the entry is kept).
        """
        entry = self._store.latest_otp(session, email)
        if entry is None:
            raise ValidationError("No OTP found for this email.")

        if utcnow() > entry.expires_at:
            logger.info("Expired OTP presented: email=%s", email)
            raise ValidationError("OTP has expired.")

        if not secrets.compare_digest(entry.otp_code.encode(), str(code).encode()):
            logger.info("OTP mismatch: email=%s", email)
            raise ValidationError("Invalid OTP")

        self._store.delete_otp(session, entry)
