"""
Credential store: parameterized reads and writes over accounts, profiles,
health identifiers and OTP entries.

Every method works on a session supplied by the caller, so several calls
can share one transaction (see Database.session_scope).
"""
from datetime import datetime
from typing import Optional
import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .exceptions import DuplicateIdentityError
from .models import HealthId, OtpVerification, User, UserProfile, utcnow

logger = logging.getLogger(__name__)

HEALTH_ID_PREFIX = "HID-"


def generate_health_id() -> str:
    return f"{HEALTH_ID_PREFIX}{uuid.uuid4()}"


class CredentialStore:

    # ---------------- Accounts ----------------

    def find_account_by_email(self, session: Session, email: str) -> Optional[User]:
        return session.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

    def get_account(self, session: Session, user_id: int) -> Optional[User]:
        return session.get(User, user_id)

    def create_account(
        self,
        session: Session,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        phone_number: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> tuple[User, HealthId]:
        """
        Insert the account, its profile and its health identifier.

        The account row is flushed first so a duplicate email is reported as
        DuplicateIdentityError before the dependent rows are written.
        """
        user = User(email=email, password_hash=password_hash, phone_number=phone_number)
        session.add(user)
        try:
            session.flush()
        except IntegrityError as exc:
            logger.info("Duplicate signup rejected for email=%s", email)
            raise DuplicateIdentityError() from exc

        session.add(UserProfile(
            user_id=user.user_id,
            first_name=first_name,
            last_name=last_name,
            gender=gender,
        ))
        health_id = HealthId(user_id=user.user_id, health_id=generate_health_id())
        session.add(health_id)
        session.flush()
        return user, health_id

    def update_password_hash(self, session: Session, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        session.add(user)
        session.flush()

    def get_health_id(self, session: Session, user_id: int) -> Optional[HealthId]:
        return session.get(HealthId, user_id)

    # ---------------- OTP entries ----------------

    def replace_otp(self, session: Session, email: str, code: str,
                    expires_at: datetime) -> OtpVerification:
        self.delete_otps(session, email)
        entry = OtpVerification(
            email=email,
            otp_code=code,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        session.add(entry)
        session.flush()
        return entry

    def latest_otp(self, session: Session, email: str) -> Optional[OtpVerification]:
        return session.execute(
            select(OtpVerification)
            .where(OtpVerification.email == email)
            .order_by(OtpVerification.created_at.desc(), OtpVerification.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def delete_otp(self, session: Session, entry: OtpVerification) -> None:
        session.delete(entry)
        session.flush()

    def delete_otps(self, session: Session, email: str) -> int:
        result = session.execute(
            delete(OtpVerification).where(OtpVerification.email == email)
        )
        return result.rowcount
