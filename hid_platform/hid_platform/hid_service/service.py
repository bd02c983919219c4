"""
Credential service: signup, login, OTP request/verify, password reset and
token refresh, composed from the store, hasher, OTP manager, token issuer
and notifier.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from .auth import PasswordHasher, TokenError, TokenIssuer, TokenPair, REFRESH_TOKEN
from .config import Settings
from .db import Database
from .exceptions import (
    AuthError,
    NotificationError,
    NotFoundError,
    ServiceError,
    TransientServerError,
    ValidationError,
)
from .notifier import EmailNotifier
from .otp import OtpManager
from .schemas import (
    LoginRequest,
    OtpRequest,
    OtpVerifyRequest,
    PasswordResetConfirm,
    SignupRequest,
)
from .store import CredentialStore
from .utils.event_logger import ClientInfo, log_auth_event

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token."


@dataclass(frozen=True)
class SignupResult:
    user_id: int
    email: str
    health_id: str


@dataclass(frozen=True)
class LoginResult:
    user_id: int
    tokens: TokenPair


@dataclass(frozen=True)
class OtpIssued:
    email: str
    code: str
    expires_at: datetime


class CredentialService:
    def __init__(
        self,
        settings: Settings,
        database: Database,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        otp: OtpManager,
        notifier: EmailNotifier,
        store: CredentialStore,
    ):
        self.settings = settings
        self._db = database
        self._hasher = hasher
        self.tokens = tokens
        self._otp = otp
        self._notifier = notifier
        self._store = store

    @classmethod
    def from_settings(cls, settings: Settings, database: Database,
                      notifier: Optional[EmailNotifier] = None) -> "CredentialService":
        store = CredentialStore()
        return cls(
            settings=settings,
            database=database,
            hasher=PasswordHasher(settings.PASSWORD_HASH_ROUNDS),
            tokens=TokenIssuer.from_settings(settings),
            otp=OtpManager(store, settings.OTP_EXPIRE_MINUTES),
            notifier=notifier or EmailNotifier(settings),
            store=store,
        )

    # ---------------- Signup ----------------

    def signup(self, payload: SignupRequest, client: Optional[ClientInfo] = None) -> SignupResult:
        try:
            password_hash = self._hasher.hash(payload.password)
            with self._db.session_scope() as session:
                user, health_id = self._store.create_account(
                    session,
                    email=payload.email,
                    password_hash=password_hash,
                    first_name=payload.first_name,
                    last_name=payload.last_name,
                    phone_number=payload.phone_number,
                    gender=payload.gender,
                )
                result = SignupResult(
                    user_id=user.user_id, email=user.email, health_id=health_id.health_id
                )
        except ServiceError:
            raise
        except (SQLAlchemyError, ValueError) as e:
            logger.exception("Signup error for email=%s", payload.email)
            raise TransientServerError("Server error during registration.") from e

        logger.info("Account created: user_id=%s health_id=%s", result.user_id, result.health_id)
        log_auth_event(self._db, "signup", result.user_id, result.email, client)
        return result

    # ---------------- Login ----------------

    def login(self, payload: LoginRequest, client: Optional[ClientInfo] = None) -> LoginResult:
        try:
            with self._db.session_scope() as session:
                user = self._store.find_account_by_email(session, payload.email)
                account = (user.user_id, user.email, user.password_hash) if user else None
        except SQLAlchemyError as e:
            logger.exception("Login error for email=%s", payload.email)
            raise TransientServerError("Server error during login.") from e

        # Unknown account and wrong password get the same response
        if account is None:
            self._hasher.dummy_verify()
            raise AuthError(INVALID_CREDENTIALS)

        user_id, email, password_hash = account
        if not self._hasher.verify(payload.password, password_hash):
            log_auth_event(self._db, "login_failure", user_id, email, client)
            raise AuthError(INVALID_CREDENTIALS)

        tokens = self.tokens.issue_pair(user_id, email)
        log_auth_event(self._db, "login_success", user_id, email, client)
        return LoginResult(user_id=user_id, tokens=tokens)

    # ---------------- OTP ----------------

    def request_otp(self, payload: OtpRequest, client: Optional[ClientInfo] = None) -> OtpIssued:
        try:
            with self._db.session_scope() as session:
                user = self._store.find_account_by_email(session, payload.email)
                if user is None:
                    raise NotFoundError("No account found with this email.")
                user_id = user.user_id
                record = self._otp.issue(session, payload.email)
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logger.exception("OTP request error for email=%s", payload.email)
            raise TransientServerError("Server error while sending OTP.") from e

        try:
            self._notifier.send_otp(record.email, record.code, self._otp.expire_minutes)
        except NotificationError as e:
            # The entry stays valid; the code can still reach the user another way
            logger.warning("OTP delivery failed for email=%s: %s", record.email, e)

        log_auth_event(self._db, "otp_sent", user_id, record.email, client)
        return OtpIssued(email=record.email, code=record.code, expires_at=record.expires_at)

    def verify_otp(self, payload: OtpVerifyRequest, client: Optional[ClientInfo] = None) -> None:
        try:
            with self._db.session_scope() as session:
                self._otp.verify(session, payload.email, payload.otp)
                user = self._store.find_account_by_email(session, payload.email)
                user_id = user.user_id if user else None
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logger.exception("OTP verification error for email=%s", payload.email)
            raise TransientServerError("Server error while verifying OTP.") from e

        if user_id is not None:
            log_auth_event(self._db, "otp_verified", user_id, payload.email, client)

    # ---------------- Password reset ----------------

    def reset_password(self, payload: PasswordResetConfirm,
                       client: Optional[ClientInfo] = None) -> None:
        """
        Re-verify the OTP, store the new hash and consume the OTP in one
        transaction. Any failure leaves both the password and the OTP as they were.
        """
        try:
            new_hash = self._hasher.hash(payload.new_password)
            with self._db.session_scope() as session:
                self._otp.verify(session, payload.email, payload.otp)
                user = self._store.find_account_by_email(session, payload.email)
                if user is None:
                    raise ValidationError("No account found for this email.")
                self._store.update_password_hash(session, user, new_hash)
                self._store.delete_otps(session, payload.email)
                user_id = user.user_id
        except ServiceError:
            raise
        except (SQLAlchemyError, ValueError) as e:
            logger.exception("Password reset error for email=%s", payload.email)
            raise TransientServerError("Server error during password reset.") from e

        logger.info("Password reset completed: user_id=%s", user_id)
        log_auth_event(self._db, "password_reset", user_id, payload.email, client)

    # ---------------- Tokens ----------------

    def refresh_token(self, refresh_token: str,
                      client: Optional[ClientInfo] = None) -> LoginResult:
        if not refresh_token:
            raise ValidationError("refreshToken is required.")
        try:
            claims = self.tokens.verify(refresh_token, expected_type=REFRESH_TOKEN)
        except TokenError as e:
            logger.info("Refresh token rejected: %s", e)
            raise AuthError(INVALID_REFRESH_TOKEN) from e

        try:
            with self._db.session_scope() as session:
                user = self._store.get_account(session, claims.user_id)
                account = (user.user_id, user.email) if user else None
        except SQLAlchemyError as e:
            logger.exception("Token refresh error for user_id=%s", claims.user_id)
            raise TransientServerError("Server error during token refresh.") from e

        # A removed account, or one whose email changed, no longer resolves
        if account is None or account[1] != claims.email:
            raise AuthError(INVALID_REFRESH_TOKEN)

        user_id, email = account
        tokens = self.tokens.issue_pair(user_id, email)
        log_auth_event(self._db, "token_refresh", user_id, email, client)
        return LoginResult(user_id=user_id, tokens=tokens)
