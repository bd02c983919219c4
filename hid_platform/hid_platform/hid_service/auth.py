from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import uuid

import jwt
from passlib.context import CryptContext

from .config import Settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class PasswordHasher:
    """bcrypt with a fixed cost factor; a fresh random salt on every call."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return self._context.verify(plain_password, hashed_password)
        except ValueError:
            # Digest is not a recognised bcrypt hash
            return False

    def dummy_verify(self) -> None:
        """Spend the time of one verify when there is no stored hash to check."""
        self._context.dummy_verify()


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    token_type: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    def __init__(self, secret: str, algorithm: str = "HS256",
                 access_ttl: timedelta = timedelta(days=7),
                 refresh_ttl: timedelta = timedelta(days=30)):
        if not secret:
            raise TokenError("JWT secret is not configured")
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def issue(self, user_id: int, email: str, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "email": email,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_pair(self, user_id: int, email: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue(user_id, email, ACCESS_TOKEN, self.access_ttl),
            refresh_token=self.issue(user_id, email, REFRESH_TOKEN, self.refresh_ttl),
        )

    def verify(self, token: str, expected_type: str = ACCESS_TOKEN) -> TokenClaims:
        """
        Decode and validate a token.

        Bad signatures, malformed tokens, expired tokens and tokens of the
        wrong type all raise TokenError; callers treat them the same way.
        """
        if not token:
            raise TokenError("Token is missing")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenError("Invalid token") from exc

        if payload.get("type") != expected_type:
            raise TokenError("Invalid token type")

        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, int) or not isinstance(email, str):
            raise TokenError("Token is missing identity claims")

        return TokenClaims(
            user_id=user_id,
            email=email,
            token_type=expected_type,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
