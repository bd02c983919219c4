from dataclasses import dataclass
from typing import Generator, Optional
import logging

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .auth import ACCESS_TOKEN, TokenError
from .config import Settings
from .db import Database
from .exceptions import AuthError
from .models import User
from .service import CredentialService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The caller proven by a valid access token."""
    user_id: int
    email: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    yield from database.get_db()


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credential_service


def get_current_identity(
    service: CredentialService = Depends(get_credential_service),
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Identity:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthError("Access denied. No token provided.", status_code=401)

    try:
        claims = service.tokens.verify(token, expected_type=ACCESS_TOKEN)
    except TokenError as exc:
        logger.info("Bearer token rejected: %s", exc)
        raise AuthError("Invalid or expired token.", status_code=403) from exc

    # The token outlives its account when the account is removed
    user = db.get(User, claims.user_id)
    if user is None or user.email != claims.email:
        logger.info("Bearer token for missing account: user_id=%s", claims.user_id)
        raise AuthError("Account not found.", status_code=401)

    return Identity(user_id=claims.user_id, email=claims.email)
