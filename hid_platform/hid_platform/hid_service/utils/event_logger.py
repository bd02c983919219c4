"""
Event logger utility for authentication events.
"""
from dataclasses import dataclass
from typing import Optional
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
import sys
import logging
import os

from ..config import Settings
from ..db import Database
from ..models import AuthEvent, AUTH_EVENT_TYPES, utcnow

logger = logging.getLogger(__name__)

ALLOWED_EVENT_TYPES = set(AUTH_EVENT_TYPES)


def configure_logging(settings: Settings) -> None:
    """Configure stdout logging, plus a file handler when LOG_DIR is set."""
    handlers = [logging.StreamHandler(sys.stdout)]

    # Continue without the file handler if the directory cannot be created
    if settings.LOG_DIR:
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(settings.LOG_DIR, "auth_events.log")))
        except (OSError, PermissionError) as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s:%(message)s",
        handlers=handlers
    )


@dataclass(frozen=True)
class ClientInfo:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def client_info(request: Request) -> ClientInfo:
    """Extract caller address and user agent from the request."""
    ip_address = None
    if request.client:
        ip_address = request.client.host

    # Check for X-Forwarded-For header (proxy/load balancer scenarios)
    if not ip_address and request.headers.get("x-forwarded-for"):
        # X-Forwarded-For can contain multiple IPs, take the first one
        ip_address = request.headers.get("x-forwarded-for").split(",")[0].strip()

    return ClientInfo(ip_address=ip_address, user_agent=request.headers.get("user-agent"))


def log_auth_event(
    database: Database,
    event_type: str,
    user_id: int,
    email: str,
    client: Optional[ClientInfo] = None,
    metadata: dict = None
) -> None:
    """
    Log an authentication event to the database.

    The event is written in its own session so it never joins (or rolls back)
    the caller's transaction.

    Args:
        database: Database owning the session factory
        event_type: One of AUTH_EVENT_TYPES
        user_id: Account the event belongs to
        email: Account email at the time of the event
        client: Caller address and user agent, if known
        metadata: Optional dictionary of additional context

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    client = client or ClientInfo()
    db = database.SessionLocal()
    try:
        auth_event = AuthEvent(
            user_id=user_id,
            email=email,
            event_type=event_type,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            timestamp=utcnow(),
            event_metadata=metadata or {}
        )
        db.add(auth_event)
        db.commit()

        logger.info(
            "AUTH %s user_id=%s email=%s ip=%s",
            event_type, user_id, email, client.ip_address
        )

    except SQLAlchemyError as e:
        # Logging failure should not break the auth flow
        logger.warning(
            "Failed to log auth event - user_id=%s, event_type=%s, error=%s",
            user_id, event_type, e
        )
        db.rollback()
    finally:
        db.close()
