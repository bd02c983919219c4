from contextlib import contextmanager
from typing import Generator
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Owns the engine and connection pool for one application instance.

    Sessions are checked out per unit of work and returned to the pool when
    the unit finishes. A full pool blocks for at most DB_POOL_TIMEOUT seconds.
    """

    def __init__(self, settings: Settings):
        url = settings.DATABASE_URL
        if url.startswith("sqlite"):
            # SQLite serialises writers; the busy timeout lets a second writer
            # wait for the first instead of failing immediately.
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False, "timeout": 15},
            )
        else:
            self.engine = create_engine(
                url,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_pre_ping=True,
            )
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def init_db(self) -> None:
        # Import models to ensure they are registered with Base
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database initialized successfully")

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Run a block as one transaction: commit on success, roll back on any error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_db(self) -> Generator[Session, None, None]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def check_db_connection(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database connection check failed: %s", e)
            return False

    def dispose(self) -> None:
        self.engine.dispose()
