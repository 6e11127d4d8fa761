"""
Database engine and sessions backing the DoseKeeper key/value store
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from config import settings


logger = logging.getLogger(__name__)


def build_engine(url: str, echo: bool = False) -> Engine:
    """Engine for the store; SQLite shares one connection across threads"""
    options: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, **options)


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@contextmanager
def get_db_context(session_factory=None) -> Generator[Session, None, None]:
    """
    Session scope for one store operation.

    Commits when the block exits cleanly and rolls back otherwise:

        with get_db_context() as db:
            db.get(StoreEntry, "medications")
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create the store table if missing"""
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Store tables ready on {(bind or engine).url}")


def drop_db(bind=None) -> None:
    """Drop the store table, losing medications, history and the scheduler mirror"""
    Base.metadata.drop_all(bind=bind or engine)
    logger.warning("Store tables dropped")


class DatabaseHealthCheck:

    @staticmethod
    def is_connected(bind=None) -> bool:
        try:
            with (bind or engine).connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Store unreachable: {e}")
            return False
        return True


__all__ = [
    "engine",
    "build_engine",
    "SessionLocal",
    "Base",
    "get_db_context",
    "init_db",
    "drop_db",
    "DatabaseHealthCheck"
]
