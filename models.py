"""
Database Models
SQLAlchemy ORM models for DoseKeeper
"""

from sqlalchemy import Column, String, DateTime, LargeBinary
from datetime import datetime, timezone

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== MODELS ====================

class StoreEntry(Base):
    """One opaque value of the durable key/value store"""
    __tablename__ = "store_entries"

    key = Column(String(255), primary_key=True)
    value = Column(LargeBinary, nullable=False)

    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<StoreEntry(key={self.key!r}, bytes={len(self.value or b'')})>"
