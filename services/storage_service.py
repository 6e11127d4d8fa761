"""
Storage Service
Durable key/value store backed by the store_entries table
"""

import json
import logging
from typing import Any, Optional
from sqlalchemy.exc import SQLAlchemyError

from database import get_db_context
from exceptions import StorageError
import models


logger = logging.getLogger(__name__)


class DurableStore:
    """
    Opaque durable store keyed by string.

    Every write replaces the whole value for its key inside one
    transaction, so readers never observe a partially written value.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[bytes]:
        """Value stored under key, or None"""
        try:
            with get_db_context(self._session_factory) as session:
                entry = session.get(models.StoreEntry, key)
                return bytes(entry.value) if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Error reading {key} from store: {e}")
            raise StorageError(f"Could not read {key}") from e

    def set(self, key: str, value: bytes) -> None:
        """Replace the value stored under key"""
        try:
            with get_db_context(self._session_factory) as session:
                entry = session.get(models.StoreEntry, key)
                if entry is None:
                    session.add(models.StoreEntry(key=key, value=value))
                else:
                    entry.value = value
        except SQLAlchemyError as e:
            logger.error(f"Error writing {key} to store: {e}")
            raise StorageError(f"Could not write {key}") from e

    def delete(self, key: str) -> None:
        """Remove key; absent keys are ignored"""
        try:
            with get_db_context(self._session_factory) as session:
                entry = session.get(models.StoreEntry, key)
                if entry is not None:
                    session.delete(entry)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {key} from store: {e}")
            raise StorageError(f"Could not delete {key}") from e

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a JSON value; undecodable data is logged and treated as absent"""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            logger.error(f"Corrupt value under {key}: {e}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value).encode("utf-8"))
