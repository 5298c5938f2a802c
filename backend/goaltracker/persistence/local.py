"""Durable key-value storage used when the remote database is unavailable.

Values are JSON documents stored under deterministic keys
(`<prefix>_<entity>_<ownerId>`). A value that no longer parses is treated as
absent; it is replaced by the next successful write.
"""
import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from goaltracker.models.local_entry import LocalEntry

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, session_factory, prefix: str = "goalTracker"):
        self._session_factory = session_factory
        self.prefix = prefix

    def key(self, entity: str, owner_id=None) -> str:
        if owner_id is None:
            return f"{self.prefix}_{entity}"
        return f"{self.prefix}_{entity}_{owner_id}"

    def read(self, key: str, default=None):
        db = self._session_factory()
        try:
            row = db.get(LocalEntry, key)
            raw = row.value if row is not None else None
        except SQLAlchemyError as e:
            logger.warning("Local store read failed for %s: %s", key, e)
            return default
        finally:
            db.close()

        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Discarding malformed local value for %s: %s", key, e)
            return default

    def read_list(self, key: str) -> list:
        value = self.read(key, [])
        return value if isinstance(value, list) else []

    def exists(self, key: str) -> bool:
        db = self._session_factory()
        try:
            return db.get(LocalEntry, key) is not None
        except SQLAlchemyError as e:
            logger.warning("Local store lookup failed for %s: %s", key, e)
            return False
        finally:
            db.close()

    def write(self, key: str, value) -> bool:
        try:
            raw = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning("Cannot serialize local value for %s: %s", key, e)
            return False

        db = self._session_factory()
        try:
            db.merge(LocalEntry(key=key, value=raw))
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Local store write failed for %s: %s", key, e)
            return False
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(LocalEntry).filter(LocalEntry.key == key).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Local store delete failed for %s: %s", key, e)
        finally:
            db.close()
