"""Key-value stores that back the profile buckets."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from fridgevision_backend.models import StoredValue

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """String-valued key-value storage.

    Implementations never raise for storage failures: reads degrade to
    ``None`` and writes to no-ops.
    """

    available: bool = True

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string or ``None`` when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key`` if present."""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store used in tests and local development."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class UnavailableKeyValueStore(KeyValueStore):
    """Stand-in used when no storage medium is configured."""

    available = False

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        return None

    def remove(self, key: str) -> None:
        return None


class SqlKeyValueStore(KeyValueStore):
    """Durable store keeping one ``stored_values`` row per key."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        session = self._session_factory()
        try:
            row = session.get(StoredValue, key)
            return row.value if row is not None else None
        except SQLAlchemyError:
            logger.exception("failed to read stored value", extra={"key": key})
            return None
        finally:
            session.close()

    def set(self, key: str, value: str) -> None:
        session = self._session_factory()
        try:
            row = session.get(StoredValue, key)
            if row is None:
                session.add(StoredValue(key=key, value=value))
            else:
                row.value = value
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("failed to write stored value", extra={"key": key})
        finally:
            session.close()

    def remove(self, key: str) -> None:
        session = self._session_factory()
        try:
            row = session.get(StoredValue, key)
            if row is not None:
                session.delete(row)
                session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("failed to remove stored value", extra={"key": key})
        finally:
            session.close()


def init_key_value_store(
    kind: str, *, session_factory: sessionmaker | None = None
) -> KeyValueStore:
    """Factory to mirror the init_* pattern used across services."""

    if kind == "database":
        if session_factory is None:
            raise RuntimeError("database storage requires a session factory")
        return SqlKeyValueStore(session_factory)
    if kind == "memory":
        return InMemoryKeyValueStore()
    if kind == "none":
        return UnavailableKeyValueStore()
    raise ValueError(f"unknown storage kind {kind!r}")
