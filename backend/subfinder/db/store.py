from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
from threading import Lock

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from subfinder.core.exceptions import AppError, PersistenceError

logger = logging.getLogger(__name__)


class Store:
    """Serialized access to the relational store.

    Every unit of work runs inside ``session()``, which holds a single
    exclusive lock for its whole duration. SQLite has one writer at a time,
    so coarse serialization is enough; a read-modify-write done inside one
    ``session()`` block cannot interleave with another. Sessions are not
    re-entrant: never open a second one while holding the first.
    """

    def __init__(self, session_factory: sessionmaker, *, lock_timeout_seconds: float = 10.0) -> None:
        self._session_factory = session_factory
        self._lock = Lock()
        self._lock_timeout_seconds = lock_timeout_seconds

    @property
    def engine(self) -> Engine:
        return self._session_factory.kw["bind"]

    @contextmanager
    def session(self) -> Iterator[Session]:
        timeout = self._lock_timeout_seconds if self._lock_timeout_seconds > 0 else -1
        if not self._lock.acquire(timeout=timeout):
            raise PersistenceError(
                "Timed out waiting for database access",
                details={"timeout_seconds": self._lock_timeout_seconds},
            )
        try:
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except AppError:
                db.rollback()
                raise
            except SQLAlchemyError as exc:
                db.rollback()
                # Errors raised by column types while binding come back wrapped.
                original = getattr(exc, "orig", None)
                if isinstance(original, AppError):
                    raise original from exc
                logger.warning("Database operation failed: %s", exc.__class__.__name__, exc_info=True)
                raise PersistenceError("Database operation failed", details={"error": str(exc)}) from exc
            except BaseException:
                db.rollback()
                raise
            finally:
                db.close()
        finally:
            self._lock.release()
