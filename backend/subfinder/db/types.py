from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
import logging

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from subfinder.core.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class IsoDateTime(TypeDecorator):
    """Timestamp stored as an ISO-8601 string.

    Reads are lenient: a stored value that does not parse comes back as the
    current time instead of failing the whole query.
    """

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            return value
        return _as_utc(value).isoformat(timespec="microseconds")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, datetime):
            return _as_utc(value)
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparsable stored timestamp %r, reading as now", value)
            return utc_now()
        return _as_utc(parsed)


class StrictEnum(TypeDecorator):
    """Enum stored by value in a plain string column; unknown values are rejected both ways."""

    impl = String(32)
    cache_ok = True

    def __init__(self, enum_class: type[Enum], length: int = 32) -> None:
        super().__init__(length)
        self.enum_class = enum_class

    def _coerce(self, value) -> Enum:
        if isinstance(value, self.enum_class):
            return value
        try:
            return self.enum_class(value)
        except ValueError as exc:
            raise ValidationError(
                f"Unrecognized {self.enum_class.__name__} value: {value!r}",
                details={"field": self.enum_class.__name__, "value": str(value)},
            ) from exc

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self._coerce(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._coerce(value)


class IsoDate(TypeDecorator):
    """Calendar date stored as ``YYYY-MM-DD``.

    Unlike timestamps there is no sensible stand-in for a bad stored date, so
    an unparsable value fails the read with ``PersistenceError``.
    """

    impl = String(10)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, datetime):
            value = value.date()
        if isinstance(value, date):
            return value.isoformat()
        try:
            return date.fromisoformat(str(value)).isoformat()
        except ValueError as exc:
            raise ValidationError(
                f"Invalid calendar date: {value!r}",
                details={"value": str(value)},
            ) from exc

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError as exc:
            logger.warning("Unparsable stored date %r", value)
            raise PersistenceError(
                "Stored date is malformed",
                details={"value": str(value)},
            ) from exc
