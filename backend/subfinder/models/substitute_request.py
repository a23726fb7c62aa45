import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from subfinder.db.base import Base
from subfinder.db.types import IsoDate, IsoDateTime, StrictEnum, utc_now


class RequestStatus(str, Enum):
    open = "open"
    filled = "filled"
    cancelled = "cancelled"


class SubstituteRequest(Base):
    __tablename__ = "substitute_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    requested_by: Mapped[str] = mapped_column(String(36), nullable=False)
    date_needed: Mapped[date] = mapped_column(IsoDate, nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    special_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[RequestStatus] = mapped_column(
        StrictEnum(RequestStatus),
        nullable=False,
        default=RequestStatus.open,
        index=True,
    )
    assigned_substitute_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False, default=utc_now)


class RequestEvent(str, Enum):
    assign = "assign"
    unassign = "unassign"
    cancel = "cancel"
