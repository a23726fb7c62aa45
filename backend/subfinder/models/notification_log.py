import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from subfinder.db.base import Base
from subfinder.db.types import IsoDateTime, StrictEnum, utc_now


class NotificationType(str, Enum):
    desktop = "desktop"
    email = "email"
    push = "push"
    sms = "sms"


class NotificationStatus(str, Enum):
    sent = "sent"
    failed = "failed"
    pending = "pending"


class NotificationLog(Base):
    __tablename__ = "notifications_log"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    request_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    notification_type: Mapped[NotificationType] = mapped_column(StrictEnum(NotificationType), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False, default=utc_now, index=True)
    status: Mapped[NotificationStatus] = mapped_column(StrictEnum(NotificationStatus), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
