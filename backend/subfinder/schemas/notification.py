from datetime import date, datetime

from pydantic import BaseModel, Field

from subfinder.models.notification_log import NotificationStatus, NotificationType


class NotificationSend(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=2000)
    request_id: str | None = Field(default=None, max_length=36)
    user_id: str | None = Field(default=None, max_length=36)


class NotificationSendOut(BaseModel):
    notification_id: str


class NotificationLogCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=36)
    request_id: str = Field(min_length=1, max_length=36)
    notification_type: NotificationType
    status: NotificationStatus
    error_message: str | None = Field(default=None, max_length=2000)


class NotificationLogCreated(BaseModel):
    id: str


class NotificationLogOut(BaseModel):
    id: str
    user_id: str
    request_id: str
    notification_type: NotificationType
    sent_at: datetime
    status: NotificationStatus
    error_message: str | None = None

    model_config = {"from_attributes": True}


class NotifyCandidatesRequest(BaseModel):
    candidate_ids: list[str] = Field(default_factory=list, max_length=500)
    class_name: str | None = Field(default=None, max_length=200)
    date_needed: date | None = None


class NotifyCandidatesOut(BaseModel):
    request_id: str
    outcomes: dict[str, NotificationStatus]
