from datetime import date, datetime
import re

from pydantic import BaseModel, Field, field_validator, model_validator

from subfinder.models.substitute_request import RequestEvent, RequestStatus
from subfinder.schemas.common import normalize_optional_text

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class SubstituteRequestCreate(BaseModel):
    class_id: str = Field(min_length=1, max_length=36)
    date_needed: date
    start_time: str
    end_time: str
    reason: str | None = Field(default=None, max_length=1000)
    special_instructions: str | None = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        value = value.strip()
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("reason", "special_instructions")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "SubstituteRequestCreate":
        if parse_time_to_minutes(self.start_time) >= parse_time_to_minutes(self.end_time):
            raise ValueError("start_time must be earlier than end_time")
        return self


class RequestTransition(BaseModel):
    event: RequestEvent
    substitute_id: str | None = Field(default=None, min_length=1, max_length=36)


class SubstituteRequestOut(BaseModel):
    id: str
    class_id: str
    requested_by: str
    date_needed: date
    start_time: str
    end_time: str
    reason: str | None = None
    special_instructions: str | None = None
    status: RequestStatus
    assigned_substitute_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
