from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from subfinder.schemas.common import normalize_optional_text, normalize_required_text


class ClassCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    organization_id: str = Field(min_length=1, max_length=36)
    subject: str | None = Field(default=None, max_length=200)
    grade_level: str | None = Field(default=None, max_length=50)
    room_number: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return normalize_required_text(value, "Name")

    @field_validator("subject", "grade_level", "room_number", "description")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class ClassUpdate(ClassCreate):
    pass


class ClassOut(BaseModel):
    id: str
    name: str
    organization_id: str
    subject: str | None = None
    grade_level: str | None = None
    room_number: str | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
