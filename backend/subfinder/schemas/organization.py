from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from subfinder.schemas.common import normalize_optional_text, normalize_required_text


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    parent_organization_id: str | None = Field(default=None, max_length=36)
    description: str | None = Field(default=None, max_length=2000)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return normalize_required_text(value, "Name")

    @field_validator("parent_organization_id", "description", "contact_phone")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class OrganizationUpdate(OrganizationCreate):
    pass


class OrganizationOut(BaseModel):
    id: str
    name: str
    parent_organization_id: str | None = None
    description: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
