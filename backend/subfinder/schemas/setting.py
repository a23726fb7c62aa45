from datetime import datetime

from pydantic import BaseModel, Field


class SettingUpdate(BaseModel):
    value: str = Field(max_length=10_000)
    description: str | None = Field(default=None, max_length=1000)


class SettingOut(BaseModel):
    key: str
    value: str
    description: str | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}
