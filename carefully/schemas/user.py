"""Pydantic schemas for the current user and their rollup counters."""
from datetime import datetime

from pydantic import BaseModel, Field


class UserOutSchema(BaseModel):
    id: int
    username: str
    name: str
    email: str
    role: str
    total_scenarios: int = Field(alias="totalScenarios")
    total_time: int = Field(alias="totalTime")
    created_at: datetime | None = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True
        from_attributes = True


class UserUpdateSchema(BaseModel):
    """Profile fields a user may change; rollup counters are not writable."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    role: str | None = Field(None, min_length=1, max_length=32)

    class Config:
        extra = "forbid"
