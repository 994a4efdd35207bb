"""Client-related schemas."""
from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .utils import blank_to_none


class ClientCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr | None = None  # reminders are skipped for clients without one
    company_name: str | None = Field(default=None, max_length=200)
    notes: str | None = None

    @field_validator("email", "company_name", "notes", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        return blank_to_none(value)


class ClientUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=2, max_length=200)
    email: EmailStr | None = None
    company_name: str | None = Field(default=None, max_length=200)
    notes: str | None = None

    @field_validator("email", "company_name", "notes", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        return blank_to_none(value)


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None = None
    company_name: str | None = None
    notes: str | None = None
    created_at: dt.datetime | None = None
