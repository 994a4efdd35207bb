"""Account settings and billing status schemas."""
from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .utils import blank_to_none


class AccountSettingsUpdate(BaseModel):
    """Sender identity used in reminder emails; blank values clear a field."""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str | None = Field(default=None, max_length=200)
    sender_name: str | None = Field(default=None, max_length=200)
    reply_to_email: EmailStr | None = None
    email_signature: str | None = Field(default=None, max_length=2000)

    @field_validator("full_name", "sender_name", "reply_to_email", "email_signature", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        return blank_to_none(value)


class AccountSettingsOut(BaseModel):
    email: str
    full_name: str | None = None
    sender_name: str | None = None
    reply_to_email: str | None = None
    email_signature: str | None = None


class BillingStatusOut(BaseModel):
    billing_enabled: bool
    has_access: bool
    subscription_status: str | None = None
    trial_ends_at: dt.datetime | None = None
    trial_active: bool
    trial_days_left: int
    current_period_end: dt.datetime | None = None
