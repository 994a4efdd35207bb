"""Reminder rule, template and history schemas."""
from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from paynudge.models.models import ReminderTone

MIN_DAYS_OFFSET = -60
MAX_DAYS_OFFSET = 60


class ReminderRuleCreate(BaseModel):
    # Negative: days before the due date; positive: days overdue
    days_offset: int = Field(..., ge=MIN_DAYS_OFFSET, le=MAX_DAYS_OFFSET)
    tone: ReminderTone
    enabled: bool = True


class ReminderRuleUpdate(BaseModel):
    days_offset: int | None = Field(default=None, ge=MIN_DAYS_OFFSET, le=MAX_DAYS_OFFSET)
    tone: ReminderTone | None = None
    enabled: bool | None = None


class ReminderRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    days_offset: int
    tone: ReminderTone
    enabled: bool
    created_at: dt.datetime | None = None


class ReminderTemplateUpsert(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    subject: str = Field(..., min_length=1, max_length=300)
    body: str = Field(..., min_length=1)


class ReminderTemplateOut(BaseModel):
    tone: ReminderTone
    subject: str
    body: str
    is_default: bool


class ReminderPreviewRequest(BaseModel):
    """Render a template against sample invoice data.

    Without ``subject``/``body`` the caller's effective template for ``tone``
    is used.
    """

    tone: ReminderTone = ReminderTone.FRIENDLY
    days_offset: int = Field(default=0, ge=MIN_DAYS_OFFSET, le=MAX_DAYS_OFFSET)
    subject: str | None = None
    body: str | None = None


class ReminderPreviewOut(BaseModel):
    subject: str
    text: str
    html: str
    reply_to_email: str | None = None


class ReminderHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    invoice_number: str | None = None
    rule_id: int | None = None
    sent_at: dt.datetime | None = None
    subject: str
    sent_to: str
    provider_message_id: str | None = None
