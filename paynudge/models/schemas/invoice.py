"""Invoice-related schemas."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_INVOICE_AMOUNT = Decimal("1000000")

InvoiceStatusLiteral = Literal["draft", "sent", "paid", "void"]


class InvoiceCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: int
    invoice_number: str = Field(..., min_length=1, max_length=60)
    # Major units (pounds, dollars); stored as rounded minor units
    amount: Decimal = Field(..., gt=0, le=MAX_INVOICE_AMOUNT)
    currency: str | None = Field(default=None, pattern=r"^[A-Za-z]{3}$")
    issue_date: dt.date
    due_date: dt.date
    status: InvoiceStatusLiteral = "sent"

    @model_validator(mode="after")
    def _due_not_before_issue(self) -> InvoiceCreate:
        if self.due_date < self.issue_date:
            raise ValueError("due_date cannot be before issue_date")
        return self


class InvoiceUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: int | None = None
    invoice_number: str | None = Field(default=None, min_length=1, max_length=60)
    amount: Decimal | None = Field(default=None, gt=0, le=MAX_INVOICE_AMOUNT)
    currency: str | None = Field(default=None, pattern=r"^[A-Za-z]{3}$")
    issue_date: dt.date | None = None
    due_date: dt.date | None = None
    status: InvoiceStatusLiteral | None = None


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    invoice_number: str
    currency: str
    amount_minor_units: int
    issue_date: dt.date
    due_date: dt.date
    status: str
    paid_at: dt.datetime | None = None
    created_at: dt.datetime | None = None
