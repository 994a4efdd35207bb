"""Pydantic schemas for API requests and responses.

Sub-modules:
- client: Client schemas
- invoice: Invoice schemas
- reminder: Reminder rule, template, preview and history schemas
- account: Sender settings and billing status schemas
- utils: Common utility functions
"""
# Client schemas
from .client import ClientCreate, ClientOut, ClientUpdate

# Invoice schemas
from .invoice import InvoiceCreate, InvoiceOut, InvoiceUpdate

# Reminder schemas
from .reminder import (
    ReminderHistoryOut,
    ReminderPreviewOut,
    ReminderPreviewRequest,
    ReminderRuleCreate,
    ReminderRuleOut,
    ReminderRuleUpdate,
    ReminderTemplateOut,
    ReminderTemplateUpsert,
)

# Account schemas
from .account import AccountSettingsOut, AccountSettingsUpdate, BillingStatusOut

__all__ = [
    # Client
    "ClientCreate",
    "ClientUpdate",
    "ClientOut",
    # Invoice
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoiceOut",
    # Reminder
    "ReminderRuleCreate",
    "ReminderRuleUpdate",
    "ReminderRuleOut",
    "ReminderTemplateUpsert",
    "ReminderTemplateOut",
    "ReminderPreviewRequest",
    "ReminderPreviewOut",
    "ReminderHistoryOut",
    # Account
    "AccountSettingsUpdate",
    "AccountSettingsOut",
    "BillingStatusOut",
]
