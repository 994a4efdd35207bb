"""Custom exception hierarchy for PayNudge.

All application errors derive from ``PayNudgeException`` so the API layer can
render them uniformly. Error codes follow the pattern [CATEGORY][NUMBER]:

- CLI: Client errors (001-099)
- INV: Invoice errors (100-199)
- REM: Reminder rule/template errors (200-299)
- PAY: Billing/payment errors (300-399)
- SYS: System errors (400-499)
"""

from __future__ import annotations

from typing import Any


class PayNudgeException(Exception):
    """Base exception for all PayNudge application errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "details": self.details,
            }
        }


# ============================================================================
# CLIENT ERRORS (CLI001-099)
# ============================================================================

class ClientError(PayNudgeException):
    """Base class for client (customer) errors."""
    pass


class ClientNotFoundError(ClientError):
    """Client does not exist or belongs to another user."""

    def __init__(self, client_id: int | None = None):
        message = "Client not found" if client_id is None else f"Client {client_id} not found"
        super().__init__(
            message=message,
            code="CLI001",
            status_code=404,
            details={"client_id": client_id} if client_id is not None else {},
        )


# ============================================================================
# INVOICE ERRORS (INV100-199)
# ============================================================================

class InvoiceError(PayNudgeException):
    """Base class for invoice-related errors."""
    pass


class InvoiceNotFoundError(InvoiceError):
    """Invoice does not exist or belongs to another user."""

    def __init__(self, invoice_id: int | None = None):
        message = "Invoice not found" if invoice_id is None else f"Invoice {invoice_id} not found"
        super().__init__(
            message=message,
            code="INV100",
            status_code=404,
            details={"invoice_id": invoice_id} if invoice_id is not None else {},
        )


class DuplicateInvoiceNumberError(InvoiceError):
    """Invoice number already used by this user."""

    def __init__(self, invoice_number: str):
        super().__init__(
            message=f"Invoice number {invoice_number} is already in use",
            code="INV101",
            status_code=409,
            details={"invoice_number": invoice_number},
        )


class InvalidInvoiceDatesError(InvoiceError):
    """Due date falls before the issue date."""

    def __init__(self, issue_date, due_date):
        super().__init__(
            message="due_date cannot be before issue_date",
            code="INV102",
            status_code=422,
            details={"issue_date": str(issue_date), "due_date": str(due_date)},
        )


# ============================================================================
# REMINDER ERRORS (REM200-299)
# ============================================================================

class ReminderError(PayNudgeException):
    """Base class for reminder rule and template errors."""
    pass


class ReminderRuleNotFoundError(ReminderError):
    def __init__(self, rule_id: int | None = None):
        message = "Reminder rule not found" if rule_id is None else f"Reminder rule {rule_id} not found"
        super().__init__(
            message=message,
            code="REM200",
            status_code=404,
            details={"rule_id": rule_id} if rule_id is not None else {},
        )


# ============================================================================
# BILLING ERRORS (PAY300-399)
# ============================================================================

class BillingError(PayNudgeException):
    """Base class for billing/payment errors."""
    pass


class InvalidWebhookSignatureError(BillingError):
    """Payment provider webhook could not be verified."""

    def __init__(self, reason: str = "Invalid signature"):
        super().__init__(
            message=reason,
            code="PAY300",
            status_code=400,
        )


class BillingProfileUpdateError(BillingError):
    """Subscription state could not be written to the profile."""

    def __init__(self, reason: str):
        super().__init__(
            message="Profile update failed",
            code="PAY301",
            status_code=500,
            details={"reason": reason},
        )


# ============================================================================
# SYSTEM ERRORS (SYS400-499)
# ============================================================================

class SystemError(PayNudgeException):
    """Base class for system/infrastructure errors."""
    pass


class ConfigurationError(SystemError):
    """Application configuration is invalid or missing."""

    def __init__(self, parameter: str):
        message = f"Configuration error: {parameter} is not configured properly"
        super().__init__(
            message=message,
            code="SYS401",
            status_code=500,
            details={"parameter": parameter},
        )


class EmailDeliveryError(SystemError):
    """The mail provider rejected or failed to accept a message."""

    def __init__(self, reason: str, provider: str | None = None):
        super().__init__(
            message=f"Email delivery failed: {reason}",
            code="SYS402",
            status_code=502,
            details={"provider": provider} if provider else {},
        )
