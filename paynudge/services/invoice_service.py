"""Invoice workflow: owner-scoped CRUD plus the paid transition.

Marking an invoice paid stamps ``paid_at`` and purges reminder rows that were
never sent, so the daily job stops considering it.
"""
from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paynudge import metrics
from paynudge.core.config import settings
from paynudge.core.exceptions import (
    DuplicateInvoiceNumberError,
    InvalidInvoiceDatesError,
    InvoiceNotFoundError,
)
from paynudge.models import models, schemas
from paynudge.services.client_service import ClientService
from paynudge.services.reminders.repository import purge_pending_reminders
from paynudge.utils.formatting import to_minor_units

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.clients = ClientService(db)

    def list_invoices(self, user_id: int, status: str | None = None) -> list[models.Invoice]:
        query = self.db.query(models.Invoice).filter(models.Invoice.user_id == user_id)
        if status:
            query = query.filter(models.Invoice.status == status)
        return query.order_by(models.Invoice.due_date, models.Invoice.id).all()

    def get_invoice(self, user_id: int, invoice_id: int) -> models.Invoice:
        invoice = (
            self.db.query(models.Invoice)
            .filter(models.Invoice.id == invoice_id, models.Invoice.user_id == user_id)
            .one_or_none()
        )
        if not invoice:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def create_invoice(self, user_id: int, data: schemas.InvoiceCreate) -> models.Invoice:
        # Ownership check; raises ClientNotFoundError for another user's client
        self.clients.get_client(user_id, data.client_id)

        paid_at = dt.datetime.now(dt.timezone.utc) if data.status == models.InvoiceStatus.PAID.value else None
        invoice = models.Invoice(
            user_id=user_id,
            client_id=data.client_id,
            invoice_number=data.invoice_number,
            currency=(data.currency or settings.DEFAULT_CURRENCY).upper(),
            amount_minor_units=to_minor_units(data.amount),
            issue_date=data.issue_date,
            due_date=data.due_date,
            status=data.status,
            paid_at=paid_at,
        )
        self.db.add(invoice)
        self._commit_unique(data.invoice_number)
        self.db.refresh(invoice)
        metrics.invoice_created()
        logger.info("Created invoice %s (%s) for user %s", invoice.id, invoice.invoice_number, user_id)
        return invoice

    def update_invoice(self, user_id: int, invoice_id: int, data: schemas.InvoiceUpdate) -> models.Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "client_id" in changes:
            self.clients.get_client(user_id, changes["client_id"])
        if "amount" in changes:
            changes["amount_minor_units"] = to_minor_units(changes.pop("amount"))
        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()

        issue_date = changes.get("issue_date", invoice.issue_date)
        due_date = changes.get("due_date", invoice.due_date)
        if due_date < issue_date:
            raise InvalidInvoiceDatesError(issue_date, due_date)

        status = changes.pop("status", None)
        for field, value in changes.items():
            setattr(invoice, field, value)

        if status == models.InvoiceStatus.PAID.value:
            self._apply_paid(invoice)
        elif status is not None:
            invoice.status = status
            invoice.paid_at = None

        self._commit_unique(invoice.invoice_number)
        self.db.refresh(invoice)
        return invoice

    def mark_paid(self, user_id: int, invoice_id: int) -> models.Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        if invoice.status == models.InvoiceStatus.PAID.value and invoice.paid_at is not None:
            return invoice
        self._apply_paid(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def delete_invoice(self, user_id: int, invoice_id: int) -> None:
        invoice = self.get_invoice(user_id, invoice_id)
        self.db.delete(invoice)
        self.db.commit()
        logger.info("Deleted invoice %s for user %s", invoice_id, user_id)

    def _apply_paid(self, invoice: models.Invoice) -> None:
        now = dt.datetime.now(dt.timezone.utc)
        was_paid = invoice.status == models.InvoiceStatus.PAID.value
        invoice.status = models.InvoiceStatus.PAID.value
        invoice.paid_at = invoice.paid_at or now
        purged = purge_pending_reminders(self.db, now=now, invoice_id=invoice.id)
        if not was_paid:
            metrics.invoice_paid()
        logger.info("Invoice %s marked paid; purged %s pending reminders", invoice.id, purged)

    def _commit_unique(self, invoice_number: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateInvoiceNumberError(invoice_number) from exc
