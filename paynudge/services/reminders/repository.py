"""Data access for the reminder job.

Every query the daily job needs lives here and returns plain dataclasses, so the
job never deals with ORM rows or lazy relationships.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from paynudge.models import models
from paynudge.services.billing.access import BillingSnapshot
from paynudge.services.reminders.templates import EmailTemplate


@dataclass(frozen=True)
class RuleRecord:
    id: int
    user_id: int
    days_offset: int
    tone: models.ReminderTone


@dataclass(frozen=True)
class OutstandingInvoice:
    id: int
    user_id: int
    client_id: int
    invoice_number: str
    currency: str
    amount_minor_units: int
    issue_date: dt.date
    due_date: dt.date
    client_name: str | None
    client_email: str | None


class ReminderRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def enabled_rules(self) -> list[RuleRecord]:
        rows = self.db.scalars(
            select(models.ReminderRule)
            .where(models.ReminderRule.enabled.is_(True))
            .order_by(models.ReminderRule.user_id, models.ReminderRule.id)
        ).all()
        return [
            RuleRecord(id=r.id, user_id=r.user_id, days_offset=r.days_offset, tone=models.ReminderTone(r.tone))
            for r in rows
        ]

    def billing_snapshot(self, user_id: int) -> BillingSnapshot | None:
        row = self.db.scalar(select(models.Profile).where(models.Profile.user_id == user_id))
        return BillingSnapshot.from_profile(row)

    def outstanding_invoices(self, user_id: int) -> list[OutstandingInvoice]:
        rows = self.db.execute(
            select(models.Invoice, models.Client.name, models.Client.email)
            .join(models.Client, models.Client.id == models.Invoice.client_id, isouter=True)
            .where(
                models.Invoice.user_id == user_id,
                models.Invoice.status == models.InvoiceStatus.SENT.value,
                models.Invoice.paid_at.is_(None),
            )
            .order_by(models.Invoice.due_date, models.Invoice.id)
        ).all()
        return [
            OutstandingInvoice(
                id=invoice.id,
                user_id=invoice.user_id,
                client_id=invoice.client_id,
                invoice_number=invoice.invoice_number,
                currency=invoice.currency,
                amount_minor_units=invoice.amount_minor_units,
                issue_date=invoice.issue_date,
                due_date=invoice.due_date,
                client_name=name,
                client_email=(email or "").strip() or None,
            )
            for invoice, name, email in rows
        ]

    def has_recent_reminder(self, invoice_id: int, rule_id: int, since: dt.datetime) -> bool:
        found = self.db.scalar(
            select(models.Reminder.id)
            .where(
                models.Reminder.invoice_id == invoice_id,
                models.Reminder.rule_id == rule_id,
                models.Reminder.sent_at >= since,
            )
            .limit(1)
        )
        return found is not None

    def stored_template(self, user_id: int, tone: models.ReminderTone) -> EmailTemplate | None:
        row = self.db.scalar(
            select(models.ReminderTemplate)
            .where(models.ReminderTemplate.user_id == user_id, models.ReminderTemplate.tone == tone)
            .limit(1)
        )
        if row is None:
            return None
        return EmailTemplate(subject=row.subject, body=row.body)

    def account_email(self, user_id: int) -> str | None:
        return self.db.scalar(select(models.User.email).where(models.User.id == user_id))

    def record_reminder(
        self,
        *,
        user_id: int,
        invoice_id: int,
        rule_id: int,
        sent_at: dt.datetime,
        send_day: dt.date,
        subject: str,
        body: str,
        sent_to: str,
        provider_message_id: str | None,
    ) -> models.Reminder:
        row = models.Reminder(
            user_id=user_id,
            invoice_id=invoice_id,
            rule_id=rule_id,
            sent_at=sent_at,
            send_day=send_day,
            subject=subject,
            body=body,
            sent_to=sent_to,
            provider_message_id=provider_message_id,
        )
        self.db.add(row)
        self.db.commit()
        return row

    def rollback(self) -> None:
        self.db.rollback()


def purge_pending_reminders(
    db: Session,
    *,
    now: dt.datetime | None = None,
    invoice_id: int | None = None,
    rule_id: int | None = None,
    user_id: int | None = None,
) -> int:
    """Delete reminder rows not yet sent (``sent_at`` null or in the future).

    Rows already sent stay as history. Does not commit.
    """
    now = now or models.utcnow()
    stmt = select(models.Reminder).where(
        or_(models.Reminder.sent_at.is_(None), models.Reminder.sent_at > now)
    )
    if invoice_id is not None:
        stmt = stmt.where(models.Reminder.invoice_id == invoice_id)
    if rule_id is not None:
        stmt = stmt.where(models.Reminder.rule_id == rule_id)
    if user_id is not None:
        stmt = stmt.where(models.Reminder.user_id == user_id)
    rows = db.scalars(stmt).all()
    for row in rows:
        db.delete(row)
    return len(rows)
