"""Daily reminder job.

One run walks every enabled rule, checks the owner's billing access, and for
each outstanding invoice of that owner decides whether the rule fires today:

    offset = today - due_date (calendar days)
    fire when offset == rule.days_offset

Matches are then filtered for a missing client email and for a reminder already
recorded for the same (invoice, rule) within the dedup window, rendered, sent
and recorded. A failure on one user or one invoice is logged and the run moves
on; only a failure to list the rules aborts the run.

Caches for billing state, templates and sender profiles live on the job
instance and are discarded with it.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paynudge import metrics
from paynudge.core.config import settings
from paynudge.core.exceptions import EmailDeliveryError
from paynudge.models.models import ReminderTone
from paynudge.services.billing.access import BillingSnapshot, has_access
from paynudge.services.reminders.email import ReminderEmail, ReminderMailer
from paynudge.services.reminders.profile import SenderProfile, get_sender_profile
from paynudge.services.reminders.repository import OutstandingInvoice, ReminderRepository, RuleRecord
from paynudge.services.reminders.templates import EmailTemplate
from paynudge.utils.formatting import format_date, format_money

logger = logging.getLogger(__name__)

MISSING_CLIENT_NAME = "there"


@dataclass
class ReminderJobSummary:
    rules_processed: int = 0
    invoices_matched: int = 0
    reminders_sent: int = 0
    skipped_duplicates: int = 0
    skipped_missing_email: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "rulesProcessed": self.rules_processed,
            "invoicesMatched": self.invoices_matched,
            "remindersSent": self.reminders_sent,
            "skippedDuplicates": self.skipped_duplicates,
            "skippedMissingEmail": self.skipped_missing_email,
        }


def calendar_day_offset(today: dt.date, due_date: dt.date) -> int:
    """Whole calendar days from the due date to today; negative before it."""
    return (today - due_date).days


def matches_rule(rule: RuleRecord, invoice: OutstandingInvoice, today: dt.date) -> bool:
    return calendar_day_offset(today, invoice.due_date) == rule.days_offset


def local_today(now: dt.datetime, tz_name: str | None = None) -> dt.date:
    return now.astimezone(ZoneInfo(tz_name or settings.REMINDER_TIMEZONE)).date()


class ReminderJob:
    def __init__(
        self,
        db: Session,
        mailer: ReminderMailer,
        *,
        now: dt.datetime | None = None,
        today: dt.date | None = None,
        billing_enabled: bool | None = None,
        business_name: str | None = None,
        dedup_window: dt.timedelta | None = None,
    ) -> None:
        self.repo = ReminderRepository(db)
        self.db = db
        self.mailer = mailer
        self.now = now or dt.datetime.now(dt.timezone.utc)
        self.today = today or local_today(self.now)
        self.billing_enabled = settings.BILLING_ENABLED if billing_enabled is None else billing_enabled
        self.business_name = business_name if business_name is not None else settings.BUSINESS_NAME
        self.dedup_window = dedup_window or dt.timedelta(hours=settings.REMINDER_DEDUP_WINDOW_HOURS)
        self.summary = ReminderJobSummary()

        self._billing_cache: dict[int, BillingSnapshot | None] = {}
        self._template_cache: dict[tuple[int, ReminderTone], EmailTemplate | None] = {}
        self._sender_cache: dict[int, SenderProfile | None] = {}

    async def run(self) -> ReminderJobSummary:
        rules = self.repo.enabled_rules()
        self.summary.rules_processed = len(rules)
        logger.info("Reminder job started | rules=%s today=%s", len(rules), self.today.isoformat())

        for rule in rules:
            if not self._user_has_access(rule.user_id):
                logger.debug("Skipping rule %s: user %s has no billing access", rule.id, rule.user_id)
                continue
            try:
                invoices = self.repo.outstanding_invoices(rule.user_id)
            except SQLAlchemyError as exc:
                logger.error("Invoice fetch failed for user %s: %s", rule.user_id, exc)
                self.repo.rollback()
                continue

            for invoice in invoices:
                await self._process(rule, invoice)

        metrics.reminder_job_completed(self.summary)
        logger.info("Reminder job finished | %s", self.summary.to_dict())
        return self.summary

    async def _process(self, rule: RuleRecord, invoice: OutstandingInvoice) -> None:
        if not matches_rule(rule, invoice, self.today):
            return

        self.summary.invoices_matched += 1

        if not invoice.client_email:
            self.summary.skipped_missing_email += 1
            metrics.reminder_skipped("missing_email")
            logger.info("Invoice %s matched rule %s but client has no email", invoice.invoice_number, rule.id)
            return

        try:
            duplicate = self.repo.has_recent_reminder(invoice.id, rule.id, self.now - self.dedup_window)
        except SQLAlchemyError as exc:
            logger.error("Reminder check failed for invoice %s rule %s: %s", invoice.id, rule.id, exc)
            self.repo.rollback()
            return
        if duplicate:
            self.summary.skipped_duplicates += 1
            metrics.reminder_skipped("duplicate")
            return

        try:
            dispatched = await self.mailer.send_reminder(
                ReminderEmail(
                    tone=rule.tone,
                    days_offset=rule.days_offset,
                    invoice_number=invoice.invoice_number,
                    amount=format_money(invoice.amount_minor_units, invoice.currency),
                    due_date=format_date(invoice.due_date),
                    issue_date=format_date(invoice.issue_date),
                    client_name=invoice.client_name or MISSING_CLIENT_NAME,
                    client_email=invoice.client_email,
                    business_name=self.business_name,
                    template=self._template_for(rule.user_id, rule.tone),
                    sender_profile=self._sender_for(rule.user_id),
                )
            )
        except EmailDeliveryError as exc:
            self.repo.rollback()
            metrics.reminder_send_failed()
            logger.error("Email send failed for invoice %s rule %s: %s", invoice.id, rule.id, exc)
            return
        except Exception:  # noqa: BLE001
            # Lookup or provider fault; the remaining invoices still run
            self.repo.rollback()
            metrics.reminder_send_failed()
            logger.exception("Reminder dispatch failed for invoice %s rule %s", invoice.id, rule.id)
            return

        try:
            self.repo.record_reminder(
                user_id=invoice.user_id,
                invoice_id=invoice.id,
                rule_id=rule.id,
                sent_at=self.now,
                send_day=self.today,
                subject=dispatched.subject,
                body=dispatched.body,
                sent_to=invoice.client_email,
                provider_message_id=dispatched.provider_message_id,
            )
        except SQLAlchemyError as exc:
            # The email may already be delivered; it is simply not counted
            self.repo.rollback()
            logger.error("Reminder insert failed for invoice %s rule %s: %s", invoice.id, rule.id, exc)
            return

        self.summary.reminders_sent += 1
        metrics.reminder_sent(rule.tone.value)
        logger.info(
            "Reminder sent | invoice=%s rule=%s tone=%s to=%s",
            invoice.invoice_number,
            rule.id,
            rule.tone.value,
            invoice.client_email,
        )

    def _user_has_access(self, user_id: int) -> bool:
        if user_id not in self._billing_cache:
            try:
                self._billing_cache[user_id] = self.repo.billing_snapshot(user_id)
            except SQLAlchemyError as exc:
                logger.error("Billing profile fetch failed for user %s: %s", user_id, exc)
                self.repo.rollback()
                self._billing_cache[user_id] = None
        return has_access(self._billing_cache[user_id], billing_enabled=self.billing_enabled, now=self.now)

    def _template_for(self, user_id: int, tone: ReminderTone) -> EmailTemplate | None:
        key = (user_id, tone)
        if key not in self._template_cache:
            self._template_cache[key] = self.repo.stored_template(user_id, tone)
        return self._template_cache[key]

    def _sender_for(self, user_id: int) -> SenderProfile | None:
        if user_id not in self._sender_cache:
            profile = get_sender_profile(self.db, user_id)
            if profile is None or not (profile.reply_to_email or "").strip():
                profile = (profile or SenderProfile()).with_reply_to(self.repo.account_email(user_id))
            self._sender_cache[user_id] = profile
        return self._sender_cache[user_id]


async def run_daily_reminder_job(db: Session, mailer: ReminderMailer, **options) -> ReminderJobSummary:
    """Run one full pass; ``options`` are forwarded to ``ReminderJob``."""
    metrics.reminder_job_started()
    return await ReminderJob(db, mailer, **options).run()
