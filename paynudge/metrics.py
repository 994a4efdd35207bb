"""Metrics facade.

Service code should ONLY call the semantic helpers here so the backend can
change freely.

Metrics:
- reminder_job_runs_total              Daily reminder job runs started
- reminder_job_last_summary            Counters of the most recent run, by field
- reminders_sent_total                 Reminders sent, by tone
- reminders_skipped_total              Matches skipped, by reason
- reminder_send_failures_total         Provider failures during the job
- invoice_created_total / invoice_paid_total
- stripe_webhook_events_total          Stripe events processed, by type
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge

if TYPE_CHECKING:
    from paynudge.services.reminders.job import ReminderJobSummary

logger = logging.getLogger("metrics")

_JOB_RUNS = Counter("reminder_job_runs_total", "Daily reminder job runs started")
_JOB_LAST_SUMMARY = Gauge(
    "reminder_job_last_summary", "Counters reported by the most recent reminder job run", ["field"]
)
_REMINDERS_SENT = Counter("reminders_sent_total", "Reminder emails sent", ["tone"])
_REMINDERS_SKIPPED = Counter("reminders_skipped_total", "Matched reminders not sent", ["reason"])
_REMINDER_SEND_FAILURES = Counter("reminder_send_failures_total", "Reminder emails the provider rejected")
_INVOICE_CREATED = Counter("invoice_created_total", "Invoices successfully created")
_INVOICE_PAID = Counter("invoice_paid_total", "Invoices marked paid")
_STRIPE_EVENTS = Counter("stripe_webhook_events_total", "Stripe webhook events processed", ["event_type"])


def reminder_job_started():
    _JOB_RUNS.inc()


def reminder_job_completed(summary: ReminderJobSummary):
    for field, value in summary.to_dict().items():
        _JOB_LAST_SUMMARY.labels(field=field).set(value)
    logger.debug("reminder job summary recorded: %s", summary.to_dict())


def reminder_sent(tone: str):
    _REMINDERS_SENT.labels(tone=tone).inc()


def reminder_skipped(reason: str):
    _REMINDERS_SKIPPED.labels(reason=reason).inc()


def reminder_send_failed():
    _REMINDER_SEND_FAILURES.inc()


def invoice_created():
    _INVOICE_CREATED.inc()


def invoice_paid():
    _INVOICE_PAID.inc()


def stripe_event_processed(event_type: str):
    _STRIPE_EVENTS.labels(event_type=event_type).inc()


__all__ = [
    "reminder_job_started",
    "reminder_job_completed",
    "reminder_sent",
    "reminder_skipped",
    "reminder_send_failed",
    "invoice_created",
    "invoice_paid",
    "stripe_event_processed",
]
