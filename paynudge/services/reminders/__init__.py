"""Invoice reminder engine.

Sub-modules:
- templates: token substitution and built-in templates per tone
- render: sender resolution plus text/HTML assembly
- profile: per-user sender identity
- repository: queries used by the daily job
- email: hands rendered reminders to the mail provider
- job: matching engine and orchestrator
"""
from .email import DispatchedReminder, ReminderEmail, ReminderMailer
from .job import (
    ReminderJob,
    ReminderJobSummary,
    calendar_day_offset,
    matches_rule,
    run_daily_reminder_job,
)
from .templates import DEFAULT_TEMPLATES, EmailTemplate, TemplateContext, render_template

__all__ = [
    "DispatchedReminder",
    "ReminderEmail",
    "ReminderMailer",
    "ReminderJob",
    "ReminderJobSummary",
    "calendar_day_offset",
    "matches_rule",
    "run_daily_reminder_job",
    "DEFAULT_TEMPLATES",
    "EmailTemplate",
    "TemplateContext",
    "render_template",
]
