"""Reminder email templates and the token renderer.

Templates are plain text with ``{{token}}`` placeholders. Rendering is exact
substring replacement: a token the context does not know is left in place.

Days offsets use a single convention across the project: today minus the due
date in calendar days. Negative is before the due date, zero is the due date,
positive is overdue.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from paynudge.models.models import ReminderTone

SIGNATURE_TOKEN = "{{email_signature}}"

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    body: str


@dataclass(frozen=True)
class RenderedTemplate:
    subject: str
    body: str


@dataclass(frozen=True)
class TemplateContext:
    days_offset: int
    client_name: str
    invoice_number: str
    amount: str
    due_date: str
    issue_date: str
    business_name: str
    sender_name: str
    reply_to_email: str = ""
    email_signature: str = ""


DEFAULT_TEMPLATES: dict[ReminderTone, EmailTemplate] = {
    ReminderTone.FRIENDLY: EmailTemplate(
        subject="Friendly reminder: invoice {{invoice_number}} {{timing}}",
        body=(
            "Hi {{client_name}},\n\n"
            "{{timing_line}}\n\n"
            "Invoice: {{invoice_number}}\n"
            "Amount: {{amount}}\n"
            "Issued: {{issue_date}}\n"
            "Due date: {{due_date}}\n\n"
            "If you have already arranged payment, please ignore this note.\n\n"
            "{{email_signature}}"
        ),
    ),
    ReminderTone.NEUTRAL: EmailTemplate(
        subject="Invoice reminder: {{invoice_number}} {{timing}}",
        body=(
            "Hi {{client_name}},\n\n"
            "{{timing_line}}\n\n"
            "Invoice: {{invoice_number}}\n"
            "Amount: {{amount}}\n"
            "Issued: {{issue_date}}\n"
            "Due date: {{due_date}}\n\n"
            "Could you confirm when payment is scheduled?\n\n"
            "{{email_signature}}"
        ),
    ),
    ReminderTone.FIRM: EmailTemplate(
        subject="Action required: invoice {{invoice_number}} {{timing}}",
        body=(
            "Hi {{client_name}},\n\n"
            "{{timing_line}}\n\n"
            "Invoice: {{invoice_number}}\n"
            "Amount: {{amount}}\n"
            "Issued: {{issue_date}}\n"
            "Due date: {{due_date}}\n\n"
            "Please arrange payment or let us know the expected payment date.\n\n"
            "{{email_signature}}"
        ),
    ),
}


def default_template(tone: ReminderTone | str) -> EmailTemplate:
    return DEFAULT_TEMPLATES[ReminderTone(tone)]


def _days(count: int) -> str:
    return f"{count} day" if count == 1 else f"{count} days"


def build_timing_label(days_offset: int) -> str:
    if days_offset == 0:
        return "due today"
    if days_offset > 0:
        return f"overdue by {_days(days_offset)}"
    return f"due in {_days(abs(days_offset))}"


def build_timing_line(days_offset: int) -> str:
    if days_offset == 0:
        return "This invoice is due today."
    if days_offset > 0:
        return f"This invoice is {_days(days_offset)} overdue."
    return f"This invoice is due in {_days(abs(days_offset))}."


def build_replacements(context: TemplateContext) -> dict[str, str]:
    return {
        "{{client_name}}": context.client_name,
        "{{invoice_number}}": context.invoice_number,
        "{{amount}}": context.amount,
        "{{due_date}}": context.due_date,
        "{{issue_date}}": context.issue_date,
        "{{your_business_name}}": context.business_name,
        "{{business_name}}": context.business_name,
        "{{sender_name}}": context.sender_name,
        "{{reply_to_email}}": context.reply_to_email,
        "{{email_signature}}": context.email_signature,
        "{{signature}}": context.email_signature,
        "{{days_offset}}": str(context.days_offset),
        "{{timing}}": build_timing_label(context.days_offset),
        "{{timing_line}}": build_timing_line(context.days_offset),
    }


def replace_tokens(text: str, replacements: dict[str, str]) -> str:
    for token, value in replacements.items():
        text = text.replace(token, value)
    return text


def remove_lines_with_token(body: str, token: str) -> str:
    return "\n".join(line for line in body.split("\n") if token not in line)


def render_template(template: EmailTemplate, context: TemplateContext) -> RenderedTemplate:
    """Render subject and body.

    Body lines carrying ``{{email_signature}}`` are dropped before substitution;
    the caller appends the signature once after rendering.
    """
    replacements = build_replacements(context)
    subject = replace_tokens(template.subject, replacements).strip()

    body = remove_lines_with_token(template.body, SIGNATURE_TOKEN)
    body = replace_tokens(body, replacements)
    body = _EXCESS_BLANK_LINES.sub("\n\n", body).strip()
    return RenderedTemplate(subject=subject, body=body)
