from __future__ import annotations

import html
from dataclasses import dataclass

from paynudge.services.reminders.profile import (
    SenderProfile,
    fallback_business_name,
    resolve_reply_to,
    resolve_sender_name,
    resolve_signature,
)
from paynudge.services.reminders.templates import EmailTemplate, TemplateContext, render_template


@dataclass(frozen=True)
class ReminderContent:
    subject: str
    text: str
    html: str
    reply_to_email: str | None


def to_html(value: str) -> str:
    return html.escape(value, quote=True).replace("&#x27;", "&#39;").replace("\n", "<br/>")


def render_reminder_content(
    template: EmailTemplate,
    *,
    days_offset: int,
    client_name: str,
    invoice_number: str,
    amount: str,
    due_date: str,
    issue_date: str,
    business_name: str | None = None,
    sender_profile: SenderProfile | None = None,
) -> ReminderContent:
    """Render a reminder and append the sender signature once, as text and HTML."""
    business = (business_name or "").strip() or fallback_business_name()
    sender_name = resolve_sender_name(sender_profile, business)
    reply_to = resolve_reply_to(sender_profile)
    signature = resolve_signature(sender_profile, sender_name)

    rendered = render_template(
        template,
        TemplateContext(
            days_offset=days_offset,
            client_name=client_name,
            invoice_number=invoice_number,
            amount=amount,
            due_date=due_date,
            issue_date=issue_date,
            business_name=business,
            sender_name=sender_name,
            reply_to_email=reply_to,
            email_signature=signature,
        ),
    )

    base_text = rendered.body.strip()
    return ReminderContent(
        subject=rendered.subject,
        text=f"{base_text}\n\n{signature}",
        html=f"{to_html(base_text)}<br/><br/>{to_html(signature)}",
        reply_to_email=reply_to or None,
    )
