from __future__ import annotations

from dataclasses import dataclass

from paynudge.core.config import settings
from paynudge.models.models import ReminderTone
from paynudge.services.notification.providers import EmailProvider, OutgoingEmail
from paynudge.services.reminders.profile import SenderProfile
from paynudge.services.reminders.render import render_reminder_content
from paynudge.services.reminders.templates import EmailTemplate, default_template


@dataclass(frozen=True)
class ReminderEmail:
    tone: ReminderTone
    days_offset: int
    invoice_number: str
    amount: str
    due_date: str
    issue_date: str
    client_name: str
    client_email: str
    business_name: str | None = None
    template: EmailTemplate | None = None
    sender_profile: SenderProfile | None = None


@dataclass(frozen=True)
class DispatchedReminder:
    subject: str
    body: str
    provider_message_id: str | None


class ReminderMailer:
    """Renders reminder content and hands it to the mail provider."""

    def __init__(self, provider: EmailProvider, from_address: str | None = None, from_name: str | None = None) -> None:
        self.provider = provider
        self.from_address = from_address or settings.FROM_EMAIL
        self.from_name = from_name or settings.FROM_NAME

    async def send_reminder(self, reminder: ReminderEmail) -> DispatchedReminder:
        template = reminder.template or default_template(reminder.tone)
        content = render_reminder_content(
            template,
            days_offset=reminder.days_offset,
            client_name=reminder.client_name,
            invoice_number=reminder.invoice_number,
            amount=reminder.amount,
            due_date=reminder.due_date,
            issue_date=reminder.issue_date,
            business_name=reminder.business_name,
            sender_profile=reminder.sender_profile,
        )
        message_id = await self.provider.send(
            OutgoingEmail(
                from_address=self.from_address,
                from_name=self.from_name,
                to=reminder.client_email,
                subject=content.subject,
                text=content.text,
                html=content.html,
                reply_to=content.reply_to_email,
            )
        )
        return DispatchedReminder(subject=content.subject, body=content.text, provider_message_id=message_id)
