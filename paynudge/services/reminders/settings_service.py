"""Per-user reminder configuration: rules, template overrides and previews."""
from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.orm import Session

from paynudge.core.config import settings
from paynudge.core.exceptions import ReminderRuleNotFoundError
from paynudge.models import models, schemas
from paynudge.services.reminders.profile import get_sender_profile
from paynudge.services.reminders.render import ReminderContent, render_reminder_content
from paynudge.services.reminders.repository import purge_pending_reminders
from paynudge.services.reminders.templates import DEFAULT_TEMPLATES, EmailTemplate
from paynudge.utils.formatting import format_date, format_money

logger = logging.getLogger(__name__)

PREVIEW_CLIENT_NAME = "Alex Client"
PREVIEW_INVOICE_NUMBER = "INV-0042"
PREVIEW_AMOUNT_MINOR_UNITS = 125_000


class ReminderSettingsService:
    def __init__(self, db: Session):
        self.db = db

    # ---------------- Rules -----------------
    def list_rules(self, user_id: int) -> list[models.ReminderRule]:
        return (
            self.db.query(models.ReminderRule)
            .filter(models.ReminderRule.user_id == user_id)
            .order_by(models.ReminderRule.days_offset, models.ReminderRule.id)
            .all()
        )

    def get_rule(self, user_id: int, rule_id: int) -> models.ReminderRule:
        rule = (
            self.db.query(models.ReminderRule)
            .filter(models.ReminderRule.id == rule_id, models.ReminderRule.user_id == user_id)
            .one_or_none()
        )
        if not rule:
            raise ReminderRuleNotFoundError(rule_id)
        return rule

    def create_rule(self, user_id: int, data: schemas.ReminderRuleCreate) -> models.ReminderRule:
        rule = models.ReminderRule(user_id=user_id, days_offset=data.days_offset, tone=data.tone, enabled=data.enabled)
        self.db.add(rule)
        self.db.commit()
        self.db.refresh(rule)
        logger.info("Created reminder rule %s (offset=%s tone=%s) for user %s", rule.id, rule.days_offset, rule.tone.value, user_id)
        return rule

    def update_rule(self, user_id: int, rule_id: int, data: schemas.ReminderRuleUpdate) -> models.ReminderRule:
        rule = self.get_rule(user_id, rule_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(rule, field, value)
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def delete_rule(self, user_id: int, rule_id: int) -> None:
        """Delete a rule; sent reminders stay in the history with no rule attached."""
        rule = self.get_rule(user_id, rule_id)
        purged = purge_pending_reminders(self.db, rule_id=rule.id, user_id=user_id)
        self.db.delete(rule)
        self.db.commit()
        logger.info("Deleted reminder rule %s for user %s; purged %s pending reminders", rule_id, user_id, purged)

    # ---------------- Templates -----------------
    def _stored_templates(self, user_id: int) -> dict[models.ReminderTone, models.ReminderTemplate]:
        rows = self.db.query(models.ReminderTemplate).filter(models.ReminderTemplate.user_id == user_id).all()
        return {models.ReminderTone(row.tone): row for row in rows}

    def list_templates(self, user_id: int) -> list[schemas.ReminderTemplateOut]:
        """Effective template per tone: the user's override, else the built-in default."""
        stored = self._stored_templates(user_id)
        result = []
        for tone in models.ReminderTone:
            row = stored.get(tone)
            if row is not None:
                result.append(schemas.ReminderTemplateOut(tone=tone, subject=row.subject, body=row.body, is_default=False))
            else:
                default = DEFAULT_TEMPLATES[tone]
                result.append(
                    schemas.ReminderTemplateOut(tone=tone, subject=default.subject, body=default.body, is_default=True)
                )
        return result

    def effective_template(self, user_id: int, tone: models.ReminderTone) -> EmailTemplate:
        row = self._stored_templates(user_id).get(tone)
        if row is None:
            return DEFAULT_TEMPLATES[tone]
        return EmailTemplate(subject=row.subject, body=row.body)

    def upsert_template(
        self,
        user_id: int,
        tone: models.ReminderTone,
        data: schemas.ReminderTemplateUpsert,
    ) -> schemas.ReminderTemplateOut:
        row = self._stored_templates(user_id).get(tone)
        if row is None:
            row = models.ReminderTemplate(user_id=user_id, tone=tone, subject=data.subject, body=data.body)
            self.db.add(row)
        else:
            row.subject = data.subject
            row.body = data.body
        self.db.commit()
        return schemas.ReminderTemplateOut(tone=tone, subject=row.subject, body=row.body, is_default=False)

    def reset_template(self, user_id: int, tone: models.ReminderTone) -> schemas.ReminderTemplateOut:
        row = self._stored_templates(user_id).get(tone)
        if row is not None:
            self.db.delete(row)
            self.db.commit()
        default = DEFAULT_TEMPLATES[tone]
        return schemas.ReminderTemplateOut(tone=tone, subject=default.subject, body=default.body, is_default=True)

    def preview(self, user_id: int, request: schemas.ReminderPreviewRequest) -> ReminderContent:
        effective = self.effective_template(user_id, request.tone)
        template = EmailTemplate(
            subject=request.subject if request.subject else effective.subject,
            body=request.body if request.body else effective.body,
        )
        today = dt.date.today()
        due_date = today - dt.timedelta(days=request.days_offset)
        account_email = self.db.query(models.User.email).filter(models.User.id == user_id).scalar()
        profile = get_sender_profile(self.db, user_id)
        if profile is not None:
            profile = profile.with_reply_to(account_email)
        return render_reminder_content(
            template,
            days_offset=request.days_offset,
            client_name=PREVIEW_CLIENT_NAME,
            invoice_number=PREVIEW_INVOICE_NUMBER,
            amount=format_money(PREVIEW_AMOUNT_MINOR_UNITS, settings.DEFAULT_CURRENCY),
            due_date=format_date(due_date),
            issue_date=format_date(due_date - dt.timedelta(days=30)),
            business_name=settings.BUSINESS_NAME,
            sender_profile=profile,
        )

    # ---------------- History -----------------
    def history(self, user_id: int, limit: int = 100) -> list[schemas.ReminderHistoryOut]:
        rows = (
            self.db.query(models.Reminder, models.Invoice.invoice_number)
            .join(models.Invoice, models.Invoice.id == models.Reminder.invoice_id)
            .filter(models.Reminder.user_id == user_id, models.Reminder.sent_at.isnot(None))
            .order_by(models.Reminder.sent_at.desc(), models.Reminder.id.desc())
            .limit(limit)
            .all()
        )
        return [
            schemas.ReminderHistoryOut(
                id=reminder.id,
                invoice_id=reminder.invoice_id,
                invoice_number=invoice_number,
                rule_id=reminder.rule_id,
                sent_at=reminder.sent_at,
                subject=reminder.subject,
                sent_to=reminder.sent_to,
                provider_message_id=reminder.provider_message_id,
            )
            for reminder, invoice_number in rows
        ]
