from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.orm import Session

from paynudge.core.config import settings
from paynudge.models import models, schemas
from paynudge.services.billing.access import days_left, get_trial_ends_at, has_access, is_trial_active
from paynudge.services.reminders.profile import get_or_create_profile

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, db: Session):
        self.db = db

    def _user(self, user_id: int) -> models.User:
        return self.db.query(models.User).filter(models.User.id == user_id).one()

    def get_settings(self, user_id: int) -> schemas.AccountSettingsOut:
        user = self._user(user_id)
        profile = get_or_create_profile(self.db, user_id)
        return schemas.AccountSettingsOut(
            email=user.email,
            full_name=profile.full_name,
            sender_name=profile.sender_name,
            reply_to_email=profile.reply_to_email,
            email_signature=profile.email_signature,
        )

    def update_settings(self, user_id: int, data: schemas.AccountSettingsUpdate) -> schemas.AccountSettingsOut:
        profile = get_or_create_profile(self.db, user_id)
        for field, value in data.model_dump().items():
            setattr(profile, field, value)
        self.db.commit()
        logger.info("Updated sender settings for user %s", user_id)
        return self.get_settings(user_id)

    def billing_status(self, user_id: int, now: dt.datetime | None = None) -> schemas.BillingStatusOut:
        """Billing state as the reminder job sees it."""
        now = now or dt.datetime.now(dt.timezone.utc)
        profile = get_or_create_profile(self.db, user_id)
        return schemas.BillingStatusOut(
            billing_enabled=settings.BILLING_ENABLED,
            has_access=has_access(profile, now=now),
            subscription_status=profile.subscription_status,
            trial_ends_at=get_trial_ends_at(profile, now=now),
            trial_active=is_trial_active(profile, now=now),
            trial_days_left=days_left(profile, now=now),
            current_period_end=profile.current_period_end,
        )
