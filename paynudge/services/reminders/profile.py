from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paynudge.core.config import settings
from paynudge.models import models

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_NAME = "PayNudge"


@dataclass(frozen=True)
class SenderProfile:
    sender_name: str | None = None
    reply_to_email: str | None = None
    email_signature: str | None = None
    full_name: str | None = None

    @classmethod
    def from_row(cls, row: models.Profile) -> SenderProfile:
        return cls(
            sender_name=row.sender_name,
            reply_to_email=row.reply_to_email,
            email_signature=row.email_signature,
            full_name=row.full_name,
        )

    def with_reply_to(self, fallback: str | None) -> SenderProfile:
        """Fill an empty reply-to with ``fallback`` (usually the login email)."""
        if _clean(self.reply_to_email) or not fallback:
            return self
        return replace(self, reply_to_email=fallback)


def _clean(value: str | None) -> str:
    return (value or "").strip()


def fallback_business_name() -> str:
    return _clean(settings.BUSINESS_NAME) or DEFAULT_BUSINESS_NAME


def resolve_sender_name(profile: SenderProfile | None, business_name: str | None = None) -> str:
    business = _clean(business_name) or fallback_business_name()
    if profile is None:
        return business
    return _clean(profile.sender_name) or _clean(profile.full_name) or business


def resolve_reply_to(profile: SenderProfile | None, fallback: str | None = None) -> str:
    explicit = _clean(profile.reply_to_email) if profile else ""
    return explicit or _clean(fallback)


def resolve_signature(profile: SenderProfile | None, sender_name: str) -> str:
    explicit = _clean(profile.email_signature) if profile else ""
    return explicit or f"-- {sender_name}"


def get_or_create_profile(db: Session, user_id: int) -> models.Profile:
    """Return the user's profile row, inserting an empty one on first access."""
    row = db.scalar(select(models.Profile).where(models.Profile.user_id == user_id))
    if row is not None:
        return row
    row = models.Profile(user_id=user_id)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Created concurrently by another request
        db.rollback()
        return db.scalars(select(models.Profile).where(models.Profile.user_id == user_id)).one()
    db.refresh(row)
    logger.info("Created empty profile for user %s", user_id)
    return row


def get_sender_profile(db: Session, user_id: int | None) -> SenderProfile | None:
    if not user_id:
        return None
    return SenderProfile.from_row(get_or_create_profile(db, user_id))
