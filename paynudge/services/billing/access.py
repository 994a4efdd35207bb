"""Billing access gate.

``has_access`` is the single predicate deciding whether an account may send
reminders. The account billing endpoint and the daily reminder job both call
it so the state shown to the user matches what the job enforces.

The profile argument is anything exposing ``subscription_status`` and
``trial_ends_at`` (an ORM ``Profile`` or a ``BillingSnapshot``).
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Protocol

from paynudge.core.config import settings
from paynudge.models.models import SubscriptionStatus

DEFAULT_TRIAL_DAYS = 14


class BillingProfile(Protocol):
    subscription_status: str | None
    trial_ends_at: dt.datetime | None


@dataclass(frozen=True)
class BillingSnapshot:
    """Detached copy of the billing columns, safe to cache across a job run."""

    subscription_status: str | None = None
    trial_ends_at: dt.datetime | None = None

    @classmethod
    def from_profile(cls, profile: BillingProfile | None) -> BillingSnapshot | None:
        if profile is None:
            return None
        return cls(subscription_status=profile.subscription_status, trial_ends_at=profile.trial_ends_at)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _as_aware(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def get_trial_ends_at(
    profile: BillingProfile | None,
    trial_days: int | None = None,
    now: dt.datetime | None = None,
) -> dt.datetime | None:
    if profile is None:
        return None
    if profile.trial_ends_at is not None:
        return _as_aware(profile.trial_ends_at)
    days = trial_days if trial_days is not None else getattr(settings, "TRIAL_DAYS", DEFAULT_TRIAL_DAYS)
    return (now or _utcnow()) + dt.timedelta(days=days)


def is_subscription_active(profile: BillingProfile | None) -> bool:
    status = profile.subscription_status if profile is not None else None
    if not status:
        return False
    try:
        return SubscriptionStatus(status).grants_access
    except ValueError:
        return False


def is_trial_active(profile: BillingProfile | None, now: dt.datetime | None = None) -> bool:
    now = now or _utcnow()
    ends_at = get_trial_ends_at(profile, now=now)
    if ends_at is None:
        return False
    return now < ends_at


def is_trial_expired(profile: BillingProfile | None, now: dt.datetime | None = None) -> bool:
    now = now or _utcnow()
    ends_at = get_trial_ends_at(profile, now=now)
    if ends_at is None:
        return False
    return now >= ends_at


def days_left(profile: BillingProfile | None, now: dt.datetime | None = None) -> int:
    """Whole days of trial remaining, rounded up; never negative."""
    now = now or _utcnow()
    ends_at = get_trial_ends_at(profile, now=now)
    if ends_at is None:
        return 0
    remaining = (ends_at - now).total_seconds() / 86400
    return max(0, math.ceil(remaining))


def has_access(
    profile: BillingProfile | None,
    billing_enabled: bool | None = None,
    now: dt.datetime | None = None,
) -> bool:
    if billing_enabled is None:
        billing_enabled = settings.BILLING_ENABLED
    if not billing_enabled:
        return True
    return is_subscription_active(profile) or is_trial_active(profile, now=now)
