"""Stripe subscription sync.

``StripeGateway`` wraps the two Stripe calls the app makes (webhook signature
verification and subscription lookup). It is built once per process by
``get_stripe_gateway`` and injected into the webhook route, so tests can swap
in a fake.

``StripeWebhookHandler`` mirrors subscription state onto the user's profile:

- checkout.session.completed: links customer/subscription ids to the user named
  by ``client_reference_id`` (or ``metadata.user_id``) and fetches the
  subscription for its status and period end.
- customer.subscription.created|updated|deleted: updates the profile owning the
  Stripe customer.

Event ids are recorded in ``webhook_events``; a redelivered event is
acknowledged without touching the profile again.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paynudge import metrics
from paynudge.core.config import settings
from paynudge.core.exceptions import (
    BillingProfileUpdateError,
    ConfigurationError,
    InvalidWebhookSignatureError,
)
from paynudge.models import models

logger = logging.getLogger(__name__)

WEBHOOK_PROVIDER = "stripe"
SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _as_id(value: Any) -> str | None:
    # Expanded objects carry the id inside; plain references are strings
    if isinstance(value, str):
        return value or None
    return _get(value, "id")


def _from_timestamp(value: Any) -> dt.datetime | None:
    if not value:
        return None
    return dt.datetime.fromtimestamp(int(value), tz=dt.timezone.utc)


@dataclass(frozen=True)
class SubscriptionState:
    id: str | None
    customer_id: str | None
    status: str | None
    current_period_end: dt.datetime | None

    @classmethod
    def from_stripe(cls, obj: Any) -> SubscriptionState:
        period_end = _get(obj, "current_period_end")
        if period_end is None:
            # Newer API versions report the period on subscription items
            items = _get(_get(obj, "items"), "data") or []
            if items:
                period_end = _get(items[0], "current_period_end")
        return cls(
            id=_get(obj, "id"),
            customer_id=_as_id(_get(obj, "customer")),
            status=_get(obj, "status"),
            current_period_end=_from_timestamp(period_end),
        )


class StripeGateway:
    def __init__(self, api_key: str, webhook_secret: str | None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def construct_event(self, payload: bytes, signature: str | None) -> dict:
        """Verify the ``stripe-signature`` header and return the event as a plain dict."""
        if not self.webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET")
        if not signature:
            raise InvalidWebhookSignatureError("Missing webhook signature")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Stripe webhook verification failed: %s", exc)
            raise InvalidWebhookSignatureError() from exc
        return json.loads(payload)

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionState:
        subscription = stripe.Subscription.retrieve(subscription_id, api_key=self.api_key)
        return SubscriptionState.from_stripe(subscription)


@lru_cache
def get_stripe_gateway() -> StripeGateway:
    if not settings.STRIPE_SECRET_KEY:
        raise ConfigurationError("STRIPE_SECRET_KEY")
    stripe.api_key = settings.STRIPE_SECRET_KEY
    return StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)


class StripeWebhookHandler:
    def __init__(self, db: Session, gateway: StripeGateway):
        self.db = db
        self.gateway = gateway

    def handle(self, event: dict, signature: str | None = None) -> dict:
        event_id = event.get("id")
        event_type = event.get("type") or ""
        data_object = (event.get("data") or {}).get("object") or {}

        if event_id and self._already_processed(event_id):
            logger.info("Stripe webhook duplicate for %s", event_id)
            return {"received": True, "duplicate": True}

        try:
            if event_id:
                self.db.add(models.WebhookEvent(provider=WEBHOOK_PROVIDER, external_id=event_id, signature=signature))
            if event_type == "checkout.session.completed":
                self._checkout_completed(data_object)
            elif event_type in SUBSCRIPTION_EVENTS:
                self._subscription_changed(data_object)
            else:
                logger.debug("Ignoring Stripe event %s", event_type)
            self.db.commit()
        except (SQLAlchemyError, stripe.StripeError) as exc:
            self.db.rollback()
            logger.error("Stripe webhook %s profile update failed: %s", event_type, exc)
            raise BillingProfileUpdateError(str(exc)) from exc

        metrics.stripe_event_processed(event_type or "unknown")
        return {"received": True}

    def _already_processed(self, event_id: str) -> bool:
        existing = (
            self.db.query(models.WebhookEvent.id)
            .filter(models.WebhookEvent.provider == WEBHOOK_PROVIDER, models.WebhookEvent.external_id == event_id)
            .first()
        )
        return existing is not None

    def _checkout_completed(self, session: dict) -> None:
        raw_user_id = session.get("client_reference_id") or (session.get("metadata") or {}).get("user_id")
        if not raw_user_id:
            logger.warning("Checkout session %s has no user reference", session.get("id"))
            return
        try:
            user_id = int(raw_user_id)
        except (TypeError, ValueError):
            logger.warning("Checkout session %s has invalid user reference %r", session.get("id"), raw_user_id)
            return

        profile = self._profile_for_user(user_id)
        if profile is None:
            logger.error("Checkout session %s references unknown user %s", session.get("id"), user_id)
            return

        subscription_id = _as_id(session.get("subscription"))
        state = self.gateway.retrieve_subscription(subscription_id) if subscription_id else None

        profile.stripe_customer_id = _as_id(session.get("customer"))
        profile.stripe_subscription_id = subscription_id
        profile.subscription_status = state.status if state else None
        profile.current_period_end = state.current_period_end if state else None
        logger.info("Checkout completed for user %s: subscription %s status=%s", user_id, subscription_id, profile.subscription_status)

    def _subscription_changed(self, subscription: dict) -> None:
        state = SubscriptionState.from_stripe(subscription)
        if not state.customer_id:
            logger.warning("Subscription event %s has no customer", state.id)
            return
        profile = (
            self.db.query(models.Profile)
            .filter(models.Profile.stripe_customer_id == state.customer_id)
            .one_or_none()
        )
        if profile is None:
            logger.info("No profile linked to Stripe customer %s", state.customer_id)
            return
        profile.stripe_subscription_id = state.id
        profile.subscription_status = state.status
        profile.current_period_end = state.current_period_end
        logger.info("Subscription %s for customer %s is now %s", state.id, state.customer_id, state.status)

    def _profile_for_user(self, user_id: int) -> models.Profile | None:
        profile = self.db.query(models.Profile).filter(models.Profile.user_id == user_id).one_or_none()
        if profile is not None:
            return profile
        if self.db.get(models.User, user_id) is None:
            return None
        profile = models.Profile(user_id=user_id)
        self.db.add(profile)
        return profile
