from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from paynudge.api.dependencies import DbDep
from paynudge.api.rate_limit import RATE_LIMITS, limiter
from paynudge.services.billing.stripe_service import StripeGateway, StripeWebhookHandler, get_stripe_gateway

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/stripe")
@limiter.limit(RATE_LIMITS["webhook_stripe"])
async def stripe_webhook(
    request: Request,
    db: DbDep,
    gateway: Annotated[StripeGateway, Depends(get_stripe_gateway)],
):
    """Sync subscription state from Stripe events."""
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    event = gateway.construct_event(payload, signature)
    logger.info("Stripe webhook %s (%s)", event.get("type"), event.get("id"))
    return StripeWebhookHandler(db, gateway).handle(event, signature)
