import datetime as dt
import hashlib
import hmac
import json
import time

import pytest

from paynudge.core.exceptions import InvalidWebhookSignatureError
from paynudge.models import models
from paynudge.services.billing.stripe_service import StripeGateway, SubscriptionState, get_stripe_gateway

PERIOD_END = 1_800_000_000


class FakeStripeGateway(StripeGateway):
    def __init__(self):
        super().__init__("sk_test_fake", "whsec_fake")
        self.retrieved: list[str] = []

    def construct_event(self, payload: bytes, signature: str | None) -> dict:
        if signature != "valid":
            raise InvalidWebhookSignatureError()
        return json.loads(payload)

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionState:
        self.retrieved.append(subscription_id)
        return SubscriptionState(
            id=subscription_id,
            customer_id="cus_123",
            status="active",
            current_period_end=dt.datetime.fromtimestamp(PERIOD_END, tz=dt.timezone.utc),
        )


@pytest.fixture
def gateway(client):
    from paynudge.api.main import app

    fake = FakeStripeGateway()
    app.dependency_overrides[get_stripe_gateway] = lambda: fake
    return fake


def _post(client, event: dict, signature: str = "valid"):
    return client.post("/webhooks/stripe", content=json.dumps(event).encode(), headers={"stripe-signature": signature})


def _profile(db_session, user_id: int) -> models.Profile:
    db_session.expire_all()
    return db_session.query(models.Profile).filter(models.Profile.user_id == user_id).one()


def test_bad_signature_is_rejected(client, gateway):
    res = _post(client, {"id": "evt_1", "type": "checkout.session.completed"}, signature="forged")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "PAY300"


def test_checkout_completed_links_subscription(client, gateway, db_session, make_user):
    user = make_user()
    event = {
        "id": "evt_checkout",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_1",
                "client_reference_id": str(user.id),
                "customer": "cus_123",
                "subscription": "sub_123",
            }
        },
    }

    res = _post(client, event)

    assert res.status_code == 200, res.text
    assert res.json() == {"received": True}
    assert gateway.retrieved == ["sub_123"]
    profile = _profile(db_session, user.id)
    assert profile.stripe_customer_id == "cus_123"
    assert profile.stripe_subscription_id == "sub_123"
    assert profile.subscription_status == "active"
    assert profile.current_period_end.replace(tzinfo=dt.timezone.utc).timestamp() == PERIOD_END


def test_subscription_deleted_updates_status(client, gateway, db_session, make_user):
    user = make_user(stripe_customer_id="cus_123", subscription_status="active")
    event = {
        "id": "evt_deleted",
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_123", "customer": "cus_123", "status": "canceled", "current_period_end": PERIOD_END}},
    }

    assert _post(client, event).status_code == 200

    profile = _profile(db_session, user.id)
    assert profile.subscription_status == "canceled"
    assert profile.stripe_subscription_id == "sub_123"


def test_period_end_read_from_subscription_items(client, gateway, db_session, make_user):
    user = make_user(stripe_customer_id="cus_9")
    event = {
        "id": "evt_items",
        "type": "customer.subscription.updated",
        "data": {
            "object": {
                "id": "sub_9",
                "customer": "cus_9",
                "status": "past_due",
                "items": {"data": [{"current_period_end": PERIOD_END}]},
            }
        },
    }

    assert _post(client, event).status_code == 200

    profile = _profile(db_session, user.id)
    assert profile.subscription_status == "past_due"
    assert profile.current_period_end is not None


def test_duplicate_event_is_acknowledged_once(client, gateway, db_session, make_user):
    user = make_user(stripe_customer_id="cus_1")
    event = {
        "id": "evt_dup",
        "type": "customer.subscription.updated",
        "data": {"object": {"id": "sub_1", "customer": "cus_1", "status": "active"}},
    }
    assert _post(client, event).json() == {"received": True}

    event["data"]["object"]["status"] = "unpaid"
    assert _post(client, event).json() == {"received": True, "duplicate": True}

    assert _profile(db_session, user.id).subscription_status == "active"
    assert db_session.query(models.WebhookEvent).count() == 1


def test_unknown_customer_is_ignored(client, gateway):
    event = {
        "id": "evt_unknown",
        "type": "customer.subscription.created",
        "data": {"object": {"id": "sub_x", "customer": "cus_nobody", "status": "active"}},
    }
    assert _post(client, event).status_code == 200


def test_real_gateway_verifies_signature():
    secret = "whsec_unit_test"
    gateway = StripeGateway("sk_test_unit", secret)
    payload = json.dumps({"id": "evt_sig", "type": "ping"}).encode()
    timestamp = int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload.decode()}".encode(), hashlib.sha256).hexdigest()

    event = gateway.construct_event(payload, f"t={timestamp},v1={digest}")
    assert event["id"] == "evt_sig"

    with pytest.raises(InvalidWebhookSignatureError):
        gateway.construct_event(payload, f"t={timestamp},v1={'0' * 64}")
    with pytest.raises(InvalidWebhookSignatureError):
        gateway.construct_event(payload, None)
