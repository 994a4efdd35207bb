import datetime as dt

from paynudge.core.config import settings


def test_settings_roundtrip_and_blank_clears(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    initial = client.get("/account/", headers=headers).json()
    assert initial == {
        "email": "owner@example.com",
        "full_name": None,
        "sender_name": None,
        "reply_to_email": None,
        "email_signature": None,
    }

    res = client.put(
        "/account/",
        json={"sender_name": "  Studio North ", "reply_to_email": "accounts@studio.test", "email_signature": "Thanks!"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["sender_name"] == "Studio North"
    assert res.json()["reply_to_email"] == "accounts@studio.test"

    res = client.put("/account/", json={"sender_name": "Studio North", "reply_to_email": "   "}, headers=headers)
    assert res.json()["reply_to_email"] is None
    assert res.json()["email_signature"] is None


def test_invalid_reply_to_is_rejected(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    assert client.put("/account/", json={"reply_to_email": "not-an-email"}, headers=headers).status_code == 422


def test_billing_status_with_billing_disabled(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    body = client.get("/account/billing", headers=headers).json()
    assert body["billing_enabled"] is False
    assert body["has_access"] is True


def test_billing_status_expired_trial(client, make_user, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "BILLING_ENABLED", True)
    expired = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=1)
    headers = auth_headers(make_user(trial_ends_at=expired, subscription_status="canceled"))

    body = client.get("/account/billing", headers=headers).json()

    assert body["billing_enabled"] is True
    assert body["has_access"] is False
    assert body["trial_active"] is False
    assert body["trial_days_left"] == 0
    assert body["subscription_status"] == "canceled"


def test_billing_status_active_subscription(client, make_user, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "BILLING_ENABLED", True)
    headers = auth_headers(make_user(subscription_status="active"))
    body = client.get("/account/billing", headers=headers).json()
    assert body["has_access"] is True
