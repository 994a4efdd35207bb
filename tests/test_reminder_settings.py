import datetime as dt

import pytest

from paynudge.models import models


@pytest.fixture
def owner(make_user):
    return make_user()


@pytest.fixture
def headers(owner, auth_headers):
    return auth_headers(owner)


def test_rule_crud(client, headers):
    res = client.post("/reminders/rules", json={"days_offset": -3, "tone": "friendly"}, headers=headers)
    assert res.status_code == 201
    rule = res.json()
    assert rule["enabled"] is True

    client.post("/reminders/rules", json={"days_offset": 7, "tone": "firm"}, headers=headers)
    offsets = [r["days_offset"] for r in client.get("/reminders/rules", headers=headers).json()]
    assert offsets == [-3, 7]

    res = client.patch(f"/reminders/rules/{rule['id']}", json={"enabled": False, "tone": "neutral"}, headers=headers)
    assert res.json()["enabled"] is False
    assert res.json()["tone"] == "neutral"
    assert res.json()["days_offset"] == -3


@pytest.mark.parametrize("payload", [{"days_offset": 61, "tone": "firm"}, {"days_offset": -61, "tone": "firm"}, {"days_offset": 1, "tone": "rude"}])
def test_rule_validation(client, headers, payload):
    assert client.post("/reminders/rules", json=payload, headers=headers).status_code == 422


def test_rules_are_owner_scoped(client, owner, make_rule, make_user, auth_headers):
    rule = make_rule(owner, days_offset=1)
    stranger = auth_headers(make_user(email="stranger@example.com"))
    assert client.get("/reminders/rules", headers=stranger).json() == []
    res = client.patch(f"/reminders/rules/{rule.id}", json={"enabled": False}, headers=stranger)
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "REM200"


def test_deleting_rule_keeps_sent_history(client, headers, owner, db_session, make_invoice, make_rule):
    rule = make_rule(owner, days_offset=0)
    invoice = make_invoice(owner, due_date=dt.date(2026, 3, 1))
    db_session.add(
        models.Reminder(
            user_id=owner.id,
            invoice_id=invoice.id,
            rule_id=rule.id,
            sent_at=dt.datetime(2026, 3, 1, 9, tzinfo=dt.timezone.utc),
            send_day=dt.date(2026, 3, 1),
            subject="Friendly reminder",
            body="Hi",
            sent_to="client@example.com",
            provider_message_id="msg-1",
        )
    )
    db_session.commit()

    assert client.delete(f"/reminders/rules/{rule.id}", headers=headers).status_code == 204

    history = client.get("/reminders/history", headers=headers).json()
    assert len(history) == 1
    assert history[0]["rule_id"] is None
    assert history[0]["invoice_number"] == "INV-001"
    assert history[0]["provider_message_id"] == "msg-1"


def test_templates_default_override_and_reset(client, headers):
    templates = client.get("/reminders/templates", headers=headers).json()
    assert [t["tone"] for t in templates] == ["friendly", "neutral", "firm"]
    assert all(t["is_default"] for t in templates)

    res = client.put(
        "/reminders/templates/firm",
        json={"subject": "Pay {{invoice_number}} now", "body": "Hello {{client_name}}"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["is_default"] is False

    firm = next(t for t in client.get("/reminders/templates", headers=headers).json() if t["tone"] == "firm")
    assert firm["subject"] == "Pay {{invoice_number}} now"

    res = client.delete("/reminders/templates/firm", headers=headers)
    assert res.json()["is_default"] is True
    assert res.json()["subject"].startswith("Action required")


def test_template_validation(client, headers):
    assert client.put("/reminders/templates/firm", json={"subject": " ", "body": "x"}, headers=headers).status_code == 422
    assert client.put("/reminders/templates/loud", json={"subject": "s", "body": "b"}, headers=headers).status_code == 422


def test_preview_uses_sample_invoice(client, headers):
    res = client.post("/reminders/templates/preview", json={"tone": "friendly", "days_offset": -3}, headers=headers)

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["subject"] == "Friendly reminder: invoice INV-0042 due in 3 days"
    assert "Alex Client" in body["text"]
    # Empty profile falls back to the login email for replies
    assert body["reply_to_email"] == "owner@example.com"


def test_preview_renders_draft_override(client, headers):
    res = client.post(
        "/reminders/templates/preview",
        json={"tone": "neutral", "days_offset": 2, "subject": "{{invoice_number}} {{timing}}", "body": "Hi {{client_name}}"},
        headers=headers,
    )
    assert res.json()["subject"] == "INV-0042 overdue by 2 days"
    assert res.json()["text"].startswith("Hi Alex Client")


def test_history_hides_unsent_rows(client, headers, owner, db_session, make_invoice):
    invoice = make_invoice(owner, due_date=dt.date(2026, 3, 1))
    db_session.add(
        models.Reminder(
            user_id=owner.id, invoice_id=invoice.id, sent_at=None, subject="s", body="b", sent_to="client@example.com"
        )
    )
    db_session.commit()
    assert client.get("/reminders/history", headers=headers).json() == []
