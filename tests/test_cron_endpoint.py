import datetime as dt

from sqlalchemy import select

from paynudge.core.config import settings
from paynudge.models import models
from paynudge.services.reminders.job import local_today

CRON_HEADERS = {"x-cron-secret": "test-cron-secret"}


def test_missing_or_wrong_secret_is_unauthorized(client):
    assert client.post("/cron/daily-reminders").status_code == 401
    res = client.post("/cron/daily-reminders", headers={"x-cron-secret": "nope"})
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}


def test_unset_secret_is_a_configuration_error(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", None)
    res = client.post("/cron/daily-reminders", headers=CRON_HEADERS)
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "SYS401"


def test_run_with_nothing_to_do(client):
    res = client.post("/cron/daily-reminders", headers=CRON_HEADERS)
    assert res.status_code == 200
    assert res.json() == {
        "ok": True,
        "summary": {
            "rulesProcessed": 0,
            "invoicesMatched": 0,
            "remindersSent": 0,
            "skippedDuplicates": 0,
            "skippedMissingEmail": 0,
        },
    }


def test_run_sends_due_reminders(client, email_provider, db_session, make_user, make_invoice, make_rule):
    user = make_user()
    make_rule(user, days_offset=0)
    today = local_today(dt.datetime.now(dt.timezone.utc))
    make_invoice(user, due_date=today, invoice_number="CRON-1")

    res = client.post("/cron/daily-reminders", headers=CRON_HEADERS)

    assert res.status_code == 200, res.text
    assert res.json()["summary"]["remindersSent"] == 1
    assert email_provider.sent[0].subject == "Friendly reminder: invoice CRON-1 due today"
    assert len(db_session.scalars(select(models.Reminder)).all()) == 1


def test_job_failure_returns_generic_error(client, monkeypatch):
    from paynudge.services.reminders.repository import ReminderRepository

    def broken(self):
        raise RuntimeError("database went away")

    monkeypatch.setattr(ReminderRepository, "enabled_rules", broken)
    res = client.post("/cron/daily-reminders", headers=CRON_HEADERS)
    assert res.status_code == 500
    assert res.json() == {"error": "Cron job failed"}


def test_metrics_exposes_reminder_counters(client):
    client.post("/cron/daily-reminders", headers=CRON_HEADERS)
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "reminder_job_runs_total" in res.text


def test_secret_is_checked_before_mail_configuration(client, monkeypatch):
    from paynudge.api.dependencies import get_mailer_factory
    from paynudge.api.main import app

    app.dependency_overrides.pop(get_mailer_factory)
    monkeypatch.setattr(settings, "EMAIL_PROVIDER", "brevo")
    monkeypatch.setattr(settings, "BREVO_API_KEY", None)

    res = client.post("/cron/daily-reminders", headers={"x-cron-secret": "nope"})
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}

    res = client.post("/cron/daily-reminders", headers=CRON_HEADERS)
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "SYS401"
