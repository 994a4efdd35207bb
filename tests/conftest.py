from __future__ import annotations

import datetime as dt
import os

os.environ.setdefault("APP_ENV", "test")

import email_validator  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from paynudge.core.config import settings  # noqa: E402
from paynudge.db import session as db_session  # noqa: E402
from paynudge.db.base_class import Base  # noqa: E402
from paynudge.db.session import SessionLocal  # noqa: E402
from paynudge.models import models  # noqa: E402
from paynudge.services.notification.providers import EmailProvider, OutgoingEmail  # noqa: E402

# Tests use RFC 2606 ".test" addresses, which email-validator rejects unless
# its documented test-environment switch is on.
email_validator.TEST_ENVIRONMENT = True

TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Ensure application code uses the test engine
db_session.engine = test_engine  # type: ignore[assignment]
SessionLocal.configure(bind=test_engine)


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh database schema."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield


@pytest.fixture(autouse=True)
def _disable_rate_limits():
    from paynudge.api.rate_limit import limiter

    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture(autouse=True)
def _billing_disabled(monkeypatch):
    """Tests opt in to billing enforcement explicitly."""
    monkeypatch.setattr(settings, "BILLING_ENABLED", False)
    monkeypatch.setattr(settings, "BUSINESS_NAME", None)


@pytest.fixture
def db_session():
    """Provide a database session bound to the test engine."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeEmailProvider(EmailProvider):
    """Records outgoing mail; ``fail_for`` addresses raise like a rejecting provider."""

    name = "fake"

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[OutgoingEmail] = []
        self.fail_for = fail_for or set()

    async def send(self, message: OutgoingEmail) -> str | None:
        from paynudge.core.exceptions import EmailDeliveryError

        if message.to in self.fail_for:
            raise EmailDeliveryError("mailbox unavailable", provider=self.name)
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture
def email_provider() -> FakeEmailProvider:
    return FakeEmailProvider()


@pytest.fixture
def client(email_provider):
    """FastAPI TestClient with the mail provider swapped for a recorder."""
    from paynudge.api.dependencies import get_mailer_factory
    from paynudge.api.main import app
    from paynudge.services.reminders import ReminderMailer

    app.dependency_overrides[get_mailer_factory] = lambda: lambda: ReminderMailer(email_provider)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(email: str = "owner@example.com", **profile_fields) -> models.User:
        user = models.User(email=email)
        if profile_fields:
            user.profile = models.Profile(**profile_fields)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers():
    from paynudge.core.security import create_access_token

    def _headers(user: models.User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers


@pytest.fixture
def make_invoice(db_session):
    def _make(
        user: models.User,
        *,
        due_date: dt.date,
        client_email: str | None = "client@example.com",
        client_name: str = "Acme Ltd",
        invoice_number: str = "INV-001",
        amount_minor_units: int = 123_456,
        status: str = "sent",
        paid_at: dt.datetime | None = None,
    ) -> models.Invoice:
        client = models.Client(user_id=user.id, name=client_name, email=client_email)
        db_session.add(client)
        db_session.flush()
        invoice = models.Invoice(
            user_id=user.id,
            client_id=client.id,
            invoice_number=invoice_number,
            currency="GBP",
            amount_minor_units=amount_minor_units,
            issue_date=due_date - dt.timedelta(days=30),
            due_date=due_date,
            status=status,
            paid_at=paid_at,
        )
        db_session.add(invoice)
        db_session.commit()
        return invoice

    return _make


@pytest.fixture
def make_rule(db_session):
    def _make(user: models.User, days_offset: int, tone: str = "friendly", enabled: bool = True) -> models.ReminderRule:
        rule = models.ReminderRule(
            user_id=user.id,
            days_offset=days_offset,
            tone=models.ReminderTone(tone),
            enabled=enabled,
        )
        db_session.add(rule)
        db_session.commit()
        return rule

    return _make
