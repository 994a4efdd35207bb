"""Outbound email providers.

Every provider accepts an ``OutgoingEmail`` and returns the provider's message
identifier, raising ``EmailDeliveryError`` with a readable reason on failure.

- ``BrevoEmailProvider``: Brevo transactional email HTTP API (default).
- ``SMTPEmailProvider``: any STARTTLS SMTP relay; the identifier is the
  Message-ID header we generate.
"""
from __future__ import annotations

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

import httpx

from paynudge.core.config import settings
from paynudge.core.exceptions import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingEmail:
    from_address: str
    to: str
    subject: str
    text: str
    html: str
    from_name: str | None = None
    reply_to: str | None = None


class EmailProvider(ABC):
    name: str = "base"

    @abstractmethod
    async def send(self, message: OutgoingEmail) -> str | None:
        """Hand ``message`` to the provider and return its message id."""


class BrevoEmailProvider(EmailProvider):
    name = "brevo"

    def __init__(
        self,
        api_key: str,
        api_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url or settings.BREVO_API_URL
        self.timeout = timeout
        self.transport = transport

    def _payload(self, message: OutgoingEmail) -> dict:
        sender: dict[str, str] = {"email": message.from_address}
        if message.from_name:
            sender["name"] = message.from_name
        payload: dict = {
            "sender": sender,
            "to": [{"email": message.to}],
            "subject": message.subject,
            "textContent": message.text,
            "htmlContent": message.html,
        }
        if message.reply_to:
            payload["replyTo"] = {"email": message.reply_to}
        return payload

    async def send(self, message: OutgoingEmail) -> str | None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "api-key": self.api_key,
                        "accept": "application/json",
                        "content-type": "application/json",
                    },
                    json=self._payload(message),
                )
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(str(exc) or exc.__class__.__name__, provider=self.name) from exc

        if response.status_code not in (200, 201, 202):
            try:
                reason = response.json().get("message") or response.text
            except ValueError:
                reason = response.text
            raise EmailDeliveryError(f"{response.status_code} {reason}".strip(), provider=self.name)

        try:
            body = response.json()
        except ValueError:
            body = None
        # Accepted either way; the id is only informational
        message_id = body.get("messageId") if isinstance(body, dict) else None
        logger.info("Brevo accepted email to %s id=%s", message.to, message_id)
        return message_id


class SMTPEmailProvider(EmailProvider):
    name = "smtp"

    def __init__(self, host: str, port: int, user: str | None, password: str | None) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def _build(self, message: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((message.from_name, message.from_address)) if message.from_name else message.from_address
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg["Message-ID"] = make_msgid(domain=message.from_address.rpartition("@")[2] or None)
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

    async def send(self, message: OutgoingEmail) -> str | None:
        msg = self._build(message)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(str(exc) or exc.__class__.__name__, provider=self.name) from exc
        logger.info("SMTP relay %s accepted email to %s", self.host, message.to)
        return msg["Message-ID"]


def build_email_provider() -> EmailProvider:
    """Construct the configured provider; raises ``ConfigurationError`` when credentials are missing."""
    provider = getattr(settings, "EMAIL_PROVIDER", "brevo").lower()

    if provider == "brevo":
        if not settings.BREVO_API_KEY:
            raise ConfigurationError("BREVO_API_KEY")
        return BrevoEmailProvider(settings.BREVO_API_KEY)

    if provider == "smtp":
        if not settings.SMTP_HOST:
            raise ConfigurationError("SMTP_HOST")
        return SMTPEmailProvider(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
        )

    raise ConfigurationError("EMAIL_PROVIDER")
