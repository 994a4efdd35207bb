"""Scheduler entry point for the daily reminder job.

An external cron (Vercel, GitHub Actions, systemd timer...) POSTs here once a
day with the shared secret in ``x-cron-secret``.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from paynudge.api.dependencies import DbDep, MailerFactoryDep
from paynudge.api.rate_limit import RATE_LIMITS, limiter
from paynudge.core.config import settings
from paynudge.core.exceptions import ConfigurationError
from paynudge.core.security import secrets_match
from paynudge.services.reminders import run_daily_reminder_job

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_cron_secret() -> str:
    if not settings.CRON_SECRET:
        raise ConfigurationError("CRON_SECRET")
    return settings.CRON_SECRET


@router.post("/daily-reminders")
@limiter.limit(RATE_LIMITS["cron_trigger"])
async def daily_reminders(
    request: Request,
    db: DbDep,
    mailer_factory: MailerFactoryDep,
    x_cron_secret: str | None = Header(default=None),
):
    expected = _require_cron_secret()
    if not secrets_match(x_cron_secret, expected):
        logger.warning("Rejected daily reminder trigger from %s", request.client.host if request.client else "unknown")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    mailer = mailer_factory()
    try:
        summary = await run_daily_reminder_job(db, mailer)
    except Exception:  # noqa: BLE001
        logger.exception("Daily reminder job failed")
        return JSONResponse(status_code=500, content={"error": "Cron job failed"})

    return {"ok": True, "summary": summary.to_dict()}
