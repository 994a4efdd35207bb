#!/usr/bin/env python3
"""
Run the daily reminder job once, outside the HTTP trigger.

Usage:
    python scripts/run_reminders.py
    python scripts/run_reminders.py --date 2026-03-05   # evaluate as if today were this date
"""
import argparse
import asyncio
import datetime as dt
import json
import sys

from paynudge.core.logger import init_logging
from paynudge.db.session import session_scope
from paynudge.services.notification.providers import build_email_provider
from paynudge.services.reminders import ReminderMailer, run_daily_reminder_job


async def run(today: dt.date | None = None) -> dict:
    mailer = ReminderMailer(build_email_provider())
    with session_scope() as db:
        summary = await run_daily_reminder_job(db, mailer, today=today)
    return summary.to_dict()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Send today's invoice reminders")
    parser.add_argument("--date", type=dt.date.fromisoformat, help="Override today's date (YYYY-MM-DD)")
    args = parser.parse_args()

    init_logging()
    try:
        result = asyncio.run(run(args.date))
    except Exception as e:  # noqa: BLE001
        print(f"❌ Reminder job failed: {e}")
        sys.exit(1)
    print(json.dumps({"ok": True, "summary": result}, indent=2))
