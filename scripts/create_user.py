#!/usr/bin/env python3
"""
Create an account with a trial profile and print a bearer token for the API.

Usage:
    python scripts/create_user.py --email owner@example.com
    python scripts/create_user.py --email owner@example.com --name "Sam Owner" --trial-days 30
"""
import argparse
import datetime as dt
import sys

from paynudge.core.config import settings
from paynudge.core.security import create_access_token
from paynudge.db.session import SessionLocal
from paynudge.models.models import Profile, User


def create_user(email: str, name: str | None = None, trial_days: int | None = None) -> str | None:
    """Create (or reuse) the user and return an access token."""
    db = SessionLocal()
    try:
        email = email.strip().lower()
        user = db.query(User).filter(User.email == email).first()
        if user:
            print(f"ℹ️  User already exists: {user.email} (ID: {user.id})")
        else:
            days = trial_days if trial_days is not None else settings.TRIAL_DAYS
            user = User(email=email)
            user.profile = Profile(
                full_name=name,
                trial_ends_at=dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=days),
            )
            db.add(user)
            db.commit()
            print(f"✅ Created user {user.email} (ID: {user.id}) with a {days}-day trial")

        return create_access_token(str(user.id), expires_minutes=60 * 24 * 30)
    except Exception as e:  # noqa: BLE001
        db.rollback()
        print(f"❌ Error: {e}")
        return None
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a PayNudge account")
    parser.add_argument("--email", required=True, help="Login email (also the default reply-to)")
    parser.add_argument("--name", help="Full name shown as the sender")
    parser.add_argument("--trial-days", type=int, help="Trial length (defaults to TRIAL_DAYS)")
    args = parser.parse_args()

    token = create_user(args.email, args.name, args.trial_days)
    if not token:
        sys.exit(1)
    print(f"Bearer token (30 days):\n{token}")
