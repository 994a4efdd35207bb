"""Common request dependencies: database session, caller identity, mailer."""
from typing import Annotated, Callable, TypeAlias

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from paynudge.core.security import TokenExpiredError, TokenValidationError, decode_token
from paynudge.db.session import get_db
from paynudge.services.notification.providers import build_email_provider
from paynudge.services.reminders.email import ReminderMailer


def get_current_user_id(authorization: str = Header(None)) -> int:
    """Resolve the owner id from a ``Bearer`` access token."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_token(token)
        return int(payload["sub"])
    except TokenExpiredError as exc:
        raise HTTPException(status_code=401, detail="Token expired") from exc
    except (TokenValidationError, KeyError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc


def build_reminder_mailer() -> ReminderMailer:
    # Raises ConfigurationError when the provider credentials are missing
    return ReminderMailer(build_email_provider())


def get_mailer_factory() -> Callable[[], ReminderMailer]:
    """Hand out the builder so callers construct the mailer only once authorized."""
    return build_reminder_mailer


CurrentUserDep: TypeAlias = Annotated[int, Depends(get_current_user_id)]
DbDep: TypeAlias = Annotated[Session, Depends(get_db)]
MailerFactoryDep: TypeAlias = Annotated[Callable[[], ReminderMailer], Depends(get_mailer_factory)]
