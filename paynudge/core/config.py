from __future__ import annotations

import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "PayNudge"
    ENV: str = "dev"
    DATABASE_URL: str | None = None

    # Shared secret sent by the external scheduler in the x-cron-secret header
    CRON_SECRET: str | None = None
    JWT_SECRET: str = "change_me"

    # Billing gate: when False every account may send reminders
    BILLING_ENABLED: bool = False
    TRIAL_DAYS: int = 14
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None

    # Email delivery
    EMAIL_PROVIDER: str = "brevo"  # brevo (HTTP API) or smtp
    BREVO_API_KEY: str | None = None
    BREVO_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    FROM_EMAIL: str = "billing@paynudge.app"
    FROM_NAME: str = "PayNudge"
    # Fallback sender name used when a profile has neither sender_name nor full_name
    BUSINESS_NAME: str | None = None

    # Reminder job
    DEFAULT_CURRENCY: str = "GBP"
    REMINDER_TIMEZONE: str = "UTC"
    REMINDER_DEDUP_WINDOW_HOURS: int = 24

    CORS_ALLOW_ORIGINS: list[str] = ["*"]
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    HSTS_SECONDS: int = 31_536_000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"
    SENTRY_DSN: str | None = None

    @field_validator("EMAIL_PROVIDER", mode="before")
    @classmethod
    def normalize_email_provider(cls, v):
        if v is None:
            return "brevo"
        return str(v).strip().lower()

    @model_validator(mode="after")
    def _validate_required_fields(self) -> BaseAppSettings:
        # Heroku style postgres:// URLs are rejected by SQLAlchemy 2.x
        if self.DATABASE_URL and self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)

        required_in_prod = (
            "DATABASE_URL",
            "CRON_SECRET",
            "JWT_SECRET",
        )
        if self.ENV.lower() == "prod":
            missing = [name for name in required_in_prod if not getattr(self, name)]
            if self.EMAIL_PROVIDER == "brevo" and not self.BREVO_API_KEY:
                missing.append("BREVO_API_KEY")
            if self.BILLING_ENABLED:
                missing.extend(
                    name for name in ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET") if not getattr(self, name)
                )
            if missing:
                raise ValueError(f"Missing required production settings: {', '.join(missing)}")
            if self.JWT_SECRET == "change_me":
                raise ValueError("Insecure default secrets in production: JWT_SECRET uses default placeholder")
        return self


class DevSettings(BaseAppSettings):
    ENV: str = "dev"
    DATABASE_URL: str = "sqlite:///./storage/dev.db"
    CRON_SECRET: str | None = "dev-cron-secret"


class TestSettings(BaseAppSettings):
    ENV: str = "test"
    DATABASE_URL: str = "sqlite:///:memory:"
    CRON_SECRET: str | None = "test-cron-secret"
    BREVO_API_KEY: str | None = "test-brevo-key"
    STRIPE_SECRET_KEY: str | None = "sk_test_placeholder"
    STRIPE_WEBHOOK_SECRET: str | None = "whsec_test_placeholder"


class ProdSettings(BaseAppSettings):
    ENV: str = "prod"
    BILLING_ENABLED: bool = True
    CORS_ALLOW_ORIGINS: list[str] = [
        "https://paynudge.app",
        "https://www.paynudge.app",
    ]
    LOG_FORMAT: str = "json"


_ENV_TO_SETTINGS: dict[str, type[BaseAppSettings]] = {
    "dev": DevSettings,
    "development": DevSettings,
    "test": TestSettings,
    "testing": TestSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


@lru_cache
def get_settings() -> BaseAppSettings:
    env_name = os.getenv("APP_ENV") or os.getenv("ENV") or "dev"
    env = env_name.lower()
    settings_cls = _ENV_TO_SETTINGS.get(env, DevSettings)
    return settings_cls()


settings = get_settings()
