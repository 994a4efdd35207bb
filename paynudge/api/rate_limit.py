import logging

from prometheus_client import Counter
from slowapi import Limiter
from slowapi.util import get_remote_address

from paynudge.core.config import settings

logger = logging.getLogger(__name__)

_PROM_RATE_LIMIT = Counter("paynudge_rate_limit_exceeded_events", "Rate limit exceeded events (handler invocations)")

# Single-process deployments only need in-memory counters
limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")

RATE_LIMITS = {
    # The scheduler calls once a day; a handful of retries is plenty
    "cron_trigger": "10/minute" if settings.ENV.lower() == "prod" else "60/minute",
    "webhook_stripe": "120/minute",
    "preview": "30/minute",
}


def increment_rate_limit_exceeded():
    _PROM_RATE_LIMIT.inc()
