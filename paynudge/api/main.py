from fastapi import FastAPI
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from paynudge.api.rate_limit import increment_rate_limit_exceeded, limiter
from paynudge.api.routes_account import router as account_router
from paynudge.api.routes_clients import router as clients_router
from paynudge.api.routes_cron import router as cron_router
from paynudge.api.routes_health import router as health_router
from paynudge.api.routes_invoice import router as invoice_router
from paynudge.api.routes_metrics import router as metrics_router
from paynudge.api.routes_reminders import router as reminders_router
from paynudge.api.routes_webhooks import router as webhook_router
from paynudge.core.config import settings
from paynudge.core.errors import register_error_handlers
from paynudge.core.logger import init_logging
from paynudge.core.monitoring import init_monitoring


async def _rate_limit_handler(request, exc: RateLimitExceeded):
    increment_rate_limit_exceeded()
    return JSONResponse(status_code=429, content={"detail": "Too many requests"})


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):  # type: ignore[override]
        response = await call_next(request)
        response.headers.setdefault(
            "Strict-Transport-Security",
            f"max-age={settings.HSTS_SECONDS}; includeSubDomains",
        )
        response.headers.setdefault("Referrer-Policy", "same-origin")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        return response


def create_app() -> FastAPI:
    init_logging()
    init_monitoring()

    is_production = settings.ENV.lower() == "prod"
    app = FastAPI(
        title=settings.APP_NAME,
        debug=False,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    register_error_handlers(app)

    app.include_router(cron_router, prefix="/cron", tags=["cron"])
    app.include_router(webhook_router, prefix="/webhooks", tags=["webhooks"])
    app.include_router(clients_router, prefix="/clients", tags=["clients"])
    app.include_router(invoice_router, prefix="/invoices", tags=["invoices"])
    app.include_router(reminders_router, prefix="/reminders", tags=["reminders"])
    app.include_router(account_router, prefix="/account", tags=["account"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(health_router)
    return app


app = create_app()
