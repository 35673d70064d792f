import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from contact_api.core.config import get_settings
from contact_api.core.logging import RequestIdMiddleware, setup_logging
from contact_api.db.create_tables import create_all
from contact_api.routers import auth as auth_router
from contact_api.routers import contacts as contacts_router
from contact_api.routers import lists as lists_router
from contact_api.routers import profile as profile_router
from contact_api.routers import share as share_router

logger = structlog.get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, no sniffing, HSTS in prod)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    setup_logging()
    settings = get_settings()
    app = FastAPI(title="Contact Manager API")

    allowed_cors = {settings.public_base_url}
    if settings.app_env != "prod":
        allowed_cors.update(
            {
                "http://localhost:8000",
                "http://127.0.0.1:8000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            }
        )
    allowed_cors = {origin for origin in allowed_cors if origin}
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(allowed_cors),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_middleware(RequestIdMiddleware)

    app.include_router(auth_router.router)
    app.include_router(profile_router.router)
    app.include_router(share_router.router)
    app.include_router(contacts_router.router)
    app.include_router(lists_router.router)

    @app.on_event("startup")
    def _startup():
        if settings.auto_create_db:
            create_all()
        logger.info("app.started", env=settings.app_env)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
