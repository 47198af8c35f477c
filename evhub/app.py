"""FastAPI application factory for the EV hub backend."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from evhub.core.config import get_settings
from evhub.core.logging_utils import configure_logging
from evhub.db.create_tables import create_all
from evhub.routers import auth as auth_router
from evhub.routers import ev_owners as ev_owners_router
from evhub.routers import stations as stations_router

logger = logging.getLogger(__name__)

_ERROR_CODES = {
    401: "Unauthenticated",
    403: "NotAuthorized",
    404: "NotFound",
    405: "MethodNotAllowed",
    429: "TooManyRequests",
    500: "Internal",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, no sniffing, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


@asynccontextmanager
async def _lifespan(app: FastAPI):
    create_all()
    logger.info("Database schema ready")
    yield


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _ERROR_CODES.get(exc.status_code, "BadRequest")
    return JSONResponse(
        {"ok": False, "error": code, "message": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        {
            "ok": False,
            "error": "ValidationFailed",
            "message": "Request validation failed.",
            "errors": jsonable_encoder(errors),
        },
        status_code=400,
    )


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (`uvicorn evhub.app:create_app --factory`)."""
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(title="EV Hub API", lifespan=_lifespan)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(auth_router.router)
    app.include_router(stations_router.router)
    app.include_router(ev_owners_router.router)
    return app
