"""
main.py — FastAPI application

Wires middleware (session, request ID + security headers, rate limiting),
structured error handlers, every domain router, and the lifespan that runs
idempotent startup migrations and the background scheduler.

Business Rules:
- Every response carries an 8-char X-Request-ID, including error responses
- All errors are JSON: {error, status_code, request_id[, detail]}
- Scheduler never starts under TESTING

Called by: uvicorn (swagsuite.main:app)
Depends on: config, logging_config, rate_limit, startup, scheduler, routers
"""

import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .config import settings
from .logging_config import setup_logging
from .rate_limit import limiter
from .routers import (
    admin,
    artwork,
    catalog,
    crm,
    dashboard,
    mockups,
    notifications,
    order_errors,
    orders,
    sequences,
)
from .schemas.errors import ErrorResponse
from .scheduler import configure_scheduler, scheduler
from .startup import run_startup_migrations

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    run_startup_migrations()
    started = False
    if settings.scheduler_enabled and not os.environ.get("TESTING"):
        configure_scheduler()
        scheduler.start()
        started = True
        logger.info("Scheduler started with {} jobs", len(scheduler.get_jobs()))
    yield
    if started:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


app = FastAPI(title="SwagSuite", version=__version__, lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)


# ── Middleware ───────────────────────────────────────────────────────────

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "{} {} -> {} ({:.1f}ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
    response.headers["X-Request-ID"] = request_id
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


# ── Error handlers ───────────────────────────────────────────────────────


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _error_response(request: Request, status_code: int, error: str, detail=None) -> JSONResponse:
    body = ErrorResponse(error=error, status_code=status_code, request_id=_request_id(request), detail=detail)
    response = JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
    if body.request_id:
        response.headers["X-Request-ID"] = body.request_id
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return _error_response(request, 422, "Validation error", detail=errors)


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on {} {}: {}", request.method, request.url.path, exc.orig)
    return _error_response(request, 409, "Conflict with existing data")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on {} {}", request.method, request.url.path)
    return _error_response(request, 500, "Internal server error")


# ── Routers ──────────────────────────────────────────────────────────────

for _module in (crm, catalog, orders, order_errors, artwork, sequences, mockups, notifications, dashboard, admin):
    app.include_router(_module.router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
