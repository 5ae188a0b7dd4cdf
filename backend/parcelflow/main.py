"""
ParcelFlow Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers;
       the module-level `app` is what uvicorn serves
       (uvicorn parcelflow.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  RateLimit → RequestID → Logging → GZip/CORS│
    │                                                          │
    │  Routes:  /users  /parcels  /riders  /rider  /payments   │
    │           /cashouts  /tracking  /create-payment-intent   │
    │           /  /health                                     │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ParcelFlowError → its status_code │ validation → 400  │
    │    HTTPException   → envelope        │ Exception → 500   │
    └──────────────────────────────────────────────────────────┘

Error envelope:
    {"success": false, "error": "<code>", "message": "...",
     "details": {...}, "request_id": "a1b2c3d4"}
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from parcelflow import __version__
from parcelflow.config import settings
from parcelflow.database import dispose_engine
from parcelflow.exceptions import (
    DatabaseError,
    IdentityServiceError,
    ParcelFlowError,
    PaymentGatewayError,
    RateLimitExceededError,
)
from parcelflow.middleware.logging import RequestLoggingMiddleware
from parcelflow.middleware.rate_limit import RateLimitMiddleware
from parcelflow.middleware.request_id import RequestIDMiddleware, request_id_var
from parcelflow.routes import cashouts, health, parcels, payments, rider, riders, tracking, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once: one line per record on stdout,
    level from LOG_LEVEL. Every module logs through getLogger(__name__).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Quiet per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("ParcelFlow Backend %s starting up...", __version__)

    # Missing collaborators disable single endpoints, not the whole API
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("ParcelFlow Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Errors whose context stays in the server log only
_PRIVATE_CONTEXT = (DatabaseError, PaymentGatewayError, IdentityServiceError)


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        ParcelFlowError subclasses → exc.status_code (400/401/403/404/409/429/500/503)
        RequestValidationError     → 400 (malformed body, query or path)
        HTTPException              → its status (unknown route 404, 405)
        Exception (fallback)       → 500, stack trace logged server-side only
    """

    @app.exception_handler(ParcelFlowError)
    async def handle_app_error(request: Request, exc: ParcelFlowError):
        rid = request_id_var.get("")
        headers = None

        if isinstance(exc, _PRIVATE_CONTEXT):
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            details = None
        else:
            if exc.status_code >= 500:
                logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            else:
                logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            details = exc.context or None

        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        if exc.status_code in (401, 403):
            details = None

        return error_response(exc.status_code, exc.error_code, exc.message, details, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.info("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return error_response(400, "validation_error", "Invalid request", {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(
            exc.status_code,
            "not_found" if exc.status_code == 404 else "http_error",
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Returns a fully configured FastAPI instance. Tests build a fresh app per
    test so dependency overrides and rate-limit windows never leak.
    """
    app = FastAPI(
        title="ParcelFlow API",
        description=(
            "Parcel delivery coordination: shipments, payments, rider assignment, "
            "delivery tracking and rider cashouts."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(parcels.router)
    app.include_router(riders.router)
    app.include_router(rider.router)
    app.include_router(payments.router)
    app.include_router(cashouts.router)
    app.include_router(tracking.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
