"""
ParcelFlow Backend — Health Check Routes
==========================================

What:  Liveness text at `/` and a database probe at `/health`.
Who:   Docker health checks, load balancers, and uptime monitors.

Status levels:
    healthy:   database answers SELECT 1 (HTTP 200)
    unhealthy: database unreachable (HTTP 503, stop routing traffic)

The token verifier and payment gateway are not probed: both are remote
services billed or rate-limited per call, and a failure there degrades
single endpoints, not the whole API.
"""

import logging
import time

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from parcelflow import __version__
from parcelflow.database import engine
from parcelflow.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Module-level: set once when the app loads
_start_time = time.time()


@router.get(
    "/",
    response_class=PlainTextResponse,
    summary="Liveness text",
)
async def root() -> str:
    return "ParcelFlow server is running"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
    description="Returns 200 when the database answers, 503 otherwise.",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
