"""
Stockroom — Health Check Route
================================

What:  Health check endpoint for container orchestrators and load balancers.
How:   Database-backed services run `SELECT 1`; the order and user services
       report the database as "not_used" so a database outage never marks
       them unhealthy.

Status levels:
    - healthy:   service can handle requests (HTTP 200)
    - unhealthy: the store is unreachable (HTTP 503, stop routing traffic)

Readiness vs liveness:
    By the time this route answers at all, the startup readiness guard has
    already succeeded (uvicorn only listens after the lifespan startup), so
    this endpoint reports ongoing connectivity rather than migration state.
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from sqlalchemy import text

from stockroom import __version__
from stockroom.config import DATABASE_SERVICES
from stockroom.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    service = request.app.state.service
    db_status = "not_used"
    overall = "healthy"

    if service in DATABASE_SERVICES:
        db_status = "connected"
        try:
            from stockroom.database import engine
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            db_status = "disconnected"
            overall = "unhealthy"
            response.status_code = 503
            logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        service=service,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
