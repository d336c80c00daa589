"""
LMS Backend — Health Check Route
=================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Probes the database with SELECT 1 and reports which rate-limit
       expiry sweepers are running.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    - healthy:   database reachable, all sweepers running (HTTP 200)
    - degraded:  database reachable, a sweeper is stopped (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)

/health sits outside /api, so the general rate limit never applies to it.
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lms import __version__
from lms.config import settings
from lms.database import engine
from lms.schemas.health import HealthResponse
from lms.services.rate_limiter import running_limiters

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Rate Limit Sweepers ─────────────────────────────────────────
    sweepers = running_limiters()
    if overall == "healthy" and not all(sweepers.values()):
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        environment=settings.environment,
        database=db_status,
        rate_limiters=sweepers,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
