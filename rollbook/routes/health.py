"""
Rollbook Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and checks that the upload
       directory is writable.
When:  Periodically (e.g., every 30 seconds by Docker, every 10 seconds by LB).

Status levels:
    - healthy:   database connected and upload directory writable
    - unhealthy: either dependency unavailable
"""

import logging
import os
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from rollbook import __version__
from rollbook.database import engine
from rollbook.schemas.student import HealthResponse
from rollbook.services.student_service import StudentService, get_student_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    service: StudentService = Depends(get_student_service),
) -> HealthResponse:
    db_status = "connected"
    uploads_status = "writable"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    upload_dir = service.store.upload_dir
    if not (upload_dir.is_dir() and os.access(upload_dir, os.W_OK)):
        uploads_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: upload directory not writable: %s", upload_dir)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uploads=uploads_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
