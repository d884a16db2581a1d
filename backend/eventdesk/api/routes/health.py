"""Health Routes — liveness and readiness probes for the orchestrator.

Invariants:
    - Liveness never touches the database
    - Readiness is 503 {"status": "not_ready", "reason": "database_unavailable"}
      whenever the manager is missing or SELECT 1 fails
"""

import logging
import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from eventdesk import __version__
from eventdesk.infrastructure import database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "eventdesk-api", "version": __version__}


@router.get("/ready")
async def readiness():
    # db_manager is assigned during lifespan, so read it at call time
    manager = db_module.db_manager
    started = time.perf_counter()
    if manager is None or not await manager.health_check():
        logger.warning("Readiness probe failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "database_latency_ms": round((time.perf_counter() - started) * 1000, 1),
    }
