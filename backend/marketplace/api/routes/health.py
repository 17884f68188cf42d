"""Health & Readiness Probes.

Invariants:
    - GET /api/v1/health/ answers 200 whenever the process is serving
    - GET /api/v1/health/ready answers 503 unless the database responds and the
      attachment directory is writable
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

import marketplace.infrastructure.database as database
from marketplace import __version__
from marketplace.infrastructure.file_storage import AttachmentStorage, get_attachment_storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness():
    return {"status": "healthy", "service": "campus-marketplace-api", "version": __version__}


@router.get("/ready")
async def readiness(storage: AttachmentStorage = Depends(get_attachment_storage)):
    manager = database.db_manager
    checks = {
        "database": bool(manager) and await manager.health_check(),
        "uploads": storage.is_writable(),
    }
    body = {key: "healthy" if ok else "unavailable" for key, ok in checks.items()}
    if not all(checks.values()):
        logger.warning(f"Readiness failed: {body}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": body},
        )
    return {"status": "ready", "checks": body}
