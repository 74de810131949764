"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from datetime import datetime, timezone
import asyncio
import logging

from fastapi import APIRouter, HTTPException

from aidatlas.config.backend import get_backend
from aidatlas.core.settings import settings
from aidatlas.services.request_repository import HELP_REQUESTS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/db")
async def database_health():
    """
    Database connectivity check.
    Reads at most one help request to prove the Firestore round trip works.
    """
    def probe():
        backend = get_backend()
        return len(list(backend.db.collection(HELP_REQUESTS).limit(1).stream()))

    try:
        loop = asyncio.get_running_loop()
        sampled = await loop.run_in_executor(None, probe)
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise HTTPException(status_code=503, detail=f"Database connection failed: {str(e)}")

    return {
        "status": "healthy",
        "database": "firestore",
        "connected": True,
        "sampled_documents": sampled,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
