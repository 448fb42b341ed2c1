"""
Health Check Endpoints

Endpoints:
- GET /health - Basic health check
- GET /health/ready - Readiness probe (database reachable)
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from neurolex.config import settings
from neurolex.db.base import get_db

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns a simple status response indicating the API is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness probe: checks that the database answers."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "unavailable", "database": {"status": "unhealthy", "error": str(e)}}
    return {"status": "ready", "database": {"status": "healthy"}}
