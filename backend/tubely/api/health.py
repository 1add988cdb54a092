"""
Health check endpoint.
Verifies database connectivity, media tools and storage configuration.
"""
import shutil

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from tubely.config import settings
from tubely.database import get_db

router = APIRouter()


@router.get("")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.
    Returns 503 with the per-component status when anything is unhealthy.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "ffprobe": "unknown",
        "ffmpeg": "unknown",
        "storage": "unknown"
    }

    # Check database
    try:
        await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["database"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"

    # Check media tools are on PATH
    for tool, path in (("ffprobe", settings.ffprobe_path), ("ffmpeg", settings.ffmpeg_path)):
        if shutil.which(path):
            health_status[tool] = "available"
        else:
            health_status[tool] = f"error: {path} not found"
            health_status["status"] = "unhealthy"

    # Check storage client
    object_store = getattr(request.app.state, "object_store", None)
    if object_store is not None and object_store.is_configured:
        health_status["storage"] = "configured"
    else:
        health_status["storage"] = "error: not configured"
        health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
