"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from tubely.api import health, videos, uploads

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(videos.router, prefix="/videos", tags=["videos"])
api_router.include_router(uploads.router, tags=["uploads"])
