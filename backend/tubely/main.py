"""
FastAPI application entry point.
Sets up the API with lifespan events for database initialization and the
shared storage and media collaborators.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from tubely.config import settings
from tubely.database import init_db
from tubely.api.router import api_router
from tubely.auth.firebase import initialize_firebase
from tubely.media.ffmpeg import FFmpegFastStartTranscoder, FFprobeProbe
from tubely.middleware.metrics_middleware import MetricsMiddleware
from tubely.storage.assets import LocalAssetStore
from tubely.storage.s3_client import S3Client
from tubely.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Initialize database, Firebase Admin SDK and collaborators
    - Shutdown: Nothing to release
    """
    configure_logging('tubely-api', settings.log_level)

    await init_db()

    # Skip if Firebase config not provided (for local dev without Firebase)
    if settings.firebase_project_id:
        try:
            initialize_firebase()
        except Exception as e:
            if settings.environment == "production":
                raise
            logger.warning(f"Firebase initialization failed: {e}")

    asset_store = LocalAssetStore()
    asset_store.ensure_dir()

    app.state.object_store = S3Client()
    app.state.asset_store = asset_store
    app.state.media_probe = FFprobeProbe()
    app.state.media_transcoder = FFmpegFastStartTranscoder()

    yield


# Create FastAPI app
app = FastAPI(
    title="Tubely API",
    description="Video upload and streaming backend",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")

# Thumbnails; the directory is created in the lifespan
app.mount("/assets", StaticFiles(directory=settings.assets_root, check_dir=False), name="assets")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Tubely API",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
