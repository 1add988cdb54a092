"""
FastAPI dependencies for services.

Long-lived collaborators (object store, asset store, media tools) are
created in the application lifespan and stored on app.state; tests replace
them through dependency_overrides.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.database import get_db
from tubely.media.base import MediaProbe, MediaTranscoder
from tubely.repositories.video_repository import VideoRepository
from tubely.services.ingest_service import VideoIngestService
from tubely.services.thumbnail_service import ThumbnailService
from tubely.storage.assets import LocalAssetStore
from tubely.storage.s3_client import S3Client


async def get_video_repository(db: AsyncSession = Depends(get_db)) -> VideoRepository:
    return VideoRepository(db)


def get_object_store(request: Request) -> S3Client:
    return request.app.state.object_store


def get_asset_store(request: Request) -> LocalAssetStore:
    return request.app.state.asset_store


def get_media_probe(request: Request) -> MediaProbe:
    return request.app.state.media_probe


def get_media_transcoder(request: Request) -> MediaTranscoder:
    return request.app.state.media_transcoder


def get_ingest_service(
    videos: VideoRepository = Depends(get_video_repository),
    object_store: S3Client = Depends(get_object_store),
    probe: MediaProbe = Depends(get_media_probe),
    transcoder: MediaTranscoder = Depends(get_media_transcoder)
) -> VideoIngestService:
    """Build a per-request ingestion pipeline from the shared collaborators."""
    return VideoIngestService(
        videos=videos,
        object_store=object_store,
        probe=probe,
        transcoder=transcoder
    )


def get_thumbnail_service(
    videos: VideoRepository = Depends(get_video_repository),
    asset_store: LocalAssetStore = Depends(get_asset_store)
) -> ThumbnailService:
    return ThumbnailService(videos=videos, asset_store=asset_store)
