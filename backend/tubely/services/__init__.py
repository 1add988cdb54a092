"""
Business logic services.
"""
from tubely.services.ingest_service import VideoIngestService, IngestResult, IngestState
from tubely.services.thumbnail_service import ThumbnailService
from tubely.services.video_service import VideoService

__all__ = [
    "VideoIngestService",
    "IngestResult",
    "IngestState",
    "ThumbnailService",
    "VideoService",
]
