"""
Thumbnail service.

Thumbnails are small, so the body is buffered in memory (capped) and
written through the injected LocalAssetStore.
"""
import asyncio
import logging
from typing import BinaryIO, Iterable, Optional

from tubely.config import settings
from tubely.exceptions import (
    PayloadTooLargeError,
    PersistError,
    StagingError,
    UnsupportedMediaTypeError,
)
from tubely.models.video import Video
from tubely.repositories.video_repository import VideoRepository
from tubely.services.ingest_service import normalize_media_type
from tubely.services.video_service import VideoService
from tubely.storage.assets import LocalAssetStore
from tubely.storage.keys import AssetKeyAllocator
from tubely.utils.metrics import thumbnails_uploaded_total

logger = logging.getLogger(__name__)


class ThumbnailService:
    """Stores thumbnails and links them to video records."""

    def __init__(
        self,
        videos: VideoRepository,
        asset_store: LocalAssetStore,
        max_bytes: Optional[int] = None,
        allowed_media_types: Optional[Iterable[str]] = None
    ):
        self.videos = videos
        self.asset_store = asset_store
        self.max_bytes = max_bytes or settings.max_thumbnail_upload_bytes
        self.allowed_media_types = set(allowed_media_types or settings.allowed_thumbnail_types)

    async def upload(
        self,
        video_id: str,
        user_id: str,
        stream: BinaryIO,
        media_type: str
    ) -> Video:
        """
        Store a thumbnail and set the video's thumbnail_url.

        Raises:
            VideoNotFoundError / UnauthorizedError: Ownership check failed
            UnsupportedMediaTypeError: Not a JPEG or PNG
            PayloadTooLargeError: Body larger than the cap
            StagingError: The asset could not be written
            PersistError: The video record could not be updated
        """
        video = await VideoService.get_owned_video(self.videos, video_id, user_id)

        media_type = normalize_media_type(media_type)
        if media_type not in self.allowed_media_types:
            raise UnsupportedMediaTypeError(f"Unsupported media type: {media_type or 'none'}")

        # Read one byte past the cap to detect oversized bodies
        data = await asyncio.to_thread(stream.read, self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise PayloadTooLargeError(f"Thumbnail exceeds the {self.max_bytes} byte limit")

        key = AssetKeyAllocator.allocate(None, media_type)
        try:
            url = await asyncio.to_thread(self.asset_store.save, key, data)
        except OSError as e:
            raise StagingError(f"Could not save thumbnail: {e}") from e

        video.thumbnail_url = url
        try:
            await self.videos.update(video)
        except Exception as e:
            # No record points at the asset; remove it rather than leave it behind
            await asyncio.to_thread(self.asset_store.delete, key)
            logger.error(
                f"Failed to save thumbnail for video {video_id}: {e}",
                extra={"event": "thumbnail_persist_failed", "video_id": video_id, "key": key}
            )
            raise PersistError(f"Could not save video record: {e}", key=key) from e

        thumbnails_uploaded_total.inc()
        logger.info(f"Thumbnail stored for video {video_id}: {key}")
        return video
