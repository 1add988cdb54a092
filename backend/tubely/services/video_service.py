"""
Video service for business logic around video records.
Handles creation, ownership checks and playback URL signing.
"""
import asyncio
import logging
import time
import uuid
from typing import List, Optional

from tubely.exceptions import InvalidVideoIdError, UnauthorizedError, VideoNotFoundError
from tubely.models.video import Video
from tubely.repositories.video_repository import VideoRepository
from tubely.schemas.video import VideoResponse
from tubely.storage.s3_client import S3Client
from tubely.utils.logging import log_video_created
from tubely.utils.metrics import videos_created_total

logger = logging.getLogger(__name__)


def parse_video_id(raw: str) -> str:
    """
    Validate a video identifier and return its canonical form.

    Raises:
        InvalidVideoIdError: If raw is not a UUID
    """
    try:
        return str(uuid.UUID(raw))
    except (ValueError, TypeError, AttributeError):
        raise InvalidVideoIdError("Invalid video ID")


class VideoService:
    """Service for video record business logic."""

    @staticmethod
    async def create_video(
        videos: VideoRepository,
        user_id: str,
        title: str,
        description: Optional[str] = None
    ) -> Video:
        """
        Create a draft video for the authenticated user.

        Args:
            videos: Video repository
            user_id: Authenticated user's ID
            title: Display title
            description: Optional description
        """
        start_time = time.time()
        video = await videos.create(user_id=user_id, title=title, description=description)
        videos_created_total.inc()
        log_video_created(logger, video.id, user_id, duration_ms=(time.time() - start_time) * 1000)
        return video

    @staticmethod
    async def get_owned_video(videos: VideoRepository, video_id: str, user_id: str) -> Video:
        """
        Fetch a video and verify the caller owns it.

        Raises:
            VideoNotFoundError: If no such video exists
            UnauthorizedError: If the caller is not the owner
        """
        video = await videos.get(video_id)
        if video is None:
            raise VideoNotFoundError(f"Video {video_id} not found")
        if video.user_id != user_id:
            raise UnauthorizedError("Not authorized to access this video")
        return video

    @staticmethod
    async def list_videos(videos: VideoRepository, user_id: str) -> List[Video]:
        return await videos.list_for_user(user_id)

    @staticmethod
    async def sign_video_url(object_store: S3Client, video: Video) -> Optional[str]:
        """
        Mint a fresh playback URL from the stored reference.

        Returns:
            Signed GET URL, or None while the video has not been uploaded

        Raises:
            SignError: If the URL cannot be generated
        """
        ref = video.storage_ref
        if ref is None:
            return None
        return await asyncio.to_thread(object_store.get_presigned_read_url, ref.bucket, ref.key)

    @staticmethod
    async def to_response(object_store: S3Client, video: Video) -> VideoResponse:
        """Build the API representation with a freshly signed URL."""
        response = VideoResponse.model_validate(video)
        response.video_url = await VideoService.sign_video_url(object_store, video)
        return response
