"""
Video endpoints for creating drafts and reading videos back.
All endpoints require Firebase JWT authentication.
Every read signs a fresh playback URL; none is stored.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status

from tubely.api.dependencies import get_object_store, get_video_repository
from tubely.api.errors import to_http_exception
from tubely.auth.dependencies import get_current_user_id
from tubely.exceptions import VideoIngestError
from tubely.repositories.video_repository import VideoRepository
from tubely.schemas.video import VideoCreate, VideoResponse
from tubely.services.video_service import VideoService, parse_video_id
from tubely.storage.s3_client import S3Client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    video_data: VideoCreate,
    videos: VideoRepository = Depends(get_video_repository),
    user_id: str = Depends(get_current_user_id)
):
    """Create a draft video (no media yet) for the authenticated user."""
    video = await VideoService.create_video(
        videos,
        user_id=user_id,
        title=video_data.title,
        description=video_data.description
    )
    return VideoResponse.model_validate(video)


@router.get("", response_model=List[VideoResponse])
async def list_videos(
    videos: VideoRepository = Depends(get_video_repository),
    object_store: S3Client = Depends(get_object_store),
    user_id: str = Depends(get_current_user_id)
):
    """List the caller's videos, newest first, each with a signed URL."""
    try:
        return [
            await VideoService.to_response(object_store, video)
            for video in await VideoService.list_videos(videos, user_id)
        ]
    except VideoIngestError as e:
        raise to_http_exception(e)


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: str,
    videos: VideoRepository = Depends(get_video_repository),
    object_store: S3Client = Depends(get_object_store),
    user_id: str = Depends(get_current_user_id)
):
    """
    Get one video owned by the caller.
    Returns 400 for a malformed ID, 404 if missing, 403 if not owned.
    """
    try:
        video = await VideoService.get_owned_video(videos, parse_video_id(video_id), user_id)
        return await VideoService.to_response(object_store, video)
    except VideoIngestError as e:
        raise to_http_exception(e)
