"""
Upload endpoints for video and thumbnail bytes.

Videos go through the ingestion pipeline (stage, probe, fast-start
rewrite, upload to object storage). Thumbnails are small and stored in
the local asset store.

Security:
- All endpoints require Firebase JWT authentication
- Video ownership is validated before the body is read
- Oversized bodies are rejected from Content-Length before form parsing,
  and the raw body stream is capped while the form is parsed (chunked
  requests carry no Content-Length)
"""
import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.datastructures import UploadFile

from tubely.api.dependencies import (
    get_ingest_service,
    get_object_store,
    get_thumbnail_service,
    get_video_repository,
)
from tubely.api.errors import to_http_exception
from tubely.auth.dependencies import get_current_user_id
from tubely.config import settings
from tubely.exceptions import PayloadTooLargeError, VideoIngestError
from tubely.repositories.video_repository import VideoRepository
from tubely.schemas.video import VideoResponse
from tubely.services.ingest_service import VideoIngestService
from tubely.services.thumbnail_service import ThumbnailService
from tubely.services.video_service import VideoService, parse_video_id
from tubely.storage.s3_client import S3Client

logger = logging.getLogger(__name__)

router = APIRouter()

# Multipart framing overhead allowed on top of the file cap
FORM_OVERHEAD_BYTES = 64 * 1024


def _check_content_length(request: Request, limit: int):
    """
    Reject a request whose declared body exceeds limit plus form overhead.

    Raises:
        PayloadTooLargeError: If Content-Length is over the cap
    """
    raw = request.headers.get("content-length")
    if raw is None:
        return
    try:
        declared = int(raw)
    except ValueError:
        return
    if declared > limit + FORM_OVERHEAD_BYTES:
        raise PayloadTooLargeError(f"Upload exceeds the {limit} byte limit")


def _capped_request(request: Request, limit: int) -> Request:
    """
    Wrap the request so reading more than limit plus form overhead body
    bytes raises PayloadTooLargeError instead of spooling the rest.
    """
    received = 0

    async def receive():
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit + FORM_OVERHEAD_BYTES:
                raise PayloadTooLargeError(f"Upload exceeds the {limit} byte limit")
        return message

    return Request(request.scope, receive)


async def _form_file(request: Request, field: str, limit: int) -> tuple:
    """
    Parse the multipart form and return (form, UploadFile for field).

    Raises:
        PayloadTooLargeError: If the body grows past the cap while parsing
    """
    form = await _capped_request(request, limit).form()
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        await form.close()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"category": "validation", "message": f"Missing file field '{field}'"}
        )
    return form, upload


async def _receive_upload(
    request: Request,
    videos: VideoRepository,
    raw_video_id: str,
    user_id: str,
    field: str,
    limit: int
) -> tuple:
    """
    Run the checks that need no body, then parse the form.

    Order: ID, declared size, ownership, capped body read.

    Returns:
        Tuple of (video_id, form, upload)
    """
    try:
        video_id = parse_video_id(raw_video_id)
        _check_content_length(request, limit)
        await VideoService.get_owned_video(videos, video_id, user_id)
        form, upload = await _form_file(request, field, limit)
    except VideoIngestError as e:
        raise to_http_exception(e)
    return video_id, form, upload


@router.post("/video_upload/{video_id}", response_model=VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    videos: VideoRepository = Depends(get_video_repository),
    ingest_service: VideoIngestService = Depends(get_ingest_service),
    object_store: S3Client = Depends(get_object_store),
    user_id: str = Depends(get_current_user_id)
):
    """
    Upload the video for a draft owned by the caller.

    Flow:
    1. Validate the ID, declared size and ownership (before reading the body)
    2. Parse the multipart field "video" with the body capped
    3. Run the ingestion pipeline
    4. Return the video with a freshly signed URL
    """
    start_time = time.time()
    video_id, form, upload = await _receive_upload(
        request, videos, video_id, user_id, "video", settings.max_video_upload_bytes
    )
    try:
        result = await ingest_service.ingest(
            video_id,
            user_id,
            upload.file,
            upload.content_type or "",
            size=upload.size
        )
        response = await VideoService.to_response(object_store, result.video)
    except VideoIngestError as e:
        raise to_http_exception(e)
    finally:
        await form.close()

    logger.info(
        f"Video upload handled: {video_id}",
        extra={
            "event": "video_upload_handled",
            "video_id": video_id,
            "user_id": user_id,
            "duration_ms": round((time.time() - start_time) * 1000, 2),
        }
    )
    return response


@router.post("/thumbnail_upload/{video_id}", response_model=VideoResponse)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    videos: VideoRepository = Depends(get_video_repository),
    thumbnail_service: ThumbnailService = Depends(get_thumbnail_service),
    object_store: S3Client = Depends(get_object_store),
    user_id: str = Depends(get_current_user_id)
):
    """
    Upload a JPEG or PNG thumbnail (multipart field "thumbnail", max 10 MiB).
    """
    video_id, form, upload = await _receive_upload(
        request, videos, video_id, user_id, "thumbnail", settings.max_thumbnail_upload_bytes
    )
    try:
        video = await thumbnail_service.upload(
            video_id,
            user_id,
            upload.file,
            upload.content_type or ""
        )
        return await VideoService.to_response(object_store, video)
    except VideoIngestError as e:
        raise to_http_exception(e)
    finally:
        await form.close()
