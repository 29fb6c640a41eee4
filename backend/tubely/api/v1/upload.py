"""
FastAPI Upload Router for Tubely

- POST /videos/{video_id}/video - Upload the video file (multipart field "video")
- POST /videos/{video_id}/thumbnail - Upload a thumbnail (multipart field "thumbnail")

Request bodies are capped by UploadSizeLimitMiddleware before they reach these
handlers: 1 GiB for videos and 10 MiB for thumbnails by default.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from tubely.api.v1.videos import ErrorResponse, get_storage_service, get_video_service
from tubely.config import Settings, get_settings
from tubely.core.auth import get_current_user_id
from tubely.models.video import VideoResponse
from tubely.services.media_service import FFmpegMediaProcessor, MediaProcessor
from tubely.services.storage_service import StorageService
from tubely.services.upload_service import ThumbnailUploadService, VideoUploadService
from tubely.services.video_service import VideoService


logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid id, missing file or wrong type"},
    401: {"model": ErrorResponse, "description": "Not authenticated or not the owner"},
    413: {"model": ErrorResponse, "description": "Request body too large"},
    500: {"model": ErrorResponse, "description": "Processing or storage failure"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_media_processor(settings: Settings = Depends(get_settings)) -> MediaProcessor:
    """Dependency injection for the ffmpeg-backed MediaProcessor."""
    return FFmpegMediaProcessor(ffmpeg_path=settings.ffmpeg_path, ffprobe_path=settings.ffprobe_path)


def get_video_upload_service(
    settings: Settings = Depends(get_settings),
    video_service: VideoService = Depends(get_video_service),
    storage_service: StorageService = Depends(get_storage_service),
    media_processor: MediaProcessor = Depends(get_media_processor),
) -> VideoUploadService:
    """Dependency injection for VideoUploadService."""
    return VideoUploadService(
        settings=settings,
        video_service=video_service,
        storage_service=storage_service,
        media_processor=media_processor,
    )


def get_thumbnail_upload_service(
    settings: Settings = Depends(get_settings),
    video_service: VideoService = Depends(get_video_service),
) -> ThumbnailUploadService:
    """Dependency injection for ThumbnailUploadService."""
    return ThumbnailUploadService(settings=settings, video_service=video_service)


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/{video_id}/video",
    response_model=VideoResponse,
    summary="Upload video file",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def upload_video(
    video_id: str,
    video: UploadFile | None = File(None, description="MP4 video file"),
    user_id: UUID = Depends(get_current_user_id),
    upload_service: VideoUploadService = Depends(get_video_upload_service),
) -> VideoResponse:
    """
    Upload and process the video file of a draft record.

    The file is probed, remuxed for fast start and stored under a prefix
    named after its aspect ratio. The response carries a presigned
    playback URL.
    """
    logger.info("Video upload request", extra={"video_id": video_id, "user_id": str(user_id)})
    updated = await upload_service.upload_video(user_id, video_id, video)
    return VideoResponse.from_video(updated)


@router.post(
    "/{video_id}/thumbnail",
    response_model=VideoResponse,
    summary="Upload thumbnail",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def upload_thumbnail(
    video_id: str,
    thumbnail: UploadFile | None = File(None, description="JPEG or PNG image"),
    user_id: UUID = Depends(get_current_user_id),
    upload_service: ThumbnailUploadService = Depends(get_thumbnail_upload_service),
) -> VideoResponse:
    logger.info("Thumbnail upload request", extra={"video_id": video_id, "user_id": str(user_id)})
    updated = await upload_service.upload_thumbnail(user_id, video_id, thumbnail)
    return VideoResponse.from_video(updated)
