"""
FastAPI Video Router for Tubely

Video record endpoints:
- POST /videos - Create a draft video owned by the caller
- GET /videos - List the caller's videos, newest first
- GET /videos/{video_id} - Fetch one of the caller's videos
- DELETE /videos/{video_id} - Delete one of the caller's videos

Every record returned carries a freshly presigned playback URL in video_url
when a video has been uploaded.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from tubely.config import Settings, get_settings
from tubely.core.auth import get_current_user_id
from tubely.core.database import get_db_client
from tubely.core.storage import get_storage_client
from tubely.models.video import VideoCreate, VideoResponse
from tubely.services.storage_service import StorageService
from tubely.services.upload_service import parse_video_id
from tubely.services.video_service import VideoService


logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str = Field(..., description="Error type/code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional error context")


# ============================================================================
# Dependencies
# ============================================================================


def get_storage_service(settings: Settings = Depends(get_settings)) -> StorageService:
    """Dependency injection for StorageService."""
    return StorageService(get_storage_client(), bucket_name=settings.s3_bucket_name)


def get_video_service(
    settings: Settings = Depends(get_settings),
    storage_service: StorageService = Depends(get_storage_service),
) -> VideoService:
    """Dependency injection for VideoService."""
    collection = get_db_client().get_videos_collection()
    return VideoService(collection, storage_service, settings)


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create video",
    responses={401: {"model": ErrorResponse}},
)
async def create_video(
    payload: VideoCreate,
    user_id: UUID = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    """Create a draft video record; the file is uploaded separately."""
    video = await video_service.create_video(user_id, payload)
    return VideoResponse.from_video(video)


@router.get(
    "",
    response_model=list[VideoResponse],
    summary="List videos",
    responses={401: {"model": ErrorResponse}},
)
async def list_videos(
    user_id: UUID = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
) -> list[VideoResponse]:
    videos = await video_service.list_videos(user_id)
    return [VideoResponse.from_video(await video_service.sign_video(video)) for video in videos]


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_video(
    video_id: str,
    user_id: UUID = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    """
    Fetch a video the caller owns.

    Raises:
        InvalidIdentifier: 400 if video_id is not a UUID
        VideoNotFound: 404 if the record does not exist
        Unauthorized: 401 if the record belongs to someone else
    """
    video = await video_service.get_owned_video(parse_video_id(video_id), user_id)
    return VideoResponse.from_video(await video_service.sign_video(video))


@router.delete(
    "/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete video",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def delete_video(
    video_id: str,
    user_id: UUID = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
) -> Response:
    """Delete the record. The stored video object is left in the bucket."""
    video = await video_service.get_owned_video(parse_video_id(video_id), user_id)
    await video_service.delete_video(video.id)
    logger.info("Video deleted by owner", extra={"video_id": video.id, "user_id": str(user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
