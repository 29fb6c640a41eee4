"""
Tubely Upload Service Module

Orchestrates the two upload flows of a video record:

Video upload (VideoUploadService.upload_video):
1. Parse the target video id and check that the caller owns the record
2. Accept only a declared video/mp4 part
3. Stage the payload in a private, request-scoped temp directory
4. Probe the staged file and classify its aspect ratio
5. Remux it for fast start into a sibling file
6. Upload the remuxed file under "<classification>/<random>.mp4"
7. Persist the storage Locator on the record
8. Return the record with a presigned playback URL

Thumbnail upload (ThumbnailUploadService.upload_thumbnail):
    Same id/ownership checks, JPEG or PNG only, the image is written to the
    local assets directory and served from /assets.

Every step runs sequentially. Blocking work (ffprobe, ffmpeg, S3) runs in a
worker thread. The staging directory is removed on every exit path; nothing
that was staged is ever handed to storage unless the remux succeeded.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from uuid import UUID

import aiofiles

from fastapi import UploadFile

from tubely.config import Settings
from tubely.core.exceptions import InternalError, InvalidIdentifier, InvalidUpload, Unauthorized
from tubely.models.video import Video
from tubely.services.media_service import MediaProcessor, classify_aspect_ratio
from tubely.services.storage_service import StorageService
from tubely.services.video_service import VideoService, VideoStoreError
from tubely.utils.file_validator import (
    THUMBNAIL_MEDIA_TYPES,
    VIDEO_MEDIA_TYPES,
    validate_media_type,
)
from tubely.utils.logger import add_log_context
from tubely.utils.security import generate_object_key, generate_random_identifier


logger = logging.getLogger(__name__)

# Read size used when copying an upload to disk
UPLOAD_CHUNK_SIZE = 1024 * 1024

STAGING_DIR_PREFIX = "tubely-upload-"
STAGED_FILE_STEM = "tubely-upload"


def parse_video_id(raw_video_id: str) -> UUID:
    """
    Parse a path parameter as a video UUID.

    Raises:
        InvalidIdentifier: If the value is not a UUID
    """
    try:
        return UUID(raw_video_id)
    except (TypeError, ValueError) as e:
        raise InvalidIdentifier() from e


async def load_owned_video(
    video_service: VideoService, video_id: UUID, user_id: UUID
) -> Video:
    """
    Fetch a record for upload and check that the caller owns it.

    A missing record is reported the same way as somebody else's record, so
    the upload endpoints never reveal which ids exist.

    Raises:
        Unauthorized: If the record does not exist or has another owner
    """
    video = await video_service.get_video(video_id)
    if video is None or not video.is_owned_by(user_id):
        raise Unauthorized("You don't own this video")
    return video


async def copy_upload_to_path(upload: UploadFile, destination: Path) -> int:
    """
    Stream an uploaded file to disk in fixed-size chunks.

    Returns:
        int: Number of bytes written

    Raises:
        InternalError: If the file cannot be written
    """
    written = 0
    try:
        await upload.seek(0)
        async with aiofiles.open(destination, "wb") as staged:
            while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                await staged.write(chunk)
                written += len(chunk)
    except OSError as e:
        raise InternalError("Couldn't save uploaded file") from e
    return written


class VideoUploadService:
    """
    Validate, prepare and store a video file for an existing video record.

    Attributes:
        settings: Application settings (bucket, temp dir)
        video_service: Record store and URL signing
        storage_service: Object storage uploads
        media_processor: Probe and remux capability

    Example:
        ```python
        service = VideoUploadService(
            settings=settings,
            video_service=video_service,
            storage_service=storage_service,
            media_processor=FFmpegMediaProcessor(),
        )
        video = await service.upload_video(user_id, "0f8f...950e", upload)
        print(video.video_url)  # presigned playback URL
        ```
    """

    def __init__(
        self,
        settings: Settings,
        video_service: VideoService,
        storage_service: StorageService,
        media_processor: MediaProcessor,
    ) -> None:
        self.settings = settings
        self.video_service = video_service
        self.storage_service = storage_service
        self.media_processor = media_processor

    async def upload_video(
        self,
        user_id: UUID,
        raw_video_id: str,
        upload: UploadFile | None,
    ) -> Video:
        """
        Run the video upload pipeline.

        Args:
            user_id: Authenticated caller
            raw_video_id: Target record id as received in the path
            upload: The multipart "video" part, or None if it was missing

        Returns:
            Video: The updated record with a presigned playback URL

        Raises:
            InvalidIdentifier: Malformed video id
            Unauthorized: Unknown record or not the owner
            InvalidUpload: Missing "video" part
            UnsupportedMediaType: Anything but video/mp4
            ProbeFailed: The staged file could not be inspected
            RemuxFailed: The fast-start copy could not be produced
            InternalError: Staging, storage or record update failure
        """
        video_id = parse_video_id(raw_video_id)
        upload_logger = add_log_context(logger, video_id=str(video_id), user_id=str(user_id))

        video = await load_owned_video(self.video_service, video_id, user_id)

        if upload is None:
            raise InvalidUpload("Missing 'video' file in form data")
        media_type, extension = validate_media_type(upload.content_type, VIDEO_MEDIA_TYPES)

        try:
            staging_dir = Path(
                tempfile.mkdtemp(prefix=STAGING_DIR_PREFIX, dir=self.settings.upload_temp_dir)
            )
        except OSError as e:
            raise InternalError("Couldn't create temp file") from e

        try:
            staged_path = staging_dir / f"{STAGED_FILE_STEM}{extension}"
            size = await copy_upload_to_path(upload, staged_path)
            upload_logger.info("Staged upload", extra={"size_bytes": size})

            geometry = await asyncio.to_thread(self.media_processor.analyze, staged_path)
            classification = classify_aspect_ratio(geometry.aspect_ratio)
            upload_logger.info(
                "Classified video",
                extra={
                    "width": geometry.width,
                    "height": geometry.height,
                    "classification": classification.value,
                },
            )

            processed_path = await asyncio.to_thread(self.media_processor.remux, staged_path)

            object_key = generate_object_key(classification.value, extension)
            locator = await self.storage_service.upload_file(processed_path, object_key, media_type)

            video.video_url = locator.encode()
            try:
                await self.video_service.update_video(video)
            except VideoStoreError:
                # The stored object stays in place; it is unreferenced from here on
                upload_logger.error(
                    "Video record update failed after upload",
                    extra={"bucket": locator.bucket, "object_key": locator.key},
                )
                raise

            upload_logger.info("Video uploaded", extra={"object_key": object_key})
        finally:
            _remove_staging_dir(staging_dir)

        return await self.video_service.sign_video(video)


class ThumbnailUploadService:
    """
    Store a thumbnail image for a video record on local disk.

    The file name is random; the record's thumbnail_url points at the
    /assets static mount.
    """

    def __init__(self, settings: Settings, video_service: VideoService) -> None:
        self.settings = settings
        self.video_service = video_service

    async def upload_thumbnail(
        self,
        user_id: UUID,
        raw_video_id: str,
        upload: UploadFile | None,
    ) -> Video:
        """
        Save a JPEG or PNG thumbnail and point the record at it.

        Raises:
            InvalidIdentifier, Unauthorized, InvalidUpload, UnsupportedMediaType,
            InternalError: As for video uploads
        """
        video_id = parse_video_id(raw_video_id)
        video = await load_owned_video(self.video_service, video_id, user_id)

        if upload is None:
            raise InvalidUpload("Missing 'thumbnail' file in form data")
        _, extension = validate_media_type(upload.content_type, THUMBNAIL_MEDIA_TYPES)

        assets_path = self.settings.assets_path
        try:
            assets_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InternalError("Couldn't create assets directory") from e

        file_name = f"{generate_random_identifier()}{extension}"
        await copy_upload_to_path(upload, assets_path / file_name)

        video.thumbnail_url = f"{self.settings.public_base_url}/assets/{file_name}"
        await self.video_service.update_video(video)

        logger.info(
            "Thumbnail uploaded",
            extra={"video_id": video.id, "file_name": file_name},
        )
        return await self.video_service.sign_video(video)


def _remove_staging_dir(staging_dir: Path) -> None:
    try:
        shutil.rmtree(staging_dir)
    except OSError as cleanup_error:
        logger.warning(
            "Failed to clean up staging directory '%s': %s",
            staging_dir,
            str(cleanup_error),
        )
