"""
Video record service for Tubely.

Persists video records in MongoDB and prepares them for clients. A stored
record keeps its video location as a Locator string; every read that leaves
the service through sign_video gets a fresh presigned playback URL instead.
Signed URLs are never written back to the database.
"""

import logging
from typing import Any
from uuid import UUID

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from tubely.config import Settings
from tubely.core.exceptions import InternalError, Unauthorized, VideoNotFound
from tubely.models.locator import decode_locator
from tubely.models.video import Video, VideoCreate
from tubely.services.storage_service import StorageService


logger = logging.getLogger(__name__)


class VideoStoreError(InternalError):
    """Raised when a video record cannot be read or written."""

    error_code = "video_store_error"
    default_message = "Couldn't update video"


class VideoService:
    """
    CRUD operations on video records plus playback URL signing.

    Attributes:
        collection: Motor collection holding video documents
        storage_service: Used to presign playback URLs
        settings: Provides the playback URL lifetime

    Example:
        >>> service = VideoService(db.get_videos_collection(), storage_service, settings)
        >>> video = await service.get_video(video_id)
        >>> signed = await service.sign_video(video)
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        storage_service: StorageService,
        settings: Settings,
    ) -> None:
        self.collection = collection
        self.storage_service = storage_service
        self.settings = settings

    # ===== Persistence =====

    async def create_video(self, user_id: UUID | str, data: VideoCreate) -> Video:
        """Insert a draft record owned by user_id."""
        video = Video(user_id=str(user_id), title=data.title, description=data.description)
        try:
            await self.collection.insert_one(video.to_document())
        except PyMongoError as e:
            raise VideoStoreError("Couldn't create video") from e

        logger.info("Created video record", extra={"video_id": video.id, "user_id": video.user_id})
        return video

    async def get_video(self, video_id: UUID | str) -> Video | None:
        """Fetch a record by id, or None when it does not exist."""
        try:
            document = await self.collection.find_one({"_id": str(video_id)})
        except PyMongoError as e:
            raise VideoStoreError("Couldn't get video") from e

        if document is None:
            return None
        return Video.model_validate(document)

    async def get_owned_video(self, video_id: UUID | str, user_id: UUID | str) -> Video:
        """
        Fetch a record the caller owns.

        Raises:
            VideoNotFound: If no record has this id
            Unauthorized: If the record belongs to another user
        """
        video = await self.get_video(video_id)
        if video is None:
            raise VideoNotFound()
        if not video.is_owned_by(user_id):
            raise Unauthorized("You don't have access to this video")
        return video

    async def list_videos(self, user_id: UUID | str) -> list[Video]:
        """Return the user's records, newest first."""
        try:
            cursor = self.collection.find({"user_id": str(user_id)}).sort("created_at", -1)
            documents: list[dict[str, Any]] = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise VideoStoreError("Couldn't list videos") from e

        return [Video.model_validate(document) for document in documents]

    async def update_video(self, video: Video) -> None:
        """
        Replace the stored record with `video`.

        Raises:
            VideoStoreError: If the write fails or the record no longer exists
        """
        video.touch()
        try:
            result = await self.collection.replace_one({"_id": video.id}, video.to_document())
        except PyMongoError as e:
            raise VideoStoreError() from e

        if result.matched_count == 0:
            raise VideoStoreError("Video no longer exists")

    async def delete_video(self, video_id: UUID | str) -> None:
        try:
            await self.collection.delete_one({"_id": str(video_id)})
        except PyMongoError as e:
            raise VideoStoreError("Couldn't delete video") from e

        logger.info("Deleted video record", extra={"video_id": str(video_id)})

    # ===== Signing =====

    async def sign_video(self, video: Video) -> Video:
        """
        Return a copy of the record whose video_url is a presigned playback URL.

        Records without a video are returned unchanged and no signing request
        is made.

        Raises:
            MalformedLocator: If the stored locator cannot be decoded
            StorageOperationError: If the URL cannot be signed
        """
        locator = decode_locator(video.video_url)
        if locator is None:
            return video

        signed_url = await self.storage_service.generate_presigned_download_url(
            locator, self.settings.video_url_expiration_seconds
        )
        return video.model_copy(update={"video_url": signed_url})
