"""
Video Pydantic models for Tubely.

This module defines the Video record persisted in MongoDB, the request body
used to create a draft video, and the response model returned to clients.

The persisted video_url holds a storage locator ("<bucket>,<key>"), never a
playback URL. Responses carry a presigned URL produced at read time.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Video(BaseModel):
    """
    Pydantic model for a video record.

    Attributes:
        id: Video UUID as string (aliased from _id)
        user_id: UUID of the owning user
        title: Display title
        description: Free-form description
        thumbnail_url: Public URL of the uploaded thumbnail, if any
        video_url: Storage locator of the processed video, or a signed
            playback URL once the record has been prepared for a response
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Example:
        ```python
        video = Video(
            user_id="0f8fad5b-d9cb-469f-a165-70867728950e",
            title="Boots on the trail",
        )
        ```
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()), alias="_id", description="Video UUID"
    )

    user_id: str = Field(..., description="UUID of the owning user")

    title: str = Field(..., min_length=1, max_length=200, description="Video title")

    description: str = Field(default="", max_length=5000, description="Video description")

    thumbnail_url: str | None = Field(default=None, description="Public thumbnail URL")

    video_url: str | None = Field(default=None, description="Storage locator or signed URL")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp (UTC)"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modification timestamp (UTC)"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", "user_id")
    @classmethod
    def validate_uuid(cls, v: str | UUID) -> str:
        """Normalize identifiers to the canonical UUID string form."""
        return str(UUID(str(v)))

    def is_owned_by(self, user_id: UUID | str) -> bool:
        return self.user_id == str(user_id)

    def touch(self) -> None:
        """Set updated_at to the current time."""
        self.updated_at = datetime.now(UTC)

    def to_document(self) -> dict:
        """Return the MongoDB document form of this record."""
        return self.model_dump(by_alias=True)


class VideoCreate(BaseModel):
    """Schema for creating a new draft video (request body)."""

    title: str = Field(..., min_length=1, max_length=200, description="Video title")
    description: str = Field(default="", max_length=5000, description="Video description")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Boots on the trail",
                "description": "Field test of the new hiking boots",
            }
        },
    )


class VideoResponse(BaseModel):
    """
    Schema for video API responses.

    video_url is a presigned playback URL when a video has been uploaded.
    """

    id: str = Field(..., description="Video ID")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Video title")
    description: str = Field(..., description="Video description")
    thumbnail_url: str | None = Field(None, description="Thumbnail URL")
    video_url: str | None = Field(None, description="Presigned playback URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        """
        Create response from a signed Video model.

        Args:
            video: Video record whose video_url has already been signed

        Returns:
            VideoResponse for API
        """
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )
