"""
Upload validation utilities for Tubely.

Validates the declared media type of multipart upload parts and derives the
file extension used for stored objects and asset files. Only the declared
Content-Type of the part is checked; the payload itself is inspected later by
ffprobe for videos.
"""

import mimetypes

from tubely.core.exceptions import UnsupportedMediaType


# =============================================================================
# CONSTANTS
# =============================================================================

VIDEO_MEDIA_TYPES: frozenset[str] = frozenset({"video/mp4"})

THUMBNAIL_MEDIA_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png"})

# Extension chosen for each accepted media type. The mimetypes registry can
# list several extensions per type and its ordering depends on the host's
# mime.types files, so accepted types are pinned here.
PREFERRED_EXTENSIONS: dict[str, str] = {
    "video/mp4": ".mp4",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def parse_media_type(content_type: str | None) -> str:
    """
    Return the bare, lower-cased media type of a Content-Type value.

    Parameters such as "; codecs=avc1" are dropped.

    Args:
        content_type: Raw Content-Type value from the multipart part

    Returns:
        str: e.g. "video/mp4", or "" when the value is missing
    """
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def extension_for_media_type(media_type: str) -> str | None:
    """
    Get the file extension registered for a media type.

    Args:
        media_type: Bare media type, e.g. "video/mp4"

    Returns:
        str | None: Extension with leading dot, or None if none is known
    """
    if media_type in PREFERRED_EXTENSIONS:
        return PREFERRED_EXTENSIONS[media_type]

    extensions = mimetypes.guess_all_extensions(media_type, strict=True)
    return extensions[0] if extensions else None


def validate_media_type(content_type: str | None, allowed: frozenset[str]) -> tuple[str, str]:
    """
    Validate a declared Content-Type against an allow-list.

    Args:
        content_type: Raw Content-Type value of the uploaded part
        allowed: Accepted bare media types

    Returns:
        tuple[str, str]: (media_type, extension)

    Raises:
        UnsupportedMediaType: If the type is not allowed or has no extension

    Example:
        >>> validate_media_type("video/mp4; codecs=avc1", VIDEO_MEDIA_TYPES)
        ('video/mp4', '.mp4')
    """
    media_type = parse_media_type(content_type)

    if media_type not in allowed:
        raise UnsupportedMediaType(
            f"Invalid file type '{media_type or 'unknown'}'",
            details={"allowed": sorted(allowed)},
        )

    extension = extension_for_media_type(media_type)
    if not extension:
        raise UnsupportedMediaType(f"No file extension known for '{media_type}'")

    return media_type, extension
