"""
Storage locator model.

A Locator identifies a stored video object by bucket and key. It is carried
as a structured value in code and persisted on the video record in the
compact delimited form "<bucket>,<key>", which is what existing records hold.

Example:
    ```python
    value = encode_locator("tubely-videos", "wide/abc.mp4")
    # "tubely-videos,wide/abc.mp4"
    decode_locator(value)
    # Locator(bucket="tubely-videos", key="wide/abc.mp4")
    decode_locator(None)
    # None
    ```
"""

from pydantic import BaseModel, ConfigDict, Field

from tubely.core.exceptions import MalformedLocator


LOCATOR_DELIMITER = ","


class Locator(BaseModel):
    """Bucket and key of a stored object."""

    bucket: str = Field(..., min_length=1, description="Storage bucket name")
    key: str = Field(..., min_length=1, description="Object key within the bucket")

    model_config = ConfigDict(frozen=True)

    def encode(self) -> str:
        """Return the persisted "<bucket>,<key>" form of this locator."""
        return encode_locator(self.bucket, self.key)


def encode_locator(bucket: str, key: str) -> str:
    """
    Encode a bucket and key into the persisted locator string.

    Args:
        bucket: Storage bucket name
        key: Object key within the bucket

    Returns:
        str: "<bucket>,<key>"

    Raises:
        MalformedLocator: If either part is empty or contains the delimiter,
            since such a value could not be decoded back unambiguously.
    """
    for name, part in (("bucket", bucket), ("key", key)):
        if not part:
            raise MalformedLocator(f"Locator {name} must not be empty")
        if LOCATOR_DELIMITER in part:
            raise MalformedLocator(f"Locator {name} must not contain '{LOCATOR_DELIMITER}'")
    return f"{bucket}{LOCATOR_DELIMITER}{key}"


def decode_locator(value: str | None) -> Locator | None:
    """
    Decode a persisted locator string.

    Args:
        value: Persisted locator, or None when no video has been uploaded

    Returns:
        Locator | None: The decoded locator, or None when value is None

    Raises:
        MalformedLocator: If the value does not split into exactly two
            non-empty parts.
    """
    if value is None:
        return None

    parts = value.split(LOCATOR_DELIMITER)
    if len(parts) != 2 or not all(parts):
        raise MalformedLocator(
            "Stored video location is malformed",
            details={"parts": len(parts)},
        )
    return Locator(bucket=parts[0], key=parts[1])
