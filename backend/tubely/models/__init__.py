"""Pydantic data models for the Tubely backend."""

from tubely.models.locator import Locator, decode_locator, encode_locator
from tubely.models.video import Video, VideoCreate, VideoResponse


__all__ = [
    "Locator",
    "Video",
    "VideoCreate",
    "VideoResponse",
    "decode_locator",
    "encode_locator",
]
