"""
Media inspection and fast-start remuxing for Tubely.

This module provides:
- classify_aspect_ratio: maps a width/height ratio to a storage prefix
- MediaProcessor: the capability the upload pipeline depends on
  (inspect geometry, rewrite the container for progressive playback)
- FFmpegMediaProcessor: implementation backed by the ffprobe and ffmpeg
  executables

Both ffmpeg tools are run synchronously with subprocess.run; callers on the
event loop run them in a worker thread. No timeout is applied to either tool.

Example:
    ```python
    processor = FFmpegMediaProcessor(ffmpeg_path="ffmpeg", ffprobe_path="ffprobe")
    geometry = processor.analyze(path)
    prefix = classify_aspect_ratio(geometry.aspect_ratio)
    processed = processor.remux(path)   # path + ".processing"
    ```
"""

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from tubely.core.exceptions import ProbeFailed, RemuxFailed


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Inclusive ratio bands; a 16:9 frame is ~1.778, a 9:16 frame is 0.5625
WIDE_RATIO_RANGE: tuple[float, float] = (1.7, 1.8)
TALL_RATIO_RANGE: tuple[float, float] = (0.5, 0.6)

REMUX_SUFFIX = ".processing"

# Tail of tool stderr kept on errors
STDERR_EXCERPT_CHARS = 500


# =============================================================================
# ASPECT CLASSIFICATION
# =============================================================================


class AspectClassification(str, Enum):
    """Storage prefix derived from a video's aspect ratio."""

    WIDE = "wide"
    TALL = "tall"
    OTHER = "other"


@dataclass(frozen=True)
class VideoGeometry:
    """Pixel dimensions of the first stream of a media file."""

    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def classify_aspect_ratio(ratio: float) -> AspectClassification:
    """
    Classify a width/height ratio.

    The wide band is checked first, then the tall band; both bounds are
    inclusive. Anything else (including square video) is OTHER.

    Args:
        ratio: width divided by height

    Returns:
        AspectClassification

    Example:
        >>> classify_aspect_ratio(1920 / 1080)
        <AspectClassification.WIDE: 'wide'>
        >>> classify_aspect_ratio(1.0)
        <AspectClassification.OTHER: 'other'>
    """
    if WIDE_RATIO_RANGE[0] <= ratio <= WIDE_RATIO_RANGE[1]:
        return AspectClassification.WIDE
    if TALL_RATIO_RANGE[0] <= ratio <= TALL_RATIO_RANGE[1]:
        return AspectClassification.TALL
    return AspectClassification.OTHER


# =============================================================================
# MEDIA PROCESSOR
# =============================================================================


class MediaProcessor(ABC):
    """
    Capability used by the upload pipeline to inspect and repackage video.

    Implementations are synchronous and may block.
    """

    @abstractmethod
    def analyze(self, path: Path) -> VideoGeometry:
        """
        Read the pixel dimensions of the first stream.

        Raises:
            ProbeFailed: If the file cannot be inspected
        """

    @abstractmethod
    def remux(self, path: Path) -> Path:
        """
        Write a fast-start copy of the file next to it and return its path.

        The input file is never modified.

        Raises:
            RemuxFailed: If the copy cannot be produced
        """


class FFmpegMediaProcessor(MediaProcessor):
    """
    MediaProcessor backed by the ffprobe and ffmpeg command line tools.

    Attributes:
        ffmpeg_path: ffmpeg executable name or path
        ffprobe_path: ffprobe executable name or path
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg", ffprobe_path: str = "ffprobe") -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path

    def analyze(self, path: Path) -> VideoGeometry:
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(path),
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, check=False)
        except OSError as e:
            raise ProbeFailed(f"Unable to run ffprobe: {e}") from e

        if result.returncode != 0:
            logger.warning(
                "ffprobe exited with an error",
                extra={"returncode": result.returncode, "stderr": _excerpt(result.stderr)},
            )
            raise ProbeFailed(
                "ffprobe could not read the video",
                details={"returncode": result.returncode},
            )

        try:
            # Tag values are not guaranteed to be UTF-8
            probe = json.loads(result.stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise ProbeFailed("ffprobe returned invalid JSON") from e

        streams = probe.get("streams") if isinstance(probe, dict) else None
        if not streams:
            raise ProbeFailed("No streams found in video")

        first = streams[0]
        width = first.get("width")
        height = first.get("height")
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise ProbeFailed(
                "First stream has no usable dimensions",
                details={"width": width, "height": height},
            )

        return VideoGeometry(width=width, height=height)

    def remux(self, path: Path) -> Path:
        output_path = path.with_name(path.name + REMUX_SUFFIX)
        cmd = [
            self.ffmpeg_path,
            "-i", str(path),
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            str(output_path),
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, check=False)
        except OSError as e:
            raise RemuxFailed(f"Unable to run ffmpeg: {e}") from e

        if result.returncode != 0:
            logger.warning(
                "ffmpeg exited with an error",
                extra={"returncode": result.returncode, "stderr": _excerpt(result.stderr)},
            )
            raise RemuxFailed(
                "ffmpeg could not process the video",
                details={"returncode": result.returncode},
            )

        if not output_path.is_file():
            raise RemuxFailed("ffmpeg did not produce an output file")

        return output_path


def _excerpt(output: bytes | None) -> str:
    if not output:
        return ""
    return output.decode("utf-8", errors="replace")[-STDERR_EXCERPT_CHARS:]
