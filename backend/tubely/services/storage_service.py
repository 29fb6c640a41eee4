"""
Async storage service for Tubely.

Wraps the synchronous StorageClient so that uploads and URL signing run in a
worker thread and never block the event loop. All boto3 and file system
failures are converted into StorageOperationError, which the HTTP layer
reports as an internal error.

Key Features:
- Single-request upload of a processed video with its Content-Type
- Presigned GET URLs for a stored Locator
"""

import asyncio
import logging
from functools import wraps
from pathlib import Path
from typing import Any, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from tubely.core.exceptions import InternalError
from tubely.core.storage import StorageClient
from tubely.models.locator import Locator


logger = logging.getLogger(__name__)

T = TypeVar("T")


def async_wrap(func: Callable[..., T]) -> Callable[..., "asyncio.Future[T]"]:
    """
    Decorator to run a blocking function in a worker thread.

    Uses asyncio.to_thread. Cancelling the awaiting task does not interrupt
    the call already running in the thread.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)

    return wrapper


class StorageServiceError(InternalError):
    """Base exception for storage service errors."""

    error_code = "storage_error"
    default_message = "Storage operation failed"


class StorageOperationError(StorageServiceError):
    """Raised when an upload or signing request fails."""


class StorageService:
    """
    Async facade over StorageClient.

    Attributes:
        client: Synchronous storage client doing the boto3 calls
        bucket_name: Bucket new uploads are written to

    Example:
        >>> service = StorageService(get_storage_client())
        >>> locator = await service.upload_file(path, "wide/abc.mp4", "video/mp4")
        >>> url = await service.generate_presigned_download_url(locator, 1800)
    """

    def __init__(self, client: StorageClient, bucket_name: str | None = None) -> None:
        self.client = client
        self.bucket_name = bucket_name or client.bucket_name

    async def upload_file(
        self,
        file_path: str | Path,
        object_key: str,
        content_type: str,
    ) -> Locator:
        """
        Upload a local file under object_key in the configured bucket.

        The whole file is sent as one PutObject request; there is no multipart
        upload and no retry.

        Args:
            file_path: Local file to upload
            object_key: Destination key
            content_type: Content-Type stored with the object

        Returns:
            Locator: Where the object now lives

        Raises:
            StorageOperationError: If the upload fails
        """
        logger.info(
            "Uploading file to storage",
            extra={"bucket": self.bucket_name, "object_key": object_key},
        )

        @async_wrap
        def _put() -> None:
            self.client.put_file(file_path, self.bucket_name, object_key, content_type)

        try:
            await _put()
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message", str(e))
            raise StorageOperationError(f"Failed to upload file: {message}") from e
        except BotoCoreError as e:
            raise StorageOperationError(f"Storage error during file upload: {e}") from e
        except OSError as e:
            raise StorageOperationError(f"File system error during upload: {e}") from e

        return Locator(bucket=self.bucket_name, key=object_key)

    async def generate_presigned_download_url(self, locator: Locator, expiration: int) -> str:
        """
        Generate a presigned GET URL for a stored object.

        Args:
            locator: Bucket and key of the object
            expiration: URL validity in seconds

        Returns:
            str: The presigned URL

        Raises:
            StorageOperationError: If signing fails
        """

        @async_wrap
        def _generate() -> str:
            return self.client.generate_presigned_download_url(
                locator.bucket, locator.key, expiration
            )

        try:
            return await _generate()
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message", str(e))
            raise StorageOperationError(f"Failed to generate presigned URL: {message}") from e
        except (BotoCoreError, ValueError) as e:
            raise StorageOperationError(f"Failed to generate presigned URL: {e}") from e
