"""
Tubely S3-Compatible Storage Client

Thin synchronous wrapper around a boto3 S3 client that works against AWS S3
or MinIO (via a configurable endpoint URL). It provides exactly the operations
the video pipeline needs:

- put_file: single-request upload of a local file with an explicit Content-Type
- generate_presigned_download_url: time-limited GET URL for playback
- ensure_bucket: create the configured bucket if missing (setup scripts)

Uploads are never retried: the client is built with a single attempt so that a
failed put surfaces immediately as an error.
"""

import logging

from pathlib import Path

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings, get_settings


MIN_PRESIGNED_EXPIRATION_SECONDS = 60
MAX_PRESIGNED_EXPIRATION_SECONDS = 604800

logger = logging.getLogger(__name__)

# Singleton container for storage client instance
_singleton_container: dict[str, "StorageClient"] = {}


class StorageClient:
    """
    S3-compatible storage client for processed videos.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: Initialized boto3 S3 client
        bucket_name: Default bucket for uploads

    Example usage:
        ```python
        storage = StorageClient(settings)
        storage.put_file("/tmp/x.mp4.processing", "tubely-videos", "wide/abc.mp4", "video/mp4")
        url = storage.generate_presigned_download_url("tubely-videos", "wide/abc.mp4", 1800)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},  # MinIO needs path-style addressing
            retries={"max_attempts": 1, "mode": "standard"},
        )

        self.s3_client = boto3.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key_id,
            aws_secret_access_key=self.settings.s3_secret_access_key,
            region_name=self.settings.s3_region,
            config=client_config,
        )
        self.bucket_name = self.settings.s3_bucket_name

        logger.info(
            "S3 storage client initialized",
            extra={
                "bucket": self.bucket_name,
                "region": self.settings.s3_region,
                "endpoint": self.settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )

    def put_file(
        self,
        file_path: str | Path,
        bucket: str,
        key: str,
        content_type: str,
    ) -> None:
        """
        Upload a local file to S3 as a single PutObject request.

        Args:
            file_path: Local file to upload
            bucket: Destination bucket
            key: Destination object key
            content_type: Value stored as the object's Content-Type

        Raises:
            ClientError | BotoCoreError: If the request fails
            OSError: If the local file cannot be read
        """
        try:
            with open(file_path, "rb") as body:
                self.s3_client.put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (ClientError, BotoCoreError):
            logger.exception(
                "Failed to upload file to S3",
                extra={"file_path": str(file_path), "bucket": bucket, "key": key},
            )
            raise

        logger.info(
            "Uploaded file to S3",
            extra={"bucket": bucket, "key": key, "content_type": content_type},
        )

    def generate_presigned_download_url(
        self,
        bucket: str,
        key: str,
        expires_in: int,
    ) -> str:
        """
        Generate a presigned GET URL for an object.

        Args:
            bucket: Bucket holding the object
            key: Object key
            expires_in: URL validity in seconds

        Returns:
            str: Presigned GET URL

        Raises:
            ValueError: If expires_in is outside the range S3 accepts
            ClientError | BotoCoreError: If signing fails
        """
        if not MIN_PRESIGNED_EXPIRATION_SECONDS <= expires_in <= MAX_PRESIGNED_EXPIRATION_SECONDS:
            raise ValueError(
                f"expires_in must be between {MIN_PRESIGNED_EXPIRATION_SECONDS} and "
                f"{MAX_PRESIGNED_EXPIRATION_SECONDS} seconds, got {expires_in}"
            )

        try:
            presigned_url = self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError):
            logger.exception(
                "Failed to generate presigned download URL",
                extra={"bucket": bucket, "key": key},
            )
            raise

        logger.debug(
            "Generated presigned download URL",
            extra={"bucket": bucket, "key": key, "expires_in": expires_in},
        )
        return presigned_url

    def ensure_bucket(self, bucket: str | None = None) -> bool:
        """
        Create the bucket if it does not exist yet.

        Returns:
            bool: True if the bucket was created, False if it already existed
        """
        bucket = bucket or self.bucket_name
        try:
            self.s3_client.head_bucket(Bucket=bucket)
            return False
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code not in {"404", "NoSuchBucket"}:
                raise

        create_args: dict = {"Bucket": bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if self.settings.s3_region != "us-east-1":
            create_args["CreateBucketConfiguration"] = {
                "LocationConstraint": self.settings.s3_region
            }
        self.s3_client.create_bucket(**create_args)
        logger.info("Created S3 bucket", extra={"bucket": bucket})
        return True


def get_storage_client() -> StorageClient:
    """
    Get the singleton StorageClient instance.

    The boto3 client is thread-safe, so one instance is shared across requests
    and the worker threads that run blocking S3 calls.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient()
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]
