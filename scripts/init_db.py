#!/usr/bin/env python3
"""
Backing Store Initialization Script for Tubely.

Creates the MongoDB indexes used by the video queries and the S3/MinIO bucket
that processed videos are written to. Safe to run repeatedly.

Usage:
    python scripts/init_db.py [options]

Options:
    --drop          Drop the videos collection first (WARNING: destructive)
    --skip-bucket   Do not touch object storage
    --verbose       Display detailed operation logs

Configuration is read the same way as the API server (environment variables
or a .env file): MONGODB_URI, MONGODB_DB_NAME, S3_ENDPOINT_URL,
S3_BUCKET_NAME, S3_REGION, ...
"""

import argparse
import asyncio
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError
from pymongo.errors import PyMongoError

from tubely.config import get_settings
from tubely.core.database import VIDEOS_COLLECTION, DatabaseClient
from tubely.core.storage import StorageClient
from tubely.utils.logger import setup_logging


logger = logging.getLogger("tubely.scripts.init_db")


async def init_database(drop: bool) -> bool:
    """Connect to MongoDB, optionally drop the videos collection, create indexes."""
    settings = get_settings()
    client = DatabaseClient(settings)

    if not await client.connect():
        return False

    try:
        if drop:
            await client.get_database().drop_collection(VIDEOS_COLLECTION)
            logger.warning("Dropped collection", extra={"collection": VIDEOS_COLLECTION})

        await client.create_indexes()
        return True
    except PyMongoError:
        logger.exception("Failed to initialize MongoDB")
        return False
    finally:
        await client.close()


def init_bucket() -> bool:
    """Create the configured bucket if it is missing."""
    storage = StorageClient(get_settings())
    try:
        created = storage.ensure_bucket()
    except (ClientError, BotoCoreError):
        logger.exception("Failed to initialize bucket", extra={"bucket": storage.bucket_name})
        return False

    logger.info(
        "Bucket created" if created else "Bucket already exists",
        extra={"bucket": storage.bucket_name},
    )
    return True


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Initialize MongoDB indexes and the video bucket for Tubely",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/init_db.py                  # Indexes and bucket
  python scripts/init_db.py --skip-bucket    # MongoDB only
  python scripts/init_db.py --drop           # Drop videos first (DESTRUCTIVE)
        """,
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the videos collection before creating indexes (destructive)",
    )
    parser.add_argument("--skip-bucket", action="store_true", help="Skip bucket creation")
    parser.add_argument("--verbose", "-v", action="store_true", help="Display detailed logs")
    return parser.parse_args()


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_arguments()
    setup_logging(log_level="DEBUG" if args.verbose else "INFO", json_logs=False)

    if args.drop:
        confirmation = input(
            f"\nWARNING: This will DELETE ALL records in '{VIDEOS_COLLECTION}'.\n"
            "Type 'yes' to confirm: "
        )
        if confirmation.lower() != "yes":
            print("Operation cancelled.")
            return 0

    try:
        success = asyncio.run(init_database(args.drop))
        if not args.skip_bucket:
            success = init_bucket() and success
    except KeyboardInterrupt:
        print("\n\nInitialization interrupted by user.")
        return 130

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
