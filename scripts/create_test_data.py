#!/usr/bin/env python3
"""
Test Data Generation Script for Tubely.

Seeds draft video records for a handful of generated users and prints a
bearer token for each user, so the upload endpoints can be exercised locally:

    curl -H "Authorization: Bearer <token>" \\
         -F "video=@clip.mp4;type=video/mp4" \\
         http://localhost:8091/api/v1/videos/<video_id>/video

Usage:
    python scripts/create_test_data.py [options]

Options:
    --users INT     Number of users to create (default: 3)
    --videos INT    Draft videos per user (default: 2)
    --clean         Delete every record in the videos collection first
    --seed INT      Random seed for reproducible titles
"""

import argparse
import asyncio
import sys
from uuid import uuid4

from faker import Faker
from pymongo.errors import PyMongoError

from tubely.config import get_settings
from tubely.core.auth import create_access_token
from tubely.core.database import DatabaseClient
from tubely.models.video import Video


async def seed(users: int, videos_per_user: int, clean: bool, fake: Faker) -> int:
    settings = get_settings()
    client = DatabaseClient(settings)

    if not await client.connect():
        print("\nFailed to connect to MongoDB. Exiting.")
        return 1

    try:
        collection = client.get_videos_collection()
        if clean:
            result = await collection.delete_many({})
            print(f"Deleted {result.deleted_count} existing video records")

        print(f"\n{'user_id':<38} {'video_id':<38} title")
        print("-" * 100)
        tokens = {}
        for _ in range(users):
            user_id = str(uuid4())
            tokens[user_id] = create_access_token(user_id, settings)
            documents = []
            for _ in range(videos_per_user):
                video = Video(
                    user_id=user_id,
                    title=fake.sentence(nb_words=4).rstrip("."),
                    description=fake.paragraph(nb_sentences=2),
                )
                documents.append(video.to_document())
                print(f"{user_id:<38} {video.id:<38} {video.title}")
            await collection.insert_many(documents)

        print("\nBearer tokens:")
        for user_id, token in tokens.items():
            print(f"  {user_id}: {token}")
        return 0
    except PyMongoError as e:
        print(f"\nFailed to seed video records: {e}")
        return 1
    finally:
        await client.close()


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed draft video records for Tubely")
    parser.add_argument("--users", type=int, default=3, help="Number of users (default: 3)")
    parser.add_argument("--videos", type=int, default=2, help="Videos per user (default: 2)")
    parser.add_argument("--clean", action="store_true", help="Delete existing video records")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    return parser.parse_args()


def main() -> int:
    args = parse_arguments()

    fake = Faker()
    if args.seed is not None:
        Faker.seed(args.seed)

    try:
        return asyncio.run(seed(args.users, args.videos, args.clean, fake))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
