#!/usr/bin/env python3
"""
Script to find (and optionally delete) orphaned videos in object storage.

An object is orphaned when an upload succeeded but saving the video record
failed, so no record references its key.

Usage:
    # Dry run: list orphaned keys
    docker exec tubely-api python sweep_orphaned_videos.py

    # Delete them (asks for confirmation)
    docker exec -it tubely-api python sweep_orphaned_videos.py --delete

    # Non-interactive mode (skip confirmations):
    docker exec tubely-api python sweep_orphaned_videos.py --delete --yes
"""
import argparse
import asyncio
import sys
from datetime import timedelta

from tubely.config import settings
from tubely.database import AsyncSessionLocal, engine
from tubely.repositories.video_repository import VideoRepository
from tubely.storage.reconcile import find_orphaned_keys
from tubely.storage.s3_client import S3Client


async def load_referenced_keys(bucket: str) -> set:
    """Load every key referenced by a video record in the bucket."""
    try:
        async with AsyncSessionLocal() as db:
            return await VideoRepository(db).list_video_keys(bucket)
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description='Find orphaned videos in object storage')
    parser.add_argument('--delete', action='store_true',
                        help='Delete the orphaned objects')
    parser.add_argument('--yes', '-y', action='store_true',
                        help='Skip confirmation prompts (non-interactive mode)')
    parser.add_argument('--bucket', default=settings.s3_bucket,
                        help='Bucket to sweep (default: S3_BUCKET)')
    parser.add_argument('--min-age-minutes', type=int, default=60,
                        help='Skip objects newer than this; their ingest may still be running (default: 60)')
    args = parser.parse_args()

    store = S3Client(bucket=args.bucket)
    if not store.is_configured:
        print("ERROR: Object storage is not configured (see S3_* settings)")
        sys.exit(1)

    print("=" * 50)
    print("ORPHANED VIDEO SWEEP")
    print("=" * 50)
    print(f"Bucket: {args.bucket}")
    print()

    # List before loading references: a record saved after the listing is still seen
    objects = list(store.iter_objects(args.bucket))
    print(f"Bucket holds {len(objects)} objects")

    referenced = asyncio.run(load_referenced_keys(args.bucket))
    print(f"Video records reference {len(referenced)} keys")

    orphans = find_orphaned_keys(
        objects,
        referenced,
        min_age=timedelta(minutes=args.min_age_minutes)
    )
    if not orphans:
        print("\nNo orphaned videos found.")
        return

    print(f"\nOrphaned videos ({len(orphans)}):")
    for key in orphans[:10]:
        print(f"  - {key}")
    if len(orphans) > 10:
        print(f"  ... and {len(orphans) - 10} more")

    if not args.delete:
        print("\nDry run. Pass --delete to remove them.")
        return

    if not args.yes:
        print()
        confirm = input(f"Confirm deletion of {len(orphans)} objects? (yes/no): ")
        if confirm.lower() != 'yes':
            print("Aborted.")
            sys.exit(0)

    deleted, failed = store.delete_objects_batch(args.bucket, orphans)

    print(f"\n{'='*50}")
    print("SUMMARY:")
    print(f"  Orphaned: {len(orphans)}")
    print(f"  Deleted: {deleted}")
    print(f"  Failed: {failed}")
    print(f"{'='*50}")


if __name__ == '__main__':
    main()
