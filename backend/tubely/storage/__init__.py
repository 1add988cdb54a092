"""
Storage module for S3-compatible object storage and local assets.

Videos are uploaded by the backend after processing and read back through
short-lived presigned URLs; thumbnails live on local disk.
"""
from tubely.storage.s3_client import S3Client
from tubely.storage.keys import AssetKeyAllocator
from tubely.storage.assets import LocalAssetStore

__all__ = ["S3Client", "AssetKeyAllocator", "LocalAssetStore"]
