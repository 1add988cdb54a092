"""
Storage key generation.

Keys look like {category}/{id}.{ext} where id is 32 bytes from the OS
CSPRNG encoded as unpadded URL-safe base64 (43 characters).
"""
import base64
import posixpath
import secrets
from typing import Optional

# Number of random bytes behind every key
KEY_ENTROPY_BYTES = 32

# Fallback extension for media types without a single "/" separator
DEFAULT_EXTENSION = "bin"


class AssetKeyAllocator:
    """
    Allocates unguessable, collision-resistant object keys.

    Pure generation: no I/O, and the only failure mode is entropy
    exhaustion in the OS, which is not caught.
    """

    @staticmethod
    def get_extension(media_type: str) -> str:
        """
        Get file extension from a media type's subtype.

        "video/mp4" -> "mp4", "image/jpeg" -> "jpeg", "image" -> "bin"
        """
        parts = media_type.split("/")
        if len(parts) != 2 or not parts[1]:
            return DEFAULT_EXTENSION
        return parts[1]

    @staticmethod
    def generate_id() -> str:
        raw = secrets.token_bytes(KEY_ENTROPY_BYTES)
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @staticmethod
    def allocate(category: Optional[str], media_type: str) -> str:
        """
        Generate a unique object key.

        Args:
            category: Path prefix (aspect class for videos); None for a bare name
            media_type: MIME type for the extension

        Returns:
            Object key string
        """
        name = f"{AssetKeyAllocator.generate_id()}.{AssetKeyAllocator.get_extension(media_type)}"
        if not category:
            return name
        return posixpath.join(category, name)
