"""
Local asset store for small files (thumbnails).

Created once at process start and handed to the routes through app.state;
there is no module-level instance.
"""
import logging
import os
from typing import Optional

from tubely.config import settings

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Writes assets under a root directory and serves them from /assets."""

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = root or settings.assets_root
        self.base_url = (base_url or settings.public_base_url).rstrip("/")

    def ensure_dir(self) -> None:
        """Create the assets root if it does not exist yet."""
        os.makedirs(self.root, mode=0o755, exist_ok=True)

    def disk_path(self, key: str) -> str:
        path = os.path.normpath(os.path.join(self.root, key))
        root = os.path.normpath(self.root)
        if os.path.commonpath([root, path]) != root:
            raise ValueError(f"Asset key escapes the assets root: {key}")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/assets/{key}"

    def save(self, key: str, data: bytes) -> str:
        """
        Write an asset and return its public URL.

        Raises:
            OSError: If the file cannot be written
        """
        path = self.disk_path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        logger.debug(f"Saved asset {key} ({len(data)} bytes)")
        return self.url_for(key)

    def delete(self, key: str) -> None:
        """Remove an asset; a missing file is not an error."""
        path = self.disk_path(key)
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to delete asset {key}: {e}")
