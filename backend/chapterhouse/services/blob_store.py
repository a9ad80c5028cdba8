"""Filesystem blob store for uploaded images.

Upload flows resolve a file to a stable URL before building a request
payload or direct update; the approval workflow only ever sees the URL.
"""
import logging
import mimetypes
import re
import uuid
from pathlib import Path
from typing import Optional

from chapterhouse.config import settings

logger = logging.getLogger(__name__)

URL_PREFIX = "/api/images/"
_KEY_PATTERN = re.compile(r"^[0-9a-f]{32}(\.[A-Za-z0-9]+)?$")


class LocalBlobStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def put(self, data: bytes, content_type: str) -> str:
        """Store ``data`` and return the URL it is served from."""
        extension = mimetypes.guess_extension(content_type or "") or ""
        key = f"{uuid.uuid4().hex}{extension}"
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / key).write_bytes(data)
        logger.info("Stored blob %s (%s, %d bytes)", key, content_type, len(data))
        return f"{URL_PREFIX}{key}"

    def get(self, key: str) -> Optional[tuple[bytes, str]]:
        """Return ``(bytes, content_type)`` or None when the key is unknown."""
        if not _KEY_PATTERN.match(key):
            return None
        path = self.root / key
        if not path.is_file():
            return None
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return path.read_bytes(), content_type


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(settings.BLOB_STORE_DIR)
