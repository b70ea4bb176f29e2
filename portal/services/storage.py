"""
File object store for submission uploads.

The portal only needs one capability from its store: keep the bytes under a
key and hand back a URL anyone holding it can fetch. ``LocalFileStorage``
writes below a directory that ``portal.main`` serves as static files; other
backends only have to satisfy ``FileStorage``.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from portal.core.errors import ConflictOrStorageFailure

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    def save(self, key: str, content: bytes) -> str:
        """Store ``content`` under ``key`` and return its public URL.

        Raises:
            ConflictOrStorageFailure: If the bytes could not be written.
        """
        ...


def submission_key(student_id: int, assignment_id: int, file_name: str, uploaded_at: datetime) -> str:
    """Object key ``{student}/{assignment}/{upload ms}.{ext}``.

    The timestamp keeps every re-upload at a distinct key, so replacing a
    submission never overwrites the previous object.
    """
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
    stamp = int(uploaded_at.timestamp() * 1000)
    return f"{student_id}/{assignment_id}/{stamp}.{ext}"


class LocalFileStorage:
    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ConflictOrStorageFailure("Invalid storage key")
        return path

    def save(self, key: str, content: bytes) -> str:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            logger.error("failed to store %s: %s", key, exc)
            raise ConflictOrStorageFailure("Failed to upload file. Please try again.") from exc

        logger.info("stored %s (%d bytes)", key, len(content))
        return f"{self.base_url}/{key}"
