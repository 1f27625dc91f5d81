"""Local filesystem file store rooted at the host's files directory."""

from __future__ import annotations

import logging
from pathlib import Path

from jatsimage.core.errors import StorageError
from jatsimage.core.interfaces import FileStorePort

logger = logging.getLogger(__name__)


class LocalFileStore(FileStorePort):
    """Reads stored files by path relative to a root directory.

    Paths that resolve outside the root are rejected.
    """

    def __init__(self, root: str) -> None:
        self.root = Path(root).expanduser().resolve()

    def resolve(self, path: str) -> Path:
        """Resolve a storage path to an absolute path under the root.

        Raises:
            StorageError: If the path escapes the root directory.
        """
        full_path = (self.root / path.lstrip("/")).resolve()
        if not full_path.is_relative_to(self.root):
            raise StorageError(f"Path escapes files directory: {path}")
        return full_path

    def read(self, path: str) -> bytes | None:
        """Read a stored file.

        Returns None if the file is missing, unreadable, or outside the root.
        """
        try:
            full_path = self.resolve(path)
        except StorageError as e:
            logger.warning("Refusing to read stored file: %s", e)
            return None

        try:
            return full_path.read_bytes()
        except FileNotFoundError:
            logger.warning("Stored file not found: %s", path)
        except OSError as e:
            logger.warning("Cannot read stored file %s: %s", path, e)
        return None
