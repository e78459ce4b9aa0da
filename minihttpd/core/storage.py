"""
File storage backing the /files/ routes.

All names are resolved through the storage root containment check before
any file system access. Read failures are split into "missing" (404) and
genuine storage faults (500) so that permission or I/O problems are not
masked as absent files.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from ..features.security import PathOutsideRootError, resolve_within_root

logger = logging.getLogger("minihttpd.storage")

__all__ = [
    "FileStore",
    "StorageError",
    "FileMissingError",
    "StorageFaultError",
    "PathOutsideRootError",
]


class StorageError(Exception):
    """Base class for file store errors."""

    status_code = 500


class FileMissingError(StorageError):
    status_code = 404


class StorageFaultError(StorageError):
    """Permission denied, disk error or any other non-missing failure."""

    status_code = 500


class FileStore:
    """Reads and writes files under a single storage root.

    Attributes:
        root: Canonical storage root, or None when file routes are disabled
    """

    def __init__(self, root: Optional[Union[str, Path]]):
        self.root = Path(root).resolve() if root is not None else None

    def resolve(self, name: str) -> Path:
        """Map a file name to a path inside the root.

        Raises:
            FileMissingError: If no storage root is configured
            PathOutsideRootError: If the name escapes the root
        """
        if self.root is None:
            raise FileMissingError("No storage directory configured")
        return resolve_within_root(self.root, name)

    def read(self, name: str) -> bytes:
        """Return the full contents of ``name``.

        Raises:
            FileMissingError: The file does not exist
            StorageFaultError: The file exists but cannot be read
            PathOutsideRootError: The name escapes the root
        """
        path = self.resolve(name)
        try:
            return path.read_bytes()
        except (FileNotFoundError, NotADirectoryError) as e:
            raise FileMissingError(f"{name!r} not found") from e
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            raise StorageFaultError(f"Cannot read {name!r}: {e.strerror or e}") from e

    def write(self, name: str, data: bytes) -> None:
        """Create or truncate ``name`` and write ``data`` to it.

        Raises:
            StorageFaultError: The write failed
            PathOutsideRootError: The name escapes the root
        """
        path = self.resolve(name)
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            raise StorageFaultError(f"Cannot write {name!r}: {e.strerror or e}") from e

    async def read_async(self, name: str) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.read, name)

    async def write_async(self, name: str, data: bytes) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.write, name, data)
