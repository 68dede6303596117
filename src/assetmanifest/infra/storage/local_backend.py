from __future__ import annotations

"""
Local Directory Backend.

Serves a plain directory tree through the storage interfaces, so a
catalog can be generated offline (a mounted copy of the storage zone,
a staging folder) with exactly the same pipeline as the remote one.
"""

import logging
import os
from typing import List, Optional

from assetmanifest.domain.errors import ListingError, PathNotFoundError, PublishError
from assetmanifest.domain.tree_models import StorageItem
from assetmanifest.infra.fs import read_bytes_if_exists, write_bytes_atomic
from assetmanifest.infra.storage.base import MANIFEST_CONTENT_TYPE, StorageLister, StoragePublisher

logger = logging.getLogger(__name__)


class LocalDirectoryLister(StorageLister):
    """
    Lists a directory below a local base folder.
    """

    def __init__(self, base_dir: str) -> None:
        self.base_dir = os.path.abspath(base_dir)

    def list(self, path: str) -> List[StorageItem]:
        target = _resolve(self.base_dir, path)
        if not os.path.isdir(target):
            raise PathNotFoundError(path)

        items: List[StorageItem] = []
        try:
            with os.scandir(target) as it:
                for entry in it:
                    items.append(StorageItem(name=entry.name, is_directory=entry.is_dir()))
        except OSError as e:
            raise ListingError(f"Cannot list '{target}': {e}") from e

        logger.debug(f"Listed {len(items)} entries in '{target}'.")
        return items


class LocalDirectoryPublisher(StoragePublisher):
    """
    Writes blobs below a local base folder with atomic replacement.
    """

    def __init__(self, base_dir: str) -> None:
        self.base_dir = os.path.abspath(base_dir)

    def put(self, path: str, data: bytes, content_type: str = MANIFEST_CONTENT_TYPE) -> None:
        target = _resolve(self.base_dir, path)
        try:
            write_bytes_atomic(target, data)
        except OSError as e:
            raise PublishError(f"Cannot write '{target}': {e}") from e
        logger.debug(f"Stored {len(data)} bytes ({content_type}) at '{target}'.")

    def fetch(self, path: str) -> Optional[bytes]:
        target = _resolve(self.base_dir, path)
        try:
            return read_bytes_if_exists(target)
        except OSError as e:
            raise ListingError(f"Cannot read '{target}': {e}") from e


def _resolve(base_dir: str, path: str) -> str:
    """Map a backend path onto the base folder, refusing escapes."""
    parts = [p for p in (path or "").split("/") if p and p != "."]
    if ".." in parts:
        raise ListingError(f"Backend path escapes the base directory: '{path}'")
    return os.path.join(base_dir, *parts)
