from __future__ import annotations

"""
Base Definitions for Storage Backends.

Provides the abstract listing and publishing interfaces the pipeline
talks to. Concrete backends normalize their wire formats before
returning, so the crawler only ever sees StorageItem values.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from assetmanifest.domain.tree_models import StorageItem

MANIFEST_CONTENT_TYPE: str = "application/json"


class StorageLister(ABC):
    """
    Lists the direct children of a backend path.
    """

    @abstractmethod
    def list(self, path: str) -> List[StorageItem]:
        """
        Return the direct children of `path`.

        Args:
            path: Slash-separated backend path without leading slash.

        Returns:
            List[StorageItem]: Children in backend order.

        Raises:
            PathNotFoundError: The path does not exist.
            ListingError: Transport, auth or payload failure.
        """
        pass


class StoragePublisher(ABC):
    """
    Writes and reads back single blobs in the backend.
    """

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: str = MANIFEST_CONTENT_TYPE) -> None:
        """
        Store `data` at `path`, replacing any previous content.

        Raises:
            PublishError: The backend rejected the write.
        """
        pass

    @abstractmethod
    def fetch(self, path: str) -> Optional[bytes]:
        """
        Read the blob stored at `path`.

        Returns:
            Optional[bytes]: Content, or None when nothing is stored there.

        Raises:
            ListingError: Transport, auth or payload failure.
        """
        pass
