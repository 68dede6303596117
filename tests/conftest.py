from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. In-memory storage doubles shared by the crawler and engine tests.
3. Sample configuration and tree fixtures.
"""

import os
import sys
import threading
from typing import Any, Dict, List, Optional

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from assetmanifest.domain.errors import PathNotFoundError  # noqa: E402
from assetmanifest.domain.tree_models import Annotation, FileEntry, StorageItem, TreeNode  # noqa: E402
from assetmanifest.infra.storage.base import MANIFEST_CONTENT_TYPE, StorageLister, StoragePublisher  # noqa: E402


# -----------------------------------------------------------------------------
# Storage Doubles
# -----------------------------------------------------------------------------
class FakeLister(StorageLister):
    """
    In-memory backend keyed by directory path.

    `layout` maps a backend path to its listing; a value may be an
    exception instance, which is raised when that path is listed.
    """

    def __init__(self, layout: Dict[str, Any]) -> None:
        self.layout = layout
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def list(self, path: str) -> List[StorageItem]:
        with self._lock:
            self.calls.append(path)
        entry = self.layout.get(path)
        if entry is None:
            raise PathNotFoundError(path)
        if isinstance(entry, Exception):
            raise entry
        return list(entry)


class FakePublisher(StoragePublisher):
    """
    In-memory blob store recording every put.

    `tamper` rewrites the stored bytes so read-back verification can be
    exercised against a backend that mangles uploads.
    """

    def __init__(self, blobs: Optional[Dict[str, bytes]] = None, tamper=None, fetch_error=None) -> None:
        self.blobs: Dict[str, bytes] = dict(blobs or {})
        self.puts: List[str] = []
        self.tamper = tamper
        self.fetch_error = fetch_error

    def put(self, path: str, data: bytes, content_type: str = MANIFEST_CONTENT_TYPE) -> None:
        self.puts.append(path)
        self.blobs[path] = self.tamper(data) if self.tamper else data

    def fetch(self, path: str) -> Optional[bytes]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.blobs.get(path)


def d(name: str) -> StorageItem:
    return StorageItem(name=name, is_directory=True)


def f(name: str) -> StorageItem:
    return StorageItem(name=name, is_directory=False)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def sample_layout() -> Dict[str, Any]:
    """
    Backend layout used across pipeline tests.

    Structure:
        Root/
          Beta/y.mp3
          Alpha/x.png
    """
    return {
        "Root": [d("Beta"), d("Alpha")],
        "Root/Alpha": [f("x.png")],
        "Root/Beta": [f("y.mp3")],
    }


@pytest.fixture
def fake_lister(sample_layout: Dict[str, Any]) -> FakeLister:
    return FakeLister(sample_layout)


@pytest.fixture
def fake_publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def pinned_tree() -> TreeNode:
    """A previously published tree: Alpha pinned at (1, 2, 3), version 7."""
    return TreeNode(
        children=[
            TreeNode(name="Alpha", annotation=Annotation(1, 2, 3), files=[FileEntry("x.png")]),
            TreeNode(name="Beta", files=[FileEntry("y.mp3")]),
        ],
        version=7,
    )


@pytest.fixture
def mock_config_dict() -> Dict[str, Any]:
    """
    Return a valid, complete raw configuration dictionary for testing.

    Returns:
        Dict[str, Any]: A sample configuration dictionary.
    """
    return {
        # Backend
        "backend": "bunny",
        "storage_zone": "media-zone",
        "storage_api_key": "secret",
        "storage_endpoint": "https://storage.bunnycdn.com",
        "local_backend_dir": "",

        # Crawl
        "root_path": "Root",
        "concurrency_limit": 4,
        "max_depth": 64,
        "asset_extensions": None,

        # Manifest
        "manifest_name": "manifest.json",
        "previous_manifest_source": "remote",
        "content_delivery_base": "https://media.b-cdn.net",
        "embed_file_urls": False,
        "local_output_path": None,

        # CDN
        "purge_cdn": False,
        "cdn_api_key": "",
    }

