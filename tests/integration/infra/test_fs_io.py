from __future__ import annotations

"""
Integration tests for FileSystem Infrastructure and the Local Backend.

Validates path normalization, atomic writes and the local directory
implementation of the storage interfaces.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from assetmanifest.domain.errors import ListingError, PathNotFoundError
from assetmanifest.domain.tree_models import StorageItem
from assetmanifest.infra.fs import normalize_path, read_bytes_if_exists, write_bytes_atomic
from assetmanifest.infra.storage.local_backend import LocalDirectoryLister, LocalDirectoryPublisher

# -----------------------------------------------------------------------------
# PATH RESOLUTION TESTS
# -----------------------------------------------------------------------------

def test_normalize_path_expansion() -> None:
    """TC-01: Verify expansion of environment variables and user shortcuts."""
    with patch.dict(os.environ, {"TEST_VAR": "my_folder"}):
        path = normalize_path("$TEST_VAR/sub", fallback=".")
        assert path.lower().endswith(os.path.join("my_folder", "sub").lower())

        with patch("os.path.expanduser", side_effect=lambda p: p.replace("~", "/home/user")):
            path = normalize_path("~/code", fallback=".")
            assert "code" in Path(path).parts


def test_normalize_path_fallback() -> None:
    assert normalize_path("   ", fallback="/srv") == os.path.abspath("/srv")

# -----------------------------------------------------------------------------
# ATOMIC WRITE TESTS
# -----------------------------------------------------------------------------

def test_write_bytes_atomic_creates_parents(tmp_path: Path) -> None:
    """TC-02: Parent folders are created and no staging file is left behind."""
    target = tmp_path / "a" / "b" / "manifest.json"

    written = write_bytes_atomic(str(target), b"payload")

    assert written == str(target)
    assert target.read_bytes() == b"payload"
    assert os.listdir(target.parent) == ["manifest.json"]


def test_write_bytes_atomic_replaces_content(tmp_path: Path) -> None:
    target = tmp_path / "manifest.json"
    target.write_bytes(b"old")

    write_bytes_atomic(str(target), b"new")

    assert target.read_bytes() == b"new"


def test_failed_write_keeps_previous_file(tmp_path: Path) -> None:
    target = tmp_path / "manifest.json"
    target.write_bytes(b"old")

    with patch("os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            write_bytes_atomic(str(target), b"new")

    assert target.read_bytes() == b"old"
    assert os.listdir(tmp_path) == ["manifest.json"]


def test_read_bytes_if_exists(tmp_path: Path) -> None:
    assert read_bytes_if_exists(str(tmp_path / "missing")) is None

# -----------------------------------------------------------------------------
# LOCAL BACKEND TESTS
# -----------------------------------------------------------------------------

def test_local_lister(tmp_path: Path) -> None:
    """TC-03: Directories and files are reported with their kind."""
    (tmp_path / "Root" / "Alpha").mkdir(parents=True)
    (tmp_path / "Root" / "x.png").write_bytes(b"")

    items = LocalDirectoryLister(str(tmp_path)).list("Root")

    assert sorted(items, key=lambda i: i.name) == [StorageItem("Alpha", True), StorageItem("x.png", False)]


def test_local_lister_missing_path(tmp_path: Path) -> None:
    with pytest.raises(PathNotFoundError):
        LocalDirectoryLister(str(tmp_path)).list("Nope")


def test_local_backend_refuses_escaping_paths(tmp_path: Path) -> None:
    with pytest.raises(ListingError):
        LocalDirectoryLister(str(tmp_path)).list("Root/../../etc")


def test_local_publisher_round_trip(tmp_path: Path) -> None:
    publisher = LocalDirectoryPublisher(str(tmp_path))

    assert publisher.fetch("Root/manifest.json") is None
    publisher.put("Root/manifest.json", b'{"version": 0}')

    assert publisher.fetch("Root/manifest.json") == b'{"version": 0}'
    assert (tmp_path / "Root" / "manifest.json").is_file()
