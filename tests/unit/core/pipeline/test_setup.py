from __future__ import annotations

"""
Unit tests for the Pipeline Setup stage.

Validates backend resolution and every source of the previous manifest
(remote, disabled, local file), including the degrade and fail paths.
"""

from dataclasses import replace
from pathlib import Path

import pytest

from conftest import FakePublisher

from assetmanifest.core.pipeline.setup import create_backend, load_previous_manifest
from assetmanifest.core.services.serializer import serialize
from assetmanifest.domain.config import PipelineConfig
from assetmanifest.domain.errors import ListingError
from assetmanifest.domain.tree_models import TreeNode
from assetmanifest.infra.network import BunnyStorageLister, BunnyStoragePublisher
from assetmanifest.infra.storage.local_backend import LocalDirectoryLister, LocalDirectoryPublisher


@pytest.fixture
def cfg() -> PipelineConfig:
    return PipelineConfig(root_path="Root", storage_zone="zone", storage_api_key="key")


def test_create_backend_bunny(cfg: PipelineConfig) -> None:
    lister, publisher = create_backend(cfg)
    assert isinstance(lister, BunnyStorageLister)
    assert isinstance(publisher, BunnyStoragePublisher)
    assert lister.zone == "zone"


def test_create_backend_local(cfg: PipelineConfig, tmp_path: Path) -> None:
    lister, publisher = create_backend(replace(cfg, backend="local", local_backend_dir=str(tmp_path)))
    assert isinstance(lister, LocalDirectoryLister)
    assert isinstance(publisher, LocalDirectoryPublisher)
    assert lister.base_dir == str(tmp_path)


def test_remote_previous_manifest(cfg: PipelineConfig, pinned_tree: TreeNode) -> None:
    publisher = FakePublisher({"Root/manifest.json": serialize(pinned_tree)})

    previous = load_previous_manifest(cfg, publisher)

    assert previous == pinned_tree


def test_missing_remote_manifest_means_first_run(cfg: PipelineConfig) -> None:
    assert load_previous_manifest(cfg, FakePublisher()) is None


def test_malformed_remote_manifest_is_ignored(cfg: PipelineConfig) -> None:
    publisher = FakePublisher({"Root/manifest.json": b"<html>oops</html>"})
    assert load_previous_manifest(cfg, publisher) is None


def test_unreadable_remote_manifest_is_fatal(cfg: PipelineConfig) -> None:
    publisher = FakePublisher(fetch_error=ListingError("HTTP 500"))
    with pytest.raises(ListingError):
        load_previous_manifest(cfg, publisher)


def test_previous_manifest_disabled(cfg: PipelineConfig, pinned_tree: TreeNode) -> None:
    publisher = FakePublisher({"Root/manifest.json": serialize(pinned_tree)})
    assert load_previous_manifest(replace(cfg, previous_manifest_source="none"), publisher) is None


def test_local_previous_manifest(cfg: PipelineConfig, pinned_tree: TreeNode, tmp_path: Path) -> None:
    source = tmp_path / "previous.json"
    source.write_bytes(serialize(pinned_tree))

    previous = load_previous_manifest(replace(cfg, previous_manifest_source=str(source)), FakePublisher())
    missing = load_previous_manifest(
        replace(cfg, previous_manifest_source=str(tmp_path / "nope.json")), FakePublisher()
    )

    assert previous.version == 7
    assert missing is None
