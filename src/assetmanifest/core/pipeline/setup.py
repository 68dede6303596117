from __future__ import annotations

"""
Pipeline Setup & Backend Preparation Stage.

Resolves the storage collaborators for a validated configuration and
loads the previously published manifest that the merge stage consumes.
"""

import logging
from typing import Optional, Tuple

from assetmanifest.core.services.serializer import parse_manifest
from assetmanifest.domain.config import BACKEND_LOCAL, PREVIOUS_NONE, PREVIOUS_REMOTE, PipelineConfig
from assetmanifest.domain.errors import ListingError, MergeStructureError
from assetmanifest.domain.tree_models import TreeNode
from assetmanifest.infra.fs import normalize_path, read_bytes_if_exists
from assetmanifest.infra.network import BunnyStorageLister, BunnyStoragePublisher
from assetmanifest.infra.storage.base import StorageLister, StoragePublisher
from assetmanifest.infra.storage.local_backend import LocalDirectoryLister, LocalDirectoryPublisher

logger = logging.getLogger(__name__)


# ==============================================================================
# BACKEND RESOLUTION
# ==============================================================================

def create_backend(cfg: PipelineConfig) -> Tuple[StorageLister, StoragePublisher]:
    """
    Instantiate the lister/publisher pair for the configured backend.

    Args:
        cfg: Validated run configuration.

    Returns:
        Tuple[StorageLister, StoragePublisher]: Backend collaborators.
    """
    if cfg.backend == BACKEND_LOCAL:
        base = normalize_path(cfg.local_backend_dir, ".")
        logger.debug(f"Using local directory backend: {base}")
        return LocalDirectoryLister(base), LocalDirectoryPublisher(base)

    logger.debug(f"Using Bunny storage backend: zone='{cfg.storage_zone}'")
    return (
        BunnyStorageLister(cfg.storage_zone, cfg.storage_api_key, cfg.storage_endpoint),
        BunnyStoragePublisher(cfg.storage_zone, cfg.storage_api_key, cfg.storage_endpoint),
    )


# ==============================================================================
# PREVIOUS MANIFEST
# ==============================================================================

def load_previous_manifest(cfg: PipelineConfig, publisher: StoragePublisher) -> Optional[TreeNode]:
    """
    Load the manifest whose annotations must survive this run.

    A missing manifest means first run. A malformed one is logged and
    treated as missing. A read failure is fatal: continuing would publish
    a manifest without the operator's annotations.

    Args:
        cfg: Validated run configuration.
        publisher: Backend used for "remote" sources.

    Returns:
        Optional[TreeNode]: Parsed previous manifest, or None.

    Raises:
        ListingError: The previous manifest could not be read.
    """
    source = cfg.previous_manifest_source
    if source.lower() == PREVIOUS_NONE:
        logger.info("Previous manifest disabled; annotations start empty.")
        return None

    if source.lower() == PREVIOUS_REMOTE:
        logger.info(f"Loading previous manifest from backend: '/{cfg.manifest_path}'")
        raw = publisher.fetch(cfg.manifest_path)
    else:
        local_path = normalize_path(source, source)
        logger.info(f"Loading previous manifest from file: {local_path}")
        try:
            raw = read_bytes_if_exists(local_path)
        except OSError as e:
            raise ListingError(f"Cannot read previous manifest '{local_path}': {e}") from e

    if raw is None:
        logger.info("No previous manifest found; treating this as the first run.")
        return None

    try:
        return parse_manifest(raw)
    except MergeStructureError as e:
        logger.warning(f"Previous manifest is malformed and will be ignored: {e}")
        return None
