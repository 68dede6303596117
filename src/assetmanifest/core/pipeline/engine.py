from __future__ import annotations

"""
Core orchestration pipeline.

This module coordinates one publish run:
1. Crawls the backend into a fresh tree.
2. Canonicalizes sibling order.
3. Merges annotations and version from the previous manifest.
4. Serializes and fingerprints the final tree.
5. Publishes the bytes to the backend.
6. Reads them back and verifies the fingerprint.

Any failure stops the run in place. Nothing is written to the backend
before the PUBLISHING state, so a failed crawl or merge leaves the last
published manifest untouched.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from assetmanifest.core.pipeline.setup import load_previous_manifest
from assetmanifest.core.services.canonicalizer import canonicalize
from assetmanifest.core.services.crawler import crawl
from assetmanifest.core.services.merger import merge, summarize_merge
from assetmanifest.core.services.serializer import fingerprint, serialize, verify
from assetmanifest.domain.config import PipelineConfig
from assetmanifest.domain.errors import ManifestError, PublishError
from assetmanifest.domain.pipeline_models import (
    RUN_TRANSITIONS,
    TERMINAL_STATES,
    PipelineResult,
    RunState,
    create_error_result,
    create_success_result,
)
from assetmanifest.domain.tree_models import count_directories, count_files
from assetmanifest.infra.fs import write_bytes_atomic
from assetmanifest.infra.network import purge_cdn_url
from assetmanifest.infra.storage.base import MANIFEST_CONTENT_TYPE, StorageLister, StoragePublisher

logger = logging.getLogger(__name__)

PurgeFunc = Callable[[str, str], Tuple[bool, str]]


class RunTracker:
    """
    Enforces the linear run state machine and times every stage.
    """

    def __init__(self) -> None:
        self.state = RunState.IDLE
        self.durations: Dict[str, float] = {}
        self._entered = time.perf_counter()

    def advance(self, next_state: RunState) -> None:
        """Move to the next state; states are never re-entered."""
        expected = RUN_TRANSITIONS.get(self.state)
        if next_state != expected:
            raise RuntimeError(f"Illegal run transition {self.state.value} -> {next_state.value}")
        self._enter(next_state)

    def finish_early(self) -> None:
        """Jump to DONE after serialization (dry runs)."""
        if self.state != RunState.SERIALIZING:
            raise RuntimeError(f"Cannot finish a run early from {self.state.value}")
        self._enter(RunState.DONE)

    def fail(self, error: BaseException) -> RunState:
        """Enter FAILED and return the state the failure happened in."""
        failed_stage = self.state
        if failed_stage in TERMINAL_STATES:
            raise RuntimeError(f"Run already terminated in state {failed_stage.value}")
        self._enter(RunState.FAILED)
        logger.error(f"Run failed during {failed_stage.value}: {type(error).__name__}: {error}")
        return failed_stage

    def _enter(self, state: RunState) -> None:
        now = time.perf_counter()
        if self.state != RunState.IDLE:
            self.durations[self.state.value] = round(now - self._entered, 4)
        self._entered = now
        logger.info(f"Run state: {self.state.value} -> {state.value}")
        self.state = state


def run_pipeline(
        cfg: PipelineConfig,
        *,
        lister: StorageLister,
        publisher: StoragePublisher,
        purge: Optional[PurgeFunc] = None,
        dry_run: bool = False,
) -> PipelineResult:
    """
    Execute a full crawl, build, merge, publish and verify cycle.

    Args:
        cfg: Validated run configuration.
        lister: Backend listing collaborator.
        publisher: Backend write/read-back collaborator.
        purge: CDN purge function; defaults to the Bunny purge API.
        dry_run: Stop after serialization without publishing.

    Returns:
        PipelineResult: Terminal state, metrics and fingerprint of the run.
    """
    tracker = RunTracker()
    summary: Dict[str, Any] = {
        "backend": cfg.backend,
        "previous_manifest_source": cfg.previous_manifest_source,
        "dry_run": dry_run,
    }
    logger.info(f"Publish run started for '/{cfg.root_path}' -> '/{cfg.manifest_path}'")

    try:
        # 1) Crawl
        tracker.advance(RunState.CRAWLING)
        tree = crawl(
            lister,
            cfg.root_path,
            content_delivery_base=cfg.content_delivery_base,
            embed_file_urls=cfg.embed_file_urls,
            asset_extensions=cfg.asset_extensions,
            max_depth=cfg.max_depth,
            concurrency_limit=cfg.concurrency_limit,
            exclude_paths=[cfg.manifest_path],
        )

        # 2) Canonical order
        tracker.advance(RunState.CANONICALIZING)
        canonicalize(tree)

        # 3) Annotation merge
        tracker.advance(RunState.MERGING)
        previous = load_previous_manifest(cfg, publisher)
        merged = merge(previous, tree)
        report = summarize_merge(previous, merged)
        summary["previous_present"] = report.previous_present

        # 4) Serialization
        tracker.advance(RunState.SERIALIZING)
        data = serialize(merged)
        digest = fingerprint(data)
        summary["bytes"] = len(data)
        logger.info(f"Manifest serialized: {len(data)} bytes, fingerprint {digest[:12]}")

        local_copy = ""
        if cfg.local_output_path:
            local_copy = _write_local_copy(cfg.local_output_path, data)

        directories = count_directories(merged)
        files = count_files(merged)

        if dry_run:
            tracker.finish_early()
            logger.info("Dry run: manifest not published.")
            summary["durations"] = tracker.durations
            return create_success_result(
                cfg.root_path, cfg.manifest_path, digest, directories, files, report,
                dry_run=True, local_output_path=local_copy, summary_extra=summary,
            )

        # 5) Publish
        tracker.advance(RunState.PUBLISHING)
        publisher.put(cfg.manifest_path, data, MANIFEST_CONTENT_TYPE)

        # 6) Verify
        tracker.advance(RunState.VERIFYING)
        remote = publisher.fetch(cfg.manifest_path)
        verify(data, remote)

        cdn_purged = _purge_if_configured(cfg, purge or purge_cdn_url, summary)

        tracker.advance(RunState.DONE)

    except ManifestError as e:
        failed_stage = tracker.fail(e)
        summary["durations"] = tracker.durations
        return create_error_result(e, failed_stage, cfg.root_path, cfg.manifest_path, summary)

    summary["durations"] = tracker.durations
    logger.info(
        f"Publish run completed: {directories} directories, {files} files, "
        f"{report.carried} annotation(s) carried, version {report.version}."
    )
    return create_success_result(
        cfg.root_path, cfg.manifest_path, digest, directories, files, report,
        cdn_purged=cdn_purged, local_output_path=local_copy, summary_extra=summary,
    )


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _write_local_copy(path: str, data: bytes) -> str:
    try:
        written = write_bytes_atomic(path, data)
    except OSError as e:
        raise PublishError(f"Cannot write local manifest copy '{path}': {e}") from e
    logger.info(f"Local manifest copy written: {written}")
    return written


def _purge_if_configured(cfg: PipelineConfig, purge: PurgeFunc, summary: Dict[str, Any]) -> bool:
    """Purge the manifest CDN URL; a failed purge does not fail the run."""
    url = cfg.manifest_cdn_url
    if not cfg.purge_cdn or not url:
        return False
    ok, message = purge(url, cfg.cdn_api_key)
    summary["cdn_purge"] = {"url": url, "ok": ok, "message": message}
    if not ok:
        logger.warning(f"Manifest published and verified, but the CDN still serves a cached copy: {message}")
    return ok
