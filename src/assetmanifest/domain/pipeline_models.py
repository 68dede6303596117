from __future__ import annotations

"""
Pipeline Domain Data Models.

Defines the run state machine and the result object communicated from
the pipeline engine to the interface layer (CLI).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

# -----------------------------------------------------------------------------
# RUN STATE MACHINE
# -----------------------------------------------------------------------------

class RunState(str, Enum):
    """Linear lifecycle of a publish run."""
    IDLE = "idle"
    CRAWLING = "crawling"
    CANONICALIZING = "canonicalizing"
    MERGING = "merging"
    SERIALIZING = "serializing"
    PUBLISHING = "publishing"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"


# Allowed forward transitions. FAILED is reachable from any non-terminal state.
RUN_TRANSITIONS: Dict[RunState, RunState] = {
    RunState.IDLE: RunState.CRAWLING,
    RunState.CRAWLING: RunState.CANONICALIZING,
    RunState.CANONICALIZING: RunState.MERGING,
    RunState.MERGING: RunState.SERIALIZING,
    RunState.SERIALIZING: RunState.PUBLISHING,
    RunState.PUBLISHING: RunState.VERIFYING,
    RunState.VERIFYING: RunState.DONE,
}

TERMINAL_STATES = (RunState.DONE, RunState.FAILED)

# -----------------------------------------------------------------------------
# CORE DATA MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class MergeReport:
    """
    Outcome of carrying annotations from the previous manifest.

    Attributes:
        previous_present: Whether a usable previous manifest was merged.
        carried: Annotations copied onto the fresh tree.
        dropped: Annotations whose node no longer exists.
        version: Root version of the merged tree.
    """
    previous_present: bool
    carried: int = 0
    dropped: int = 0
    version: int = 0


@dataclass(frozen=True)
class PipelineResult:
    """
    Unified result object of a complete publish run.

    Attributes:
        ok: Flag indicating success or failure.
        error: Descriptive message in case of failure.
        error_type: Exception class name in case of failure.
        state: Terminal state reached (DONE or FAILED).
        failed_stage: State the run was in when it failed.
        root_path: Backend root that was crawled.
        manifest_path: Backend path of the manifest.
        fingerprint: Content fingerprint of the serialized manifest.
        version: Root version carried by the manifest.
        directories: Number of directories catalogued.
        files: Number of assets catalogued.
        annotations_carried: Pins copied from the previous manifest.
        annotations_dropped: Pins discarded because their node disappeared.
        dry_run: True when nothing was published.
        cdn_purged: True when the CDN purge call succeeded.
        local_output_path: Local copy written during the run, if any.
        summary: Technical execution summary.
    """
    ok: bool
    error: str
    state: RunState

    root_path: str
    manifest_path: str

    error_type: str = ""
    failed_stage: Optional[RunState] = None

    fingerprint: str = ""
    version: int = 0
    directories: int = 0
    files: int = 0
    annotations_carried: int = 0
    annotations_dropped: int = 0

    dry_run: bool = False
    cdn_purged: bool = False
    local_output_path: str = ""

    summary: Dict[str, Any] = field(default_factory=dict)

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def create_error_result(
        error: BaseException,
        failed_stage: RunState,
        root_path: str,
        manifest_path: str,
        summary_extra: Optional[Dict[str, Any]] = None
) -> PipelineResult:
    """
    Create a failed pipeline result instance.

    Args:
        error: The exception that terminated the run.
        failed_stage: State in which the failure happened.
        root_path: Crawled backend root.
        manifest_path: Target manifest path.
        summary_extra: Additional metadata for the summary payload.

    Returns:
        PipelineResult: An immutable error result object.
    """
    return PipelineResult(
        ok=False,
        error=str(error),
        error_type=type(error).__name__,
        state=RunState.FAILED,
        failed_stage=failed_stage,
        root_path=root_path,
        manifest_path=manifest_path,
        summary=summary_extra or {},
    )


def create_success_result(
        root_path: str,
        manifest_path: str,
        fingerprint: str,
        directories: int,
        files: int,
        merge_report: MergeReport,
        dry_run: bool = False,
        cdn_purged: bool = False,
        local_output_path: str = "",
        summary_extra: Optional[Dict[str, Any]] = None
) -> PipelineResult:
    """
    Create a successful pipeline result instance.

    Args:
        root_path: Crawled backend root.
        manifest_path: Target manifest path.
        fingerprint: Fingerprint of the published bytes.
        directories: Directory count of the final tree.
        files: File count of the final tree.
        merge_report: Annotation merge metrics.
        dry_run: Whether publishing was skipped.
        cdn_purged: Whether the CDN purge succeeded.
        local_output_path: Local copy of the manifest, if written.
        summary_extra: Final execution metrics.

    Returns:
        PipelineResult: An immutable success result object.
    """
    return PipelineResult(
        ok=True,
        error="",
        state=RunState.DONE,
        root_path=root_path,
        manifest_path=manifest_path,
        fingerprint=fingerprint,
        version=merge_report.version,
        directories=directories,
        files=files,
        annotations_carried=merge_report.carried,
        annotations_dropped=merge_report.dropped,
        dry_run=dry_run,
        cdn_purged=cdn_purged,
        local_output_path=local_output_path,
        summary=summary_extra or {},
    )
