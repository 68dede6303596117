from __future__ import annotations

"""
Unit tests for Domain Models.

Verifies:
1. Data integrity of PipelineResult factories (Success/Error).
2. Immutability of frozen dataclasses.
3. Tree traversal and counting helpers.
"""

import dataclasses

import pytest

from assetmanifest.domain.errors import (
    ListingError,
    ManifestError,
    PathNotFoundError,
    PublishDriftError,
)
from assetmanifest.domain.pipeline_models import (
    RUN_TRANSITIONS,
    MergeReport,
    PipelineResult,
    RunState,
    create_error_result,
    create_success_result,
)
from assetmanifest.domain.tree_models import (
    Annotation,
    FileEntry,
    TreeNode,
    count_annotations,
    count_directories,
    count_files,
    find_node,
    iter_nodes,
)


@pytest.fixture
def nested_tree() -> TreeNode:
    return TreeNode(
        children=[
            TreeNode(
                name="A",
                annotation=Annotation(0.5, 1, 2),
                children=[TreeNode(name="A1", files=[FileEntry("deep.png")])],
                files=[FileEntry("a.png"), FileEntry("b.png")],
            ),
            TreeNode(name="B"),
        ],
        files=[FileEntry("top.mp3")],
    )

# -----------------------------------------------------------------------------
# TREE MODELS
# -----------------------------------------------------------------------------

def test_iter_nodes_yields_paths_in_preorder(nested_tree: TreeNode) -> None:
    """The root is yielded first with an empty path, then depth-first."""
    paths = [path for path, _ in iter_nodes(nested_tree)]
    assert paths == [(), ("A",), ("A", "A1"), ("B",)]


def test_find_node_resolves_by_name(nested_tree: TreeNode) -> None:
    assert find_node(nested_tree, ("A", "A1")).files[0].name == "deep.png"
    assert find_node(nested_tree, ()) is nested_tree
    assert find_node(nested_tree, ("A", "missing")) is None
    assert find_node(nested_tree, ("missing", "A1")) is None


def test_counters(nested_tree: TreeNode) -> None:
    assert count_directories(nested_tree) == 3
    assert count_files(nested_tree) == 4
    assert count_annotations(nested_tree) == 1


def test_value_objects_are_frozen() -> None:
    pin = Annotation(1, 2, 3)
    with pytest.raises(dataclasses.FrozenInstanceError):
        pin.x = 5  # type: ignore[misc]

    entry = FileEntry("a.png")
    assert entry.url is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.name = "b.png"  # type: ignore[misc]


def test_tree_node_defaults_are_not_shared() -> None:
    """Child sequences are owned by each node."""
    a, b = TreeNode(), TreeNode()
    a.children.append(TreeNode(name="x"))
    assert b.children == []
    assert a.version == 0
    assert a.annotation is None

# -----------------------------------------------------------------------------
# RUN STATE MACHINE
# -----------------------------------------------------------------------------

def test_run_transitions_form_a_linear_chain() -> None:
    state = RunState.IDLE
    visited = [state]
    while state in RUN_TRANSITIONS:
        state = RUN_TRANSITIONS[state]
        visited.append(state)

    assert visited[-1] == RunState.DONE
    assert len(visited) == len(set(visited))
    assert RunState.FAILED not in visited

# -----------------------------------------------------------------------------
# RESULT FACTORIES
# -----------------------------------------------------------------------------

def test_create_success_result_populates_fields() -> None:
    report = MergeReport(previous_present=True, carried=2, dropped=1, version=7)

    result = create_success_result(
        "Root", "Root/manifest.json", "abc123", directories=3, files=5, merge_report=report,
        summary_extra={"bytes": 42},
    )

    assert isinstance(result, PipelineResult)
    assert result.ok is True
    assert result.error == ""
    assert result.state == RunState.DONE
    assert result.failed_stage is None
    assert result.version == 7
    assert result.annotations_carried == 2
    assert result.annotations_dropped == 1
    assert result.summary == {"bytes": 42}


def test_create_error_result_records_stage_and_type() -> None:
    err = PathNotFoundError("Root/Gone")

    result = create_error_result(err, RunState.CRAWLING, "Root", "Root/manifest.json")

    assert result.ok is False
    assert result.state == RunState.FAILED
    assert result.failed_stage == RunState.CRAWLING
    assert result.error_type == "PathNotFoundError"
    assert "Root/Gone" in result.error
    assert result.fingerprint == ""
    assert result.summary == {}

# -----------------------------------------------------------------------------
# ERROR TAXONOMY
# -----------------------------------------------------------------------------

def test_error_hierarchy() -> None:
    err = PathNotFoundError("a/b")
    assert isinstance(err, ListingError)
    assert isinstance(err, ManifestError)
    assert err.path == "a/b"

    drift = PublishDriftError("aaa", "bbb")
    assert drift.local_fingerprint == "aaa"
    assert drift.remote_fingerprint == "bbb"
    assert "aaa" in str(drift) and "bbb" in str(drift)
