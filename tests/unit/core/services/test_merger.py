from __future__ import annotations

"""
Unit tests for the Annotation Merge Service.

Verifies path-based annotation carry-over, the deletion rule, version
preservation and first-run behavior.
"""

from assetmanifest.core.services.merger import merge, summarize_merge
from assetmanifest.domain.tree_models import Annotation, FileEntry, TreeNode, find_node


def _fresh(*names: str) -> TreeNode:
    return TreeNode(children=[TreeNode(name=n) for n in names])


def test_first_run_defaults_version_and_keeps_tree() -> None:
    fresh = _fresh("A", "B")

    merged = merge(None, fresh)
    report = summarize_merge(None, merged)

    assert merged is fresh
    assert merged.version == 0
    assert all(c.annotation is None for c in merged.children)
    assert report.previous_present is False
    assert report.carried == 0


def test_annotation_survives_regeneration(pinned_tree: TreeNode) -> None:
    fresh = TreeNode(children=[
        TreeNode(name="Alpha", files=[FileEntry("x.png"), FileEntry("new.png")]),
        TreeNode(name="Beta", files=[FileEntry("y.mp3")]),
    ])

    merged = merge(pinned_tree, fresh)

    assert find_node(merged, ("Alpha",)).annotation == Annotation(1, 2, 3)
    assert find_node(merged, ("Beta",)).annotation is None
    assert [e.name for e in find_node(merged, ("Alpha",)).files] == ["x.png", "new.png"]


def test_version_is_copied_verbatim(pinned_tree: TreeNode) -> None:
    merged = merge(pinned_tree, _fresh("Completely", "Different"))
    assert merged.version == 7


def test_annotation_of_deleted_directory_is_discarded() -> None:
    """A pinned, then B deleted, then B re-created: B has no pin."""
    previous = TreeNode(children=[
        TreeNode(name="A", annotation=Annotation(1, 1, 1)),
        TreeNode(name="B", annotation=Annotation(2, 2, 2)),
    ])

    without_b = merge(previous, _fresh("A"))
    report = summarize_merge(previous, without_b)
    assert report.carried == 1
    assert report.dropped == 1

    recreated = merge(without_b, _fresh("A", "B"))
    assert find_node(recreated, ("A",)).annotation == Annotation(1, 1, 1)
    assert find_node(recreated, ("B",)).annotation is None


def test_matching_is_by_full_path_not_name() -> None:
    """A pin on Old/Shared does not leak to New/Shared."""
    previous = TreeNode(children=[
        TreeNode(name="Old", children=[TreeNode(name="Shared", annotation=Annotation(9, 9, 9))]),
    ])
    fresh = TreeNode(children=[TreeNode(name="New", children=[TreeNode(name="Shared")])])

    merged = merge(previous, fresh)

    assert find_node(merged, ("New", "Shared")).annotation is None


def test_matching_ignores_sibling_position() -> None:
    previous = TreeNode(children=[
        TreeNode(name="B", annotation=Annotation(0, 0, 1)),
        TreeNode(name="A"),
    ])

    merged = merge(previous, _fresh("A", "B", "C"))

    assert find_node(merged, ("B",)).annotation == Annotation(0, 0, 1)
    assert find_node(merged, ("A",)).annotation is None


def test_root_annotation_is_carried() -> None:
    previous = TreeNode(annotation=Annotation(4, 5, 6), version=2)
    merged = merge(previous, _fresh("A"))
    assert merged.annotation == Annotation(4, 5, 6)
