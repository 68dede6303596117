from __future__ import annotations

"""
Annotation Merge Service.

Carries operator pins and the manifest version from the previously
published manifest onto a freshly crawled tree. Nodes are matched by
their root-to-node name path; nodes that no longer exist in the fresh
crawl take their annotations with them.
"""

import logging
from typing import Dict, Optional

from assetmanifest.domain.pipeline_models import MergeReport
from assetmanifest.domain.tree_models import Annotation, NodePath, TreeNode, count_annotations, iter_nodes

logger = logging.getLogger(__name__)


# ==============================================================================
# PUBLIC API
# ==============================================================================

def merge(previous: Optional[TreeNode], fresh: TreeNode) -> TreeNode:
    """
    Copy annotations and the root version from `previous` onto `fresh`.

    The fresh tree is updated in place. Annotations are never computed,
    only copied from the node at the identical path.

    Args:
        previous: Last published manifest, or None on the first run.
        fresh: Newly crawled (canonicalized) tree.

    Returns:
        TreeNode: The fresh tree carrying the merged metadata.
    """
    if previous is None:
        fresh.version = 0
        return fresh

    pins = _annotation_index(previous)
    for path, node in iter_nodes(fresh):
        node.annotation = pins.get(path)

    fresh.version = previous.version
    return fresh


def summarize_merge(previous: Optional[TreeNode], merged: TreeNode) -> MergeReport:
    """
    Compare pin counts before and after a merge.

    Args:
        previous: Manifest the annotations were taken from.
        merged: Result of merge().

    Returns:
        MergeReport: Carried and dropped annotation counts.
    """
    if previous is None:
        return MergeReport(previous_present=False, version=merged.version)

    before = count_annotations(previous)
    carried = count_annotations(merged)
    report = MergeReport(
        previous_present=True,
        carried=carried,
        dropped=max(0, before - carried),
        version=merged.version,
    )
    if report.dropped:
        logger.info(f"{report.dropped} annotation(s) discarded with their deleted directories.")
    return report


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _annotation_index(tree: TreeNode) -> Dict[NodePath, Annotation]:
    """Build a path -> annotation lookup map for one merge call."""
    return {
        path: node.annotation
        for path, node in iter_nodes(tree)
        if node.annotation is not None
    }
