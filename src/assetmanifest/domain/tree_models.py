from __future__ import annotations

"""
Manifest Tree Data Models.

Provides the typed tree used across the crawl, merge and publish stages.
Child sequences are owned by their parent node; nodes are never shared
between two trees.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

NodePath = Tuple[str, ...]

# -----------------------------------------------------------------------------
# STORAGE LISTING
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class StorageItem:
    """
    A single direct child returned by a backend listing.

    Attributes:
        name: Path segment of the child.
        is_directory: True when the child is a folder.
    """
    name: str
    is_directory: bool

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Annotation:
    """
    Operator-supplied spatial marker ("pin") attached to a directory node.

    Attributes:
        x: Horizontal coordinate.
        y: Vertical coordinate.
        z: Depth coordinate.
    """
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class FileEntry:
    """
    Represents a leaf asset in a directory.

    Attributes:
        name: Asset filename.
        url: Fully-qualified CDN address, or None when the consumer builds it.
    """
    name: str
    url: Optional[str] = None


@dataclass
class TreeNode:
    """
    A directory of the catalog.

    Attributes:
        name: Path segment this node represents (empty for the root).
        children: Subdirectories, ordered after canonicalization.
        files: Assets stored directly in this directory.
        annotation: Pin carried forward from the previous manifest.
        version: Manifest-level counter, meaningful on the root only.
    """
    name: str = ""
    children: List["TreeNode"] = field(default_factory=list)
    files: List[FileEntry] = field(default_factory=list)
    annotation: Optional[Annotation] = None
    version: int = 0

    def child(self, name: str) -> Optional["TreeNode"]:
        """Return the direct subdirectory called `name`, if any."""
        for c in self.children:
            if c.name == name:
                return c
        return None

# -----------------------------------------------------------------------------
# TRAVERSAL HELPERS
# -----------------------------------------------------------------------------

def iter_nodes(root: TreeNode) -> Iterator[Tuple[NodePath, TreeNode]]:
    """
    Yield every node of the tree with its root-to-node name path.

    The root itself is yielded with the empty path.
    """
    stack: List[Tuple[NodePath, TreeNode]] = [((), root)]
    while stack:
        path, node = stack.pop()
        yield path, node
        for c in reversed(node.children):
            stack.append((path + (c.name,), c))


def find_node(root: TreeNode, path: NodePath) -> Optional[TreeNode]:
    """Resolve a name path below `root`."""
    node: Optional[TreeNode] = root
    for segment in path:
        if node is None:
            return None
        node = node.child(segment)
    return node


def count_directories(root: TreeNode) -> int:
    """Number of directory nodes below the root."""
    return sum(1 for path, _ in iter_nodes(root) if path)


def count_files(root: TreeNode) -> int:
    return sum(len(node.files) for _, node in iter_nodes(root))


def count_annotations(root: TreeNode) -> int:
    return sum(1 for _, node in iter_nodes(root) if node.annotation is not None)
