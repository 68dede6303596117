from __future__ import annotations

"""
Canonical Ordering Service.

Sorts every directory's subdirectories and files into the deterministic
order that makes two crawls of unchanged data serialize identically.
Directories and files live in separate sequences, so the
directories-before-files rule holds structurally.
"""

import unicodedata
from typing import Tuple

from assetmanifest.domain.tree_models import FileEntry, TreeNode

SortKey = Tuple[Tuple[Tuple[int, str], ...], bytes]

# Character classes in collation order: punctuation, spaces and symbols,
# then digits, then letters.
_RANK_OTHER = 0
_RANK_DIGIT = 1
_RANK_LETTER = 2

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def canonical_sort_key(name: str) -> SortKey:
    """
    Build the total-order key for a sibling name.

    The primary component ignores case and accents ("base" sensitivity),
    so 'àrbre', 'Arbre' and 'arbre' group together, and ranks punctuation
    before digits before letters ('_x' < '1x' < 'ax'). The raw UTF-8
    bytes break ties so the order is total.

    Args:
        name: Path segment to order.

    Returns:
        SortKey: (ranked folded characters, raw bytes).
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    primary = tuple((_char_rank(ch), ch) for ch in base)
    return primary, name.encode("utf-8")


def canonicalize(node: TreeNode) -> TreeNode:
    """
    Recursively reorder children and files in place.

    Idempotent: an already-canonical tree is left unchanged.

    Args:
        node: Root of the (sub)tree to order.

    Returns:
        TreeNode: The same node, for chaining.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        current.children.sort(key=_node_key)
        current.files.sort(key=_file_key)
        stack.extend(current.children)
    return node

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _char_rank(ch: str) -> int:
    category = unicodedata.category(ch)
    if category.startswith("N"):
        return _RANK_DIGIT
    if category.startswith("L"):
        return _RANK_LETTER
    return _RANK_OTHER


def _node_key(node: TreeNode) -> SortKey:
    return canonical_sort_key(node.name)


def _file_key(entry: FileEntry) -> SortKey:
    return canonical_sort_key(entry.name)
