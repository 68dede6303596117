from __future__ import annotations

"""
Manifest Serialization and Verification.

Renders the final tree into the published JSON document, parses
previously published documents back into trees, and computes the
content fingerprint used to confirm that a publish landed intact.

Document layout:
    {"version": 3, "children": [...], "files": [...]}
    directory -> {"name": "A", "pinPos": {"x":..,"y":..,"z":..}, "children": [...], "files": [...]}
    file      -> "a.png"  or  {"name": "a.png", "url": "https://..."}
"""

import hashlib
import json
import logging
import math
import numbers
from typing import Any, Dict, Optional, Union

from assetmanifest.core.services.canonicalizer import canonical_sort_key
from assetmanifest.domain.errors import MergeStructureError, PublishDriftError
from assetmanifest.domain.tree_models import Annotation, FileEntry, TreeNode

logger = logging.getLogger(__name__)

ANNOTATION_KEY = "pinPos"
JSON_INDENT = 2

JsonFile = Union[str, Dict[str, str]]

# -----------------------------------------------------------------------------
# SERIALIZATION
# -----------------------------------------------------------------------------

def serialize(root: TreeNode) -> bytes:
    """
    Encode the tree as the published manifest document.

    Key order is fixed and absent annotations are omitted, so unchanged
    trees always produce identical bytes.

    Args:
        root: Canonicalized, merged root node.

    Returns:
        bytes: UTF-8 JSON document.
    """
    document = to_document(root)
    return json.dumps(document, ensure_ascii=False, indent=JSON_INDENT, allow_nan=False).encode("utf-8")


def to_document(root: TreeNode) -> Dict[str, Any]:
    """Convert the root node into the plain JSON-ready mapping."""
    document: Dict[str, Any] = {"version": int(root.version)}
    if root.annotation is not None:
        document[ANNOTATION_KEY] = _annotation_to_json(root.annotation)
    document["children"] = [_node_to_json(c) for c in root.children]
    document["files"] = [_file_to_json(f) for f in root.files]
    return document


def _node_to_json(node: TreeNode) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": node.name}
    if node.annotation is not None:
        out[ANNOTATION_KEY] = _annotation_to_json(node.annotation)
    out["children"] = [_node_to_json(c) for c in node.children]
    out["files"] = [_file_to_json(f) for f in node.files]
    return out


def _file_to_json(entry: FileEntry) -> JsonFile:
    if entry.url is None:
        return entry.name
    return {"name": entry.name, "url": entry.url}


def _annotation_to_json(annotation: Annotation) -> Dict[str, float]:
    return {"x": annotation.x, "y": annotation.y, "z": annotation.z}

# -----------------------------------------------------------------------------
# PARSING
# -----------------------------------------------------------------------------

def parse_manifest(data: Union[bytes, str]) -> TreeNode:
    """
    Rebuild a tree from a published manifest document.

    Args:
        data: Raw document bytes or text.

    Returns:
        TreeNode: Root of the parsed tree.

    Raises:
        MergeStructureError: The document is not a valid manifest tree.
    """
    document = _load_json(data)
    if not isinstance(document, dict):
        raise MergeStructureError(
            f"Manifest root must be an object, received {type(document).__name__}."
        )

    version = document.get("version", 0)
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        raise MergeStructureError(f"Invalid manifest version: {version!r}")

    root = _parse_node(document, path="", is_root=True)
    root.version = version
    return root


def _parse_node(raw: Dict[str, Any], path: str, is_root: bool = False) -> TreeNode:
    name = ""
    if not is_root:
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise MergeStructureError(f"Directory without a valid name under '/{path}'.")

    node_path = f"{path}/{name}" if path else name
    node = TreeNode(name=name, annotation=_parse_annotation(raw.get(ANNOTATION_KEY), node_path))

    children = raw.get("children", [])
    files = raw.get("files", [])
    if not isinstance(children, list) or not isinstance(files, list):
        raise MergeStructureError(f"'children' and 'files' must be lists at '/{node_path}'.")

    seen = set()
    for raw_child in children:
        if not isinstance(raw_child, dict):
            raise MergeStructureError(f"Directory entry is not an object at '/{node_path}'.")
        child = _parse_node(raw_child, node_path)
        if child.name in seen:
            logger.warning(f"Duplicate directory '{child.name}' in previous manifest at '/{node_path}'; keeping the first.")
            continue
        seen.add(child.name)
        node.children.append(child)

    seen_files = set()
    for raw_file in files:
        entry = _parse_file(raw_file, node_path)
        if entry.name in seen_files:
            continue
        seen_files.add(entry.name)
        node.files.append(entry)

    return node


def _parse_file(raw: Any, path: str) -> FileEntry:
    if isinstance(raw, str) and raw:
        return FileEntry(name=raw)
    if isinstance(raw, dict) and isinstance(raw.get("name"), str) and raw["name"]:
        url = raw.get("url")
        return FileEntry(name=raw["name"], url=url if isinstance(url, str) else None)
    raise MergeStructureError(f"Invalid file entry at '/{path}': {raw!r}")


def _parse_annotation(raw: Any, path: str) -> Optional[Annotation]:
    """Accept a complete numeric pin; drop anything else."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        coords = [raw.get(axis) for axis in ("x", "y", "z")]
        if all(_is_number(c) for c in coords):
            return Annotation(x=coords[0], y=coords[1], z=coords[2])
    logger.warning(f"Dropping malformed annotation at '/{path}': {raw!r}")
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)

# -----------------------------------------------------------------------------
# FINGERPRINT & VERIFICATION
# -----------------------------------------------------------------------------

def fingerprint(data: Union[bytes, str]) -> str:
    """
    Compute the SHA-256 fingerprint of a manifest document.

    The digest is taken over a normalized rendering (sorted keys, compact
    separators, sibling groups in canonical order), so formatting and
    sibling order do not affect it while any content change does.

    Args:
        data: Raw document bytes or text.

    Returns:
        str: Hex digest.

    Raises:
        MergeStructureError: `data` is not strict JSON.
    """
    document = _normalize_document(_load_json(data))
    try:
        canonical = json.dumps(document, ensure_ascii=False, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except ValueError as e:
        raise MergeStructureError(f"Manifest contains a non-finite number: {e}") from e
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def verify(local: bytes, remote: Optional[bytes]) -> bool:
    """
    Confirm that the published bytes match what was uploaded.

    Args:
        local: Bytes handed to the publisher.
        remote: Bytes read back from the backend.

    Returns:
        bool: True when the fingerprints match.

    Raises:
        PublishDriftError: The remote content is missing, unreadable or different.
    """
    local_fp = fingerprint(local)
    if remote is None:
        raise PublishDriftError(local_fp, "<missing>")
    try:
        remote_fp = fingerprint(remote)
    except MergeStructureError:
        raise PublishDriftError(local_fp, "<unparseable>")

    if local_fp != remote_fp:
        raise PublishDriftError(local_fp, remote_fp)
    logger.info(f"Publish verified (fingerprint {local_fp[:12]}).")
    return True

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _load_json(data: Union[bytes, str]) -> Any:
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8-sig")
        return json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MergeStructureError(f"Manifest is not valid JSON: {e}") from e


def _normalize_document(value: Any) -> Any:
    """Recursively put sibling groups of a raw document in canonical order."""
    if isinstance(value, list):
        return [_normalize_document(v) for v in value]
    if not isinstance(value, dict):
        return value

    out: Dict[str, Any] = {}
    for key, item in value.items():
        normalized = _normalize_document(item)
        if key in ("children", "files") and isinstance(normalized, list):
            normalized = sorted(normalized, key=_entry_sort_key)
        out[key] = normalized
    return out


def _entry_sort_key(entry: Any) -> tuple:
    if isinstance(entry, str):
        name = entry
    elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
        name = entry["name"]
    else:
        name = ""
    # Nameless entries still need a stable position
    tail = json.dumps(entry, ensure_ascii=False, sort_keys=True)
    return canonical_sort_key(name) + (tail,)
