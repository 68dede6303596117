from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Path normalization and atomic file writes shared by the local backend,
the local manifest copy and the previous-manifest loader.
"""

import os
import tempfile
from typing import Optional

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)

# -----------------------------------------------------------------------------
# FILE I/O API
# -----------------------------------------------------------------------------

def write_bytes_atomic(path: str, data: bytes) -> str:
    """
    Write `data` to `path` so readers never observe a partial file.

    The content is staged in a temporary file in the destination
    directory and moved into place with os.replace.

    Args:
        path: Destination file.
        data: Full file content.

    Returns:
        str: Absolute destination path.
    """
    target = os.path.abspath(path)
    parent = os.path.dirname(target)
    os.makedirs(parent, exist_ok=True)

    fd, staging = tempfile.mkstemp(prefix=".staging-", suffix=".tmp", dir=parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(staging, target)
    except BaseException:
        if os.path.exists(staging):
            os.remove(staging)
        raise
    return target


def read_bytes_if_exists(path: str) -> Optional[bytes]:
    """Return the file content, or None when the file does not exist."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError:
        return None
