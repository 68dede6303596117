from __future__ import annotations

"""
Backend Tree Crawler.

Walks the storage backend from a root path and rebuilds its directory
hierarchy as a TreeNode graph. Sibling directories of one level are
listed concurrently through a bounded worker pool; listing results are
attached to their parents on the calling thread once the whole level
has resolved, so no tree node is touched by two threads.
"""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional
from urllib.parse import quote

from assetmanifest.domain.config import DEFAULT_CONCURRENCY, DEFAULT_MAX_DEPTH, MAX_CONCURRENCY
from assetmanifest.domain.errors import DepthExceededError, EmptyRootError, ListingError, PathNotFoundError
from assetmanifest.domain.tree_models import FileEntry, StorageItem, TreeNode
from assetmanifest.infra.storage.base import StorageLister

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CrawlOptions:
    content_delivery_base: Optional[str]
    embed_file_urls: bool
    asset_extensions: Optional[FrozenSet[str]]
    exclude_paths: FrozenSet[str]


@dataclass(frozen=True)
class _PendingDirectory:
    path: str
    node: TreeNode
    depth: int


# ==============================================================================
# PUBLIC API
# ==============================================================================

def crawl(
        lister: StorageLister,
        root_path: str,
        *,
        content_delivery_base: Optional[str] = None,
        embed_file_urls: bool = False,
        asset_extensions: Optional[Iterable[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
        exclude_paths: Optional[Iterable[str]] = None,
) -> TreeNode:
    """
    Rebuild the backend hierarchy below `root_path`.

    Every directory is listed exactly once. A failed listing aborts the
    whole crawl: a partial tree is never returned.

    Args:
        lister: Backend listing collaborator.
        root_path: Backend path of the catalog root.
        content_delivery_base: CDN base used to build file URLs.
        embed_file_urls: Store full URLs on file entries.
        asset_extensions: Optional whitelist of file extensions.
        max_depth: Deepest directory level allowed below the root.
        concurrency_limit: Parallel listing calls per level.
        exclude_paths: Backend paths left out of the tree (the manifest itself).

    Returns:
        TreeNode: Unsorted root node of the crawled tree.

    Raises:
        EmptyRootError: The root path does not exist.
        ListingError: Any listing failed.
        DepthExceededError: The hierarchy is deeper than `max_depth`.
    """
    root_path = normalize_backend_path(root_path)
    options = _CrawlOptions(
        content_delivery_base=content_delivery_base or None,
        embed_file_urls=embed_file_urls,
        asset_extensions=_normalize_extensions(asset_extensions),
        exclude_paths=frozenset(normalize_backend_path(p) for p in (exclude_paths or ())),
    )
    logger.info(f"Crawling backend from root: '/{root_path}'")

    try:
        root_items = lister.list(root_path)
    except PathNotFoundError as e:
        raise EmptyRootError(f"Crawl root '/{root_path}' is unreachable.") from e

    root = TreeNode()
    frontier = _attach_items(root, root_path, root_items, 0, options)

    workers = max(1, min(int(concurrency_limit), MAX_CONCURRENCY))
    listed = 1
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="CrawlWorker") as executor:
        while frontier:
            depth = frontier[0].depth
            if depth > max_depth:
                raise DepthExceededError(
                    f"Directory '/{frontier[0].path}' is at depth {depth}, limit is {max_depth}."
                )

            listings = _list_level(executor, lister, frontier)
            listed += len(frontier)

            next_frontier: List[_PendingDirectory] = []
            for pending in frontier:
                next_frontier.extend(
                    _attach_items(pending.node, pending.path, listings[pending.path], depth, options)
                )
            frontier = next_frontier

    logger.info(f"Crawl finished: {listed} directories listed.")
    return root


def normalize_backend_path(path: str) -> str:
    """Strip surrounding slashes and collapse empty segments."""
    return "/".join(p for p in (path or "").split("/") if p and p != ".")


def join_backend_path(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def build_file_url(content_delivery_base: str, backend_path: str) -> str:
    """
    Derive the public CDN address of a backend object.

    The path is percent-encoded segment by segment; slashes are kept.
    """
    return f"{content_delivery_base.rstrip('/')}/{quote(backend_path, safe='/')}"


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _list_level(
        executor: ThreadPoolExecutor,
        lister: StorageLister,
        frontier: List[_PendingDirectory],
) -> Dict[str, List[StorageItem]]:
    """List every directory of one level; cancel the rest on first failure."""
    futures: Dict[Future, str] = {
        executor.submit(_list_child, lister, pending.path): pending.path
        for pending in frontier
    }
    results: Dict[str, List[StorageItem]] = {}
    try:
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    except Exception:
        for future in futures:
            future.cancel()
        raise
    return results


def _list_child(lister: StorageLister, path: str) -> List[StorageItem]:
    """List a directory discovered in its parent's listing."""
    try:
        return lister.list(path)
    except PathNotFoundError as e:
        raise ListingError(
            f"Directory '/{path}' was listed by its parent but could not be listed itself."
        ) from e


def _attach_items(
        node: TreeNode,
        path: str,
        items: Iterable[StorageItem],
        depth: int,
        options: _CrawlOptions,
) -> List[_PendingDirectory]:
    """Populate `node` from a listing and return its subdirectories to crawl."""
    pending: List[_PendingDirectory] = []
    seen_dirs: set = set()
    seen_files: set = set()

    for item in items:
        name = item.name
        if not name:
            logger.debug(f"Skipping unnamed entry in '/{path}'.")
            continue

        item_path = join_backend_path(path, name)
        if item_path in options.exclude_paths:
            logger.debug(f"Excluding '/{item_path}' from the catalog.")
            continue

        if item.is_directory:
            if name in seen_dirs:
                logger.warning(f"Duplicate directory '{name}' in '/{path}' ignored.")
                continue
            seen_dirs.add(name)
            child = TreeNode(name=name)
            node.children.append(child)
            pending.append(_PendingDirectory(item_path, child, depth + 1))
            continue

        if name in seen_files:
            logger.warning(f"Duplicate file '{name}' in '/{path}' ignored.")
            continue
        seen_files.add(name)

        if options.asset_extensions is not None:
            ext = os.path.splitext(name)[1].lower()
            if ext not in options.asset_extensions:
                continue

        url = None
        if options.embed_file_urls and options.content_delivery_base:
            url = build_file_url(options.content_delivery_base, item_path)
        node.files.append(FileEntry(name=name, url=url))

    return pending


def _normalize_extensions(extensions: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if extensions is None:
        return None
    out = set()
    for ext in extensions:
        e = ext.strip().lower()
        if not e:
            continue
        out.add(e if e.startswith(".") else f".{e}")
    return frozenset(out)
