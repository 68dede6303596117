from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
configuration overrides layered over defaults and the environment.
"""

import argparse
from typing import Any, Dict, List, Optional

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the assetmanifest CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="assetmanifest",
        description=(
            "Crawl a media storage zone, carry operator pins forward from the "
            "previous manifest, then publish and verify the new manifest."
        ),
    )

    # --- Backend Selection ---
    p.add_argument(
        "-r", "--root",
        dest="root_path",
        default=None,
        help="Backend root path to catalog (env: ROOT_PREFIX).",
    )
    p.add_argument(
        "--backend",
        choices=["bunny", "local"],
        default=None,
        help="Storage backend. 'local' serves a directory given by --local-dir.",
    )
    p.add_argument(
        "--zone",
        dest="storage_zone",
        default=None,
        help="Bunny storage zone (env: BUNNY_STORAGE_ZONE).",
    )
    p.add_argument(
        "--endpoint",
        dest="storage_endpoint",
        default=None,
        help="Bunny Storage API base URL (env: BUNNY_STORAGE_ENDPOINT).",
    )
    p.add_argument(
        "--local-dir",
        dest="local_backend_dir",
        default=None,
        help="Directory acting as the backend when --backend local is used.",
    )

    # --- Crawl Options ---
    p.add_argument(
        "--concurrency",
        dest="concurrency_limit",
        type=int,
        default=None,
        help="Parallel listing requests per directory level (1-32).",
    )
    p.add_argument(
        "--max-depth",
        dest="max_depth",
        type=int,
        default=None,
        help="Fail when the hierarchy is deeper than this.",
    )
    p.add_argument(
        "--extensions",
        dest="asset_extensions",
        default=None,
        help="Comma-separated file extensions to catalog (default: all).",
    )

    # --- Manifest Options ---
    p.add_argument(
        "--manifest-name",
        dest="manifest_name",
        default=None,
        help="Filename of the manifest under the root (env: MANIFEST_NAME).",
    )
    p.add_argument(
        "--previous",
        dest="previous_manifest_source",
        default=None,
        help="Where annotations come from: 'remote', 'none' or a local file.",
    )
    p.add_argument(
        "--cdn-base",
        dest="content_delivery_base",
        default=None,
        help="Public CDN base URL (env: BUNNY_CDN_BASE).",
    )
    p.add_argument(
        "--embed-urls",
        action="store_true",
        help="Store full CDN URLs for every file instead of bare names.",
    )
    p.add_argument(
        "-o", "--output",
        dest="local_output_path",
        default=None,
        help="Also write the manifest to this local file.",
    )
    p.add_argument(
        "--purge",
        action="store_true",
        help="Purge the manifest URL from the CDN after a verified publish (env: BUNNY_API_KEY).",
    )

    # --- Runtime Behavior ---
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the manifest without publishing it.",
    )
    p.add_argument(
        "--print-fingerprint",
        dest="print_fingerprint",
        metavar="FILE",
        default=None,
        help="Print the fingerprint of a local manifest file and exit.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the run result as JSON.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write a rotating run log to this file.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a configuration dictionary.

    Unset options map to None so they never mask environment values.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {
        "root_path": args.root_path,
        "backend": args.backend,
        "storage_zone": args.storage_zone,
        "storage_endpoint": args.storage_endpoint,
        "local_backend_dir": args.local_backend_dir,
        "concurrency_limit": args.concurrency_limit,
        "max_depth": args.max_depth,
        "manifest_name": args.manifest_name,
        "previous_manifest_source": args.previous_manifest_source,
        "content_delivery_base": args.content_delivery_base,
        "local_output_path": args.local_output_path,
    }

    if args.asset_extensions:
        overrides["asset_extensions"] = _split_csv(args.asset_extensions)
    if args.embed_urls:
        overrides["embed_file_urls"] = True
    if args.purge:
        overrides["purge_cdn"] = True

    return overrides

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    """Convert a comma-separated string into a list of trimmed strings."""
    if value is None:
        return None
    parts = [x.strip() for x in value.split(",")]
    return [x for x in parts if x]
