from __future__ import annotations

"""
Configuration Domain Management.

Defines the immutable run configuration handed to the pipeline entry
point, the default values, and the mapping from the deployment
environment variables to configuration keys.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
DEFAULT_STORAGE_ENDPOINT = "https://storage.bunnycdn.com"
DEFAULT_MANIFEST_NAME = "manifest.json"
DEFAULT_CONCURRENCY = 8
MAX_CONCURRENCY = 32
DEFAULT_MAX_DEPTH = 64

BACKEND_BUNNY = "bunny"
BACKEND_LOCAL = "local"
SUPPORTED_BACKENDS = (BACKEND_BUNNY, BACKEND_LOCAL)

PREVIOUS_REMOTE = "remote"
PREVIOUS_NONE = "none"

# Deployment environment variable -> configuration key
ENV_KEYS: Dict[str, str] = {
    "ROOT_PREFIX": "root_path",
    "BUNNY_STORAGE_ZONE": "storage_zone",
    "BUNNY_STORAGE_API_KEY": "storage_api_key",
    "BUNNY_STORAGE_ENDPOINT": "storage_endpoint",
    "BUNNY_CDN_BASE": "content_delivery_base",
    "BUNNY_API_KEY": "cdn_api_key",
    "MANIFEST_NAME": "manifest_name",
    "PREVIOUS_MANIFEST": "previous_manifest_source",
    "CRAWL_CONCURRENCY": "concurrency_limit",
}


# -----------------------------------------------------------------------------
# Configuration Model
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class PipelineConfig:
    """
    Explicit configuration of a single publish run.

    Attributes:
        root_path: Backend path crawled and under which the manifest lives.
        content_delivery_base: Public CDN base URL (optional).
        concurrency_limit: Parallel listing calls during the crawl.
        previous_manifest_source: "remote", "none" or a local file path.
        storage_zone: Bunny storage zone name.
        storage_api_key: Storage zone password (AccessKey).
        storage_endpoint: Storage API base URL.
        manifest_name: Filename of the published manifest.
        max_depth: Deepest directory level the crawler will list.
        embed_file_urls: Store full CDN URLs in file entries.
        asset_extensions: Optional whitelist of file extensions.
        purge_cdn: Purge the manifest URL from the CDN after publishing.
        cdn_api_key: Account API key used for CDN purges.
        local_output_path: Optional local copy of the published manifest.
        backend: "bunny" or "local".
        local_backend_dir: Directory acting as the backend for "local".
    """
    root_path: str
    content_delivery_base: Optional[str] = None
    concurrency_limit: int = DEFAULT_CONCURRENCY
    previous_manifest_source: str = PREVIOUS_REMOTE
    storage_zone: str = ""
    storage_api_key: str = ""
    storage_endpoint: str = DEFAULT_STORAGE_ENDPOINT
    manifest_name: str = DEFAULT_MANIFEST_NAME
    max_depth: int = DEFAULT_MAX_DEPTH
    embed_file_urls: bool = False
    asset_extensions: Optional[Tuple[str, ...]] = None
    purge_cdn: bool = False
    cdn_api_key: str = ""
    local_output_path: Optional[str] = None
    backend: str = BACKEND_BUNNY
    local_backend_dir: str = ""

    @property
    def manifest_path(self) -> str:
        """Backend path the manifest is published to."""
        if not self.root_path:
            return self.manifest_name
        return f"{self.root_path}/{self.manifest_name}"

    @property
    def manifest_cdn_url(self) -> Optional[str]:
        """Public URL of the manifest, when a CDN base is configured."""
        if not self.content_delivery_base:
            return None
        return f"{self.content_delivery_base.rstrip('/')}/{self.manifest_path}"


# -----------------------------------------------------------------------------
# Configuration Sources
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Backend
        "backend": BACKEND_BUNNY,
        "storage_zone": "",
        "storage_api_key": "",
        "storage_endpoint": DEFAULT_STORAGE_ENDPOINT,
        "local_backend_dir": "",

        # Crawl
        "root_path": "",
        "concurrency_limit": DEFAULT_CONCURRENCY,
        "max_depth": DEFAULT_MAX_DEPTH,
        "asset_extensions": None,

        # Manifest
        "manifest_name": DEFAULT_MANIFEST_NAME,
        "previous_manifest_source": PREVIOUS_REMOTE,
        "content_delivery_base": None,
        "embed_file_urls": False,
        "local_output_path": None,

        # CDN
        "purge_cdn": False,
        "cdn_api_key": "",
    }


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Extract configuration values from the process environment.

    Only variables that are present and non-empty are returned, so the
    result can be layered over the defaults.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        Dict[str, Any]: Partial configuration keyed like get_default_config().
    """
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    for var, key in ENV_KEYS.items():
        value = env.get(var)
        if value is None or not value.strip():
            continue
        out[key] = value.strip()

    if out:
        logger.debug(f"Loaded {len(out)} configuration values from the environment.")
    return out
