from __future__ import annotations

"""
Network Communication Infrastructure.

Facade over the Bunny Storage and CDN clients.
"""

from assetmanifest.infra.network.cdn_client import purge_cdn_url
from assetmanifest.infra.network.storage_client import (
    BunnyStorageLister,
    BunnyStoragePublisher,
    normalize_item,
    normalize_listing,
)

__all__ = [
    "BunnyStorageLister",
    "BunnyStoragePublisher",
    "normalize_item",
    "normalize_listing",
    "purge_cdn_url",
]
