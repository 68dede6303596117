from __future__ import annotations

"""
Bunny Storage API Client.

Implements the listing and publishing collaborators on top of the Bunny
Storage HTTP API. All variance in the listing payload (bare array or
wrapped object, ObjectName/Name/name, IsDirectory/isDirectory/Type) is
absorbed by normalize_listing(); callers only ever see StorageItem.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from assetmanifest.domain.config import DEFAULT_STORAGE_ENDPOINT
from assetmanifest.domain.errors import ListingError, PathNotFoundError, PublishError
from assetmanifest.domain.tree_models import StorageItem
from assetmanifest.infra.network.common import DEFAULT_TIMEOUT, USER_AGENT, storage_url
from assetmanifest.infra.storage.base import MANIFEST_CONTENT_TYPE, StorageLister, StoragePublisher

logger = logging.getLogger(__name__)

_NAME_KEYS = ("ObjectName", "Name", "name")
_WRAPPER_KEYS = ("Items", "items")

# ==============================================================================
# PAYLOAD NORMALIZATION
# ==============================================================================

def normalize_listing(payload: Any) -> List[StorageItem]:
    """
    Convert a raw listing payload into StorageItem values.

    Args:
        payload: Decoded JSON body of a listing response.

    Returns:
        List[StorageItem]: Usable items, in payload order.

    Raises:
        ListingError: The payload is neither a list nor a wrapped list.
    """
    raw_items = payload
    if isinstance(payload, dict):
        raw_items = next((payload[k] for k in _WRAPPER_KEYS if k in payload), None)

    if not isinstance(raw_items, list):
        raise ListingError(f"Unexpected listing payload: {type(payload).__name__}")

    items: List[StorageItem] = []
    for raw in raw_items:
        item = normalize_item(raw)
        if item is not None:
            items.append(item)
    return items


def normalize_item(raw: Any) -> Optional[StorageItem]:
    """
    Extract name and directory flag from one listing entry.

    Names are kept exactly as listed. Returns None for entries without a
    usable name (blank or bookkeeping rows, '.' and '..', names containing
    a slash).
    """
    if not isinstance(raw, dict):
        logger.debug(f"Ignoring non-object listing entry: {raw!r}")
        return None

    name = next((raw[k] for k in _NAME_KEYS if raw.get(k)), "")
    if not isinstance(name, str):
        return None
    if not name.strip() or name in (".", "..") or "/" in name:
        logger.debug(f"Ignoring listing entry without usable name: {raw!r}")
        return None

    is_directory = (
        raw.get("IsDirectory") is True
        or raw.get("isDirectory") is True
        or raw.get("Type") == "Directory"
    )
    return StorageItem(name=name, is_directory=is_directory)

# ==============================================================================
# API CLIENTS
# ==============================================================================

class BunnyStorageLister(StorageLister):
    """
    Lists folders of a Bunny storage zone.
    """

    def __init__(
            self,
            zone: str,
            api_key: str,
            endpoint: str = DEFAULT_STORAGE_ENDPOINT,
            timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.zone = zone
        self.endpoint = endpoint
        self.timeout = timeout
        self._headers = _auth_headers(api_key, accept=MANIFEST_CONTENT_TYPE)

    def list(self, path: str) -> List[StorageItem]:
        url = storage_url(self.endpoint, self.zone, path, directory=True)
        logger.debug(f"Listing '{url}'")

        try:
            response = requests.get(url, headers=self._headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise ListingError(f"Listing '/{path}' timed out after {self.timeout}s.") from e
        except requests.exceptions.RequestException as e:
            raise ListingError(f"Listing '/{path}' failed: {e}") from e

        _raise_for_status(response, path, ListingError)

        try:
            payload = response.json()
        except ValueError as e:
            raise ListingError(f"Listing '/{path}' returned invalid JSON.") from e

        return normalize_listing(payload)


class BunnyStoragePublisher(StoragePublisher):
    """
    Uploads and reads back single objects of a Bunny storage zone.
    """

    def __init__(
            self,
            zone: str,
            api_key: str,
            endpoint: str = DEFAULT_STORAGE_ENDPOINT,
            timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.zone = zone
        self.endpoint = endpoint
        self.timeout = timeout
        self._api_key = api_key

    def put(self, path: str, data: bytes, content_type: str = MANIFEST_CONTENT_TYPE) -> None:
        url = storage_url(self.endpoint, self.zone, path)
        headers = _auth_headers(self._api_key)
        headers["Content-Type"] = content_type

        try:
            response = requests.put(url, data=data, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise PublishError(f"Upload of '/{path}' failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise PublishError(
                f"Upload of '/{path}' rejected: HTTP {response.status_code} {_error_message(response)}"
            )
        logger.info(f"Uploaded {len(data)} bytes to storage: '/{path}'")

    def fetch(self, path: str) -> Optional[bytes]:
        url = storage_url(self.endpoint, self.zone, path)
        headers = _auth_headers(self._api_key)

        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ListingError(f"Download of '/{path}' failed: {e}") from e

        if response.status_code == 404:
            return None
        _raise_for_status(response, path, ListingError)
        return response.content

# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _auth_headers(api_key: str, accept: Optional[str] = None) -> Dict[str, str]:
    headers = {"AccessKey": api_key, "User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    return headers


def _raise_for_status(response: requests.Response, path: str, error_cls: type) -> None:
    """Map Storage API status codes onto the error taxonomy."""
    status = response.status_code
    if status == 404:
        raise PathNotFoundError(path)
    if status in (401, 403):
        raise error_cls(f"Access denied for '/{path}' (HTTP {status}). Check the storage API key.")
    if status >= 400:
        raise error_cls(f"HTTP {status} for '/{path}': {_error_message(response)}")


def _error_message(response: requests.Response) -> str:
    """Best-effort extraction of the API error message."""
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:200]
    if isinstance(body, dict):
        return str(body.get("Message") or body.get("message") or body)
    return str(body)[:200]
