from __future__ import annotations

from urllib.parse import quote

USER_AGENT = "assetmanifest-publisher/1.0"
DEFAULT_TIMEOUT = 30
CDN_API_URL = "https://api.bunny.net"


def storage_url(endpoint: str, zone: str, path: str, *, directory: bool = False) -> str:
    """
    Build a Bunny Storage API URL for an object or a folder.

    Folder URLs always end with a slash; the listing API answers 404 for
    some folders requested without one. Segments are percent-encoded,
    slashes are kept.
    """
    clean = "/".join(p for p in (path or "").split("/") if p)
    if directory:
        clean = f"{clean}/" if clean else ""
    return f"{endpoint.rstrip('/')}/{quote(zone, safe='')}/{quote(clean, safe='/')}"
