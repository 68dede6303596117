from __future__ import annotations

import logging
from typing import Tuple

import requests

from assetmanifest.infra.network.common import CDN_API_URL, DEFAULT_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


def purge_cdn_url(url: str, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> Tuple[bool, str]:
    """
    Ask the CDN to drop its cached copy of `url`.

    Purging is advisory: the origin already holds the verified manifest,
    so failures are reported to the caller instead of raised.
    """
    headers = {"AccessKey": api_key, "User-Agent": USER_AGENT}
    try:
        response = requests.post(
            f"{CDN_API_URL}/purge",
            params={"url": url, "async": "false"},
            headers=headers,
            timeout=timeout,
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"CDN purge of '{url}' failed: {e}")
        return False, str(e)

    if response.status_code in (200, 204):
        logger.info(f"CDN cache purged: {url}")
        return True, "Purged"

    msg = f"HTTP {response.status_code}"
    logger.warning(f"CDN purge of '{url}' rejected: {msg}")
    return False, msg
