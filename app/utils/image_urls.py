"""
Public URL resolution for stored image keys.
"""
import logging
import re
from typing import List, Optional

from app.config import settings

logger = logging.getLogger(__name__)

LOCAL_MEDIA_PREFIX = "/uploads"

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
_warned_missing_base = False


def _default_base() -> str:
    if settings.CDN_BASE_URL:
        return settings.CDN_BASE_URL
    if settings.STORAGE_BACKEND == "local":
        return LOCAL_MEDIA_PREFIX
    return ""


def get_image_urls(image_keys: Optional[List[str]], base_url: Optional[str] = None) -> List[str]:
    """
    Resolve stored keys to public URLs.

    Absolute URLs pass through unchanged. Other keys are joined onto base_url
    (CDN_BASE_URL, or /uploads for local storage). Without a base the keys are
    returned as stored. An empty key list yields the fallback image.
    """
    global _warned_missing_base

    keys = [k for k in (image_keys or []) if k]
    if not keys:
        return [settings.FALLBACK_IMAGE_URL]

    base = (base_url if base_url is not None else _default_base()).rstrip("/")
    if not base and not _warned_missing_base:
        _warned_missing_base = True
        logger.warning("CDN_BASE_URL is not set. Serving images using original keys/paths.")

    urls = []
    for key in keys:
        if _ABSOLUTE_URL.match(key) or not base:
            urls.append(key)
            continue
        normalized = key.lstrip("/")
        # Keys saved with the media prefix already resolve locally
        if base == LOCAL_MEDIA_PREFIX and normalized.startswith("uploads/"):
            urls.append(f"/{normalized}")
        else:
            urls.append(f"{base}/{normalized}")
    return urls
