"""
Cloudinary calls used by the "cloudinary" storage backend.
The SDK is synchronous; calls run in a worker thread and transient failures
are retried with exponential backoff.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from app.config import settings
import logging
import asyncio
import re
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

_DELIVERY_PATH = re.compile(r'/image/upload(?:/v\d+)?/(.+)$')


def configure_cloudinary() -> None:
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )


def validate_cloudinary_config() -> bool:
    """Return True if all Cloudinary credentials are set."""
    missing = [
        name for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
        if not getattr(settings, name)
    ]
    if missing:
        logger.warning(f"Cloudinary not configured, missing: {', '.join(missing)}")
        return False
    return True


async def _call_with_retries(action: str, func: Callable[..., Dict[str, Any]], *args, max_retries: int = 3, **kwargs):
    """
    Run a blocking SDK call off the event loop, retrying CloudinaryError.

    Raises:
        CloudinaryError: After max_retries failed attempts
    """
    for attempt in range(1, max_retries + 1):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except CloudinaryError as e:
            if attempt == max_retries:
                logger.error(f"Cloudinary {action} failed after {max_retries} attempts: {str(e)}")
                raise
            delay = 2 ** (attempt - 1)
            logger.warning(f"Cloudinary {action} error (attempt {attempt}/{max_retries}), retrying in {delay}s: {str(e)}")
            await asyncio.sleep(delay)


async def upload_image(data: bytes, public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """
    Upload image bytes.

    Args:
        data: Image bytes
        public_id: Cloudinary public ID, folders included (e.g. gallery/<hex>)

    Returns:
        dict: url (secure delivery URL), public_id, format, bytes
    """
    result = await _call_with_retries(
        f"upload of {public_id}",
        cloudinary.uploader.upload,
        data,
        public_id=public_id,
        overwrite=False,
        resource_type="image",
        max_retries=max_retries,
    )
    logger.info(f"Uploaded image to Cloudinary: {result['public_id']}")
    return {
        "url": result["secure_url"],
        "public_id": result["public_id"],
        "format": result.get("format"),
        "bytes": result.get("bytes"),
    }


async def delete_image(public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """Destroy an image and invalidate its CDN copies. "not found" counts as deleted."""
    result = await _call_with_retries(
        f"delete of {public_id}",
        cloudinary.uploader.destroy,
        public_id,
        invalidate=True,
        resource_type="image",
        max_retries=max_retries,
    )
    if result.get("result") not in ("ok", "not found"):
        logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
    else:
        logger.info(f"Deleted image from Cloudinary: {public_id}")
    return result


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    https://res.cloudinary.com/<cloud>/image/upload/v123/gallery/abc.png -> gallery/abc

    Raises:
        ValueError: If the URL is not a Cloudinary delivery URL
    """
    match = _DELIVERY_PATH.search(cloudinary_url)
    if not match:
        raise ValueError(f"Invalid Cloudinary URL format: {cloudinary_url}")
    path = match.group(1)
    head, _, last = path.rpartition('/')
    last = last.rsplit('.', 1)[0]
    return f"{head}/{last}" if head else last
