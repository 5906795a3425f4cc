"""
Image checks and WebP conversion for server-side uploads.
"""
import io
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

WEBP_QUALITY = 85
WEBP_METHOD = 6  # 0-6, slower is smaller
MAX_DIMENSION = 3840


@dataclass
class PreparedUpload:
    data: bytes
    filename: str
    content_type: str


def image_format(data: bytes) -> Optional[str]:
    """Pillow format name (PNG, JPEG, WEBP...) or None if the bytes are not a readable image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            fmt = image.format
            image.verify()
        return fmt
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def is_image(data: bytes) -> bool:
    return image_format(data) is not None


def fit_within(size: Tuple[int, int], max_dimension: int) -> Tuple[int, int]:
    """Scale (width, height) down so neither side exceeds max_dimension."""
    width, height = size
    longest = max(width, height)
    if longest <= max_dimension:
        return size
    ratio = max_dimension / longest
    return max(1, int(width * ratio)), max(1, int(height * ratio))


def convert_to_webp(
    data: bytes,
    quality: int = WEBP_QUALITY,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Optional[bytes]:
    """
    Re-encode an image as WebP, downscaling oversized images.

    Returns:
        WebP bytes, or None if the image could not be converted
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            # Palette images keep transparency via RGBA
            if image.mode == 'P':
                image = image.convert('RGBA')
            elif image.mode not in ('RGB', 'RGBA', 'LA'):
                image = image.convert('RGB')

            if max_dimension:
                target = fit_within(image.size, max_dimension)
                if target != image.size:
                    logger.info(f"Downscaling image from {image.size[0]}x{image.size[1]} to {target[0]}x{target[1]}")
                    image = image.resize(target, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            image.save(buffer, format='WEBP', quality=quality, method=WEBP_METHOD, lossless=quality == 100)
            return buffer.getvalue()

    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return None


def prepare_upload(data: bytes, filename: str, content_type: str, convert: bool = False) -> PreparedUpload:
    """
    Optionally swap an upload for its WebP rendition.

    The WebP version is used only when it is smaller than the original;
    images that are already WebP are left alone.
    """
    prepared = PreparedUpload(data=data, filename=filename, content_type=content_type)
    if not convert or image_format(data) == 'WEBP':
        return prepared

    webp = convert_to_webp(data)
    if webp is None or len(webp) >= len(data):
        return prepared

    logger.info(f"Converted {filename} to WebP: {len(data):,} -> {len(webp):,} bytes")
    return PreparedUpload(
        data=webp,
        filename=os.path.splitext(filename)[0] + ".webp",
        content_type="image/webp",
    )
