"""
Gallery persistence operations.
"""
import logging
from typing import List, Optional, Union

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, GalleryImage
from app.services.design_ids import generate_design_id, sync_sequence
from app.services.storage import StorageBackend, StorageError
from app.utils.search import LIKE_ESCAPE, like_pattern

logger = logging.getLogger(__name__)

DESIGN_ID_ATTEMPTS = 3


async def list_images(
    db: AsyncSession,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> List[GalleryImage]:
    """
    List gallery images, newest first.

    A non-blank search matches design ID, title and keywords case-insensitively
    and takes precedence over the category filter. Category "all" means no filter.
    """
    query = select(GalleryImage).order_by(GalleryImage.created_at.desc())

    search = (search or "").strip()
    if search:
        pattern = like_pattern(search)
        query = query.where(
            or_(
                GalleryImage.design_id.ilike(pattern, escape=LIKE_ESCAPE),
                GalleryImage.title.ilike(pattern, escape=LIKE_ESCAPE),
                GalleryImage.keywords.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    elif category and category != "all":
        query = query.where(GalleryImage.category == category)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_image(db: AsyncSession, design_id: str) -> Optional[GalleryImage]:
    result = await db.execute(
        select(GalleryImage).where(GalleryImage.design_id == design_id)
    )
    return result.scalar_one_or_none()


async def create_image(
    db: AsyncSession,
    title: str,
    category: Union[Category, str],
    keywords: str,
    image_keys: List[str],
) -> GalleryImage:
    """
    Insert one gallery record referencing all image keys, in order.

    The design ID is allocated in the caller's transaction and the insert runs
    in a savepoint. A unique violation on design_id rolls back only the insert,
    moves the counter past the highest existing number and retries.
    """
    if not image_keys:
        raise ValueError("A gallery image needs at least one image key")

    category_value = category.value if isinstance(category, Category) else category

    for attempt in range(1, DESIGN_ID_ATTEMPTS + 1):
        design_id = await generate_design_id(db, category_value)
        image = GalleryImage(
            design_id=design_id,
            title=title,
            category=category_value,
            keywords=keywords or "",
            image_keys=list(image_keys),
        )
        try:
            async with db.begin_nested():
                db.add(image)
                await db.flush()
        except IntegrityError:
            logger.warning(
                f"Design ID {design_id} already taken (attempt {attempt}/{DESIGN_ID_ATTEMPTS})"
            )
            if attempt == DESIGN_ID_ATTEMPTS:
                raise
            await sync_sequence(db, category_value)
            continue

        await db.refresh(image)
        logger.info(f"Created gallery image {design_id} with {len(image_keys)} image(s)")
        return image


async def delete_image(db: AsyncSession, image: GalleryImage, storage: StorageBackend) -> List[str]:
    """
    Delete stored objects for a gallery image, then its record.

    Storage failures are logged and do not block removal of the record.

    Returns:
        list: keys that could not be removed from storage
    """
    failed = []
    for key in image.image_keys or []:
        try:
            await storage.delete(key)
        except StorageError as e:
            logger.error(f"Failed to delete stored object {key} for {image.design_id}: {str(e)}")
            failed.append(key)

    await db.execute(delete(GalleryImage).where(GalleryImage.id == image.id))
    await db.flush()
    logger.info(f"Deleted gallery image {image.design_id}")
    return failed
