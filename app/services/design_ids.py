"""
Design ID allocation.

Design IDs look like FLORAL-007 or BALLOON-012. Numbers come from a per-prefix
counter row that is incremented with a single UPDATE ... RETURNING, so two
uploads in the same category can never be handed the same number. The counter
is seeded from existing records the first time a prefix is used.
"""
import logging
import re
from typing import Optional, Union

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, DesignIdSequence, GalleryImage

logger = logging.getLogger(__name__)

FLORAL_PREFIX = "FLORAL"
BALLOON_PREFIX = "BALLOON"


def prefix_for_category(category: Union[Category, str]) -> str:
    """Weddings and corporate designs are floral; everything else is balloons."""
    value = category.value if isinstance(category, Category) else str(category)
    if value in (Category.WEDDINGS.value, Category.CORPORATE.value):
        return FLORAL_PREFIX
    return BALLOON_PREFIX


def format_design_id(prefix: str, number: int) -> str:
    return f"{prefix}-{number:03d}"


def parse_design_number(design_id: str, prefix: str) -> Optional[int]:
    """Numeric suffix of a design ID with the given prefix, or None."""
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", design_id or "")
    return int(match.group(1)) if match else None


async def max_existing_number(db: AsyncSession, prefix: str) -> int:
    """Largest number already used by a gallery record with this prefix (0 if none)."""
    result = await db.execute(
        select(GalleryImage.design_id).where(GalleryImage.design_id.like(f"{prefix}-%"))
    )
    numbers = [parse_design_number(design_id, prefix) for design_id in result.scalars()]
    return max((n for n in numbers if n is not None), default=0)


def _insert_if_absent(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert(DesignIdSequence).on_conflict_do_nothing(index_elements=["prefix"])
    if dialect_name == "sqlite":
        return sqlite.insert(DesignIdSequence).on_conflict_do_nothing(index_elements=["prefix"])
    return insert(DesignIdSequence)


async def _ensure_sequence(db: AsyncSession, prefix: str) -> None:
    existing = await db.execute(
        select(DesignIdSequence.prefix).where(DesignIdSequence.prefix == prefix)
    )
    if existing.scalar_one_or_none() is not None:
        return

    seed = await max_existing_number(db, prefix)
    dialect_name = db.get_bind().dialect.name
    await db.execute(_insert_if_absent(dialect_name).values(prefix=prefix, last_value=seed))
    logger.info(f"Seeded design ID sequence {prefix} at {seed}")


async def generate_design_id(db: AsyncSession, category: Union[Category, str]) -> str:
    """
    Allocate the next design ID for a category.

    Runs inside the caller's transaction; the counter row stays locked until it commits.
    """
    prefix = prefix_for_category(category)
    await _ensure_sequence(db, prefix)

    result = await db.execute(
        update(DesignIdSequence)
        .where(DesignIdSequence.prefix == prefix)
        .values(last_value=DesignIdSequence.last_value + 1)
        .returning(DesignIdSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    number = result.scalar_one()
    design_id = format_design_id(prefix, number)
    logger.info(f"Allocated design ID {design_id}")
    return design_id


async def sync_sequence(db: AsyncSession, category: Union[Category, str]) -> int:
    """
    Move a prefix's counter up to the highest number already used by a record.

    Used after a collision with a record written outside the counter. The
    counter never moves down.

    Returns:
        int: the counter value after syncing
    """
    prefix = prefix_for_category(category)
    await _ensure_sequence(db, prefix)

    highest = await max_existing_number(db, prefix)
    await db.execute(
        update(DesignIdSequence)
        .where(DesignIdSequence.prefix == prefix, DesignIdSequence.last_value < highest)
        .values(last_value=highest)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(
        select(DesignIdSequence.last_value).where(DesignIdSequence.prefix == prefix)
    )
    last_value = result.scalar_one()
    logger.info(f"Synced design ID sequence {prefix} to {last_value}")
    return last_value
