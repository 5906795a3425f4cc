"""
Tests for design ID allocation and gallery record creation.
"""
import pytest
from sqlalchemy import select

from app.models import Category, DesignIdSequence, GalleryImage
from app.services import gallery as gallery_service
from app.services.design_ids import (
    BALLOON_PREFIX,
    FLORAL_PREFIX,
    format_design_id,
    generate_design_id,
    parse_design_number,
    prefix_for_category,
    sync_sequence,
)


class TestDesignIdFormat:
    """Prefix mapping and formatting."""

    @pytest.mark.parametrize(
        "category,prefix",
        [
            (Category.WEDDINGS, FLORAL_PREFIX),
            (Category.CORPORATE, FLORAL_PREFIX),
            (Category.BIRTHDAYS, BALLOON_PREFIX),
            ("corporate", FLORAL_PREFIX),
            ("something-else", BALLOON_PREFIX),
        ],
    )
    def test_prefix_for_category(self, category, prefix):
        assert prefix_for_category(category) == prefix

    def test_format_pads_to_three_digits(self):
        assert format_design_id("FLORAL", 7) == "FLORAL-007"
        assert format_design_id("BALLOON", 42) == "BALLOON-042"

    def test_format_grows_past_three_digits(self):
        assert format_design_id("FLORAL", 1234) == "FLORAL-1234"

    def test_parse_design_number(self):
        assert parse_design_number("FLORAL-012", "FLORAL") == 12
        assert parse_design_number("BALLOON-012", "FLORAL") is None
        assert parse_design_number("FLORAL-abc", "FLORAL") is None


class TestGenerateDesignId:
    """Counter-backed allocation."""

    async def test_first_id_per_prefix(self, session):
        assert await generate_design_id(session, Category.WEDDINGS) == "FLORAL-001"
        assert await generate_design_id(session, Category.BIRTHDAYS) == "BALLOON-001"

    async def test_weddings_and_corporate_share_a_sequence(self, session):
        assert await generate_design_id(session, Category.WEDDINGS) == "FLORAL-001"
        assert await generate_design_id(session, Category.CORPORATE) == "FLORAL-002"
        assert await generate_design_id(session, Category.WEDDINGS) == "FLORAL-003"

    async def test_seeded_from_existing_records(self, session):
        session.add(GalleryImage(
            design_id="BALLOON-041",
            title="Existing",
            category="birthdays",
            keywords="",
            image_keys=["gallery/a.png"],
        ))
        session.add(GalleryImage(
            design_id="BALLOON-007",
            title="Older",
            category="birthdays",
            keywords="",
            image_keys=["gallery/b.png"],
        ))
        await session.flush()

        assert await generate_design_id(session, Category.BIRTHDAYS) == "BALLOON-042"

        result = await session.execute(
            select(DesignIdSequence.last_value).where(DesignIdSequence.prefix == BALLOON_PREFIX)
        )
        assert result.scalar_one() == 42

    async def test_sync_sequence_moves_up_only(self, session):
        assert await generate_design_id(session, Category.BIRTHDAYS) == "BALLOON-001"
        assert await generate_design_id(session, Category.BIRTHDAYS) == "BALLOON-002"

        # No records yet, so the counter stays where it is
        assert await sync_sequence(session, Category.BIRTHDAYS) == 2

        session.add(GalleryImage(
            design_id="BALLOON-010",
            title="Imported",
            category="birthdays",
            keywords="",
            image_keys=["gallery/a.png"],
        ))
        await session.flush()

        assert await sync_sequence(session, Category.BIRTHDAYS) == 10
        assert await generate_design_id(session, Category.BIRTHDAYS) == "BALLOON-011"


class TestCreateImage:
    """Gallery record creation."""

    async def test_created_ids_are_unique_and_increasing(self, session):
        ids = []
        for i in range(5):
            image = await gallery_service.create_image(
                session,
                title=f"Design {i}",
                category=Category.BIRTHDAYS,
                keywords="balloons",
                image_keys=[f"gallery/{i}.png"],
            )
            ids.append(image.design_id)

        assert ids == [f"BALLOON-00{n}" for n in range(1, 6)]

    async def test_keeps_image_keys_in_order(self, session):
        keys = ["gallery/c.png", "gallery/a.png", "gallery/b.png"]
        image = await gallery_service.create_image(
            session, title="Arch", category=Category.WEDDINGS, keywords="", image_keys=keys
        )
        assert image.image_keys == keys
        assert image.category == "weddings"

    async def test_skips_ids_taken_outside_the_counter(self, session):
        first = await gallery_service.create_image(
            session, title="First", category=Category.WEDDINGS, keywords="", image_keys=["gallery/1.png"]
        )
        assert first.design_id == "FLORAL-001"

        # Written without going through the counter
        session.add(GalleryImage(
            design_id="FLORAL-002",
            title="Imported",
            category="weddings",
            keywords="",
            image_keys=["gallery/2.png"],
        ))
        await session.flush()

        image = await gallery_service.create_image(
            session, title="Next", category=Category.CORPORATE, keywords="", image_keys=["gallery/3.png"]
        )
        assert image.design_id == "FLORAL-003"

        result = await session.execute(
            select(DesignIdSequence.last_value).where(DesignIdSequence.prefix == FLORAL_PREFIX)
        )
        assert result.scalar_one() == 3

        following = await gallery_service.create_image(
            session, title="After", category=Category.WEDDINGS, keywords="", image_keys=["gallery/4.png"]
        )
        assert following.design_id == "FLORAL-004"

        # Earlier work in the same transaction is kept
        result = await session.execute(select(GalleryImage.design_id).order_by(GalleryImage.design_id))
        assert list(result.scalars()) == ["FLORAL-001", "FLORAL-002", "FLORAL-003", "FLORAL-004"]

    async def test_requires_image_keys(self, session):
        with pytest.raises(ValueError):
            await gallery_service.create_image(
                session, title="Empty", category=Category.WEDDINGS, keywords="", image_keys=[]
            )
