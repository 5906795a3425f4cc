"""
Contact lead persistence operations.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ContactMessage
from app.schemas import ContactMessageCreate
from app.utils.search import LIKE_ESCAPE, like_pattern

logger = logging.getLogger(__name__)


async def create_contact_message(db: AsyncSession, data: ContactMessageCreate) -> ContactMessage:
    message = ContactMessage(
        name=data.name,
        email=data.email,
        phone=data.phone,
        event_date=data.event_date,
        design_id=data.design_id,
        message=data.message,
    )
    db.add(message)
    await db.flush()
    await db.refresh(message)
    logger.info(f"Stored contact message {message.id} (design: {message.design_id or '-'})")
    return message


async def list_contact_messages(db: AsyncSession, search: Optional[str] = None) -> List[ContactMessage]:
    """Leads newest first, optionally filtered by name, email or message text."""
    query = select(ContactMessage).order_by(ContactMessage.created_at.desc())

    search = (search or "").strip()
    if search:
        pattern = like_pattern(search)
        query = query.where(
            or_(
                ContactMessage.name.ilike(pattern, escape=LIKE_ESCAPE),
                ContactMessage.email.ilike(pattern, escape=LIKE_ESCAPE),
                ContactMessage.message.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    result = await db.execute(query)
    return list(result.scalars().all())


async def close_leads_by_phone(db: AsyncSession, phone: str) -> int:
    """Delete every lead with this phone number. Returns how many were removed."""
    result = await db.execute(
        delete(ContactMessage).where(ContactMessage.phone == phone)
    )
    await db.flush()
    count = result.rowcount or 0
    logger.info(f"Closed {count} lead(s) for phone {phone}")
    return count
