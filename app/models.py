"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(str, enum.Enum):
    """Gallery image categories."""
    BIRTHDAYS = "birthdays"
    WEDDINGS = "weddings"
    CORPORATE = "corporate"


class User(Base):
    """
    Admin user model.
    Passwords are stored as bcrypt hashes.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    username = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)


class GalleryImage(Base):
    """
    Gallery image model.
    One design (design_id) may reference several stored images, kept in upload order.
    """
    __tablename__ = "gallery_images"

    id = Column(String(36), primary_key=True, default=_new_id)
    design_id = Column(String, nullable=False, unique=True, index=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    keywords = Column(Text, nullable=False, default="")
    image_keys = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)


class ContactMessage(Base):
    """
    Contact form submission (lead).
    design_id is a soft reference to a gallery image and is not enforced.
    """
    __tablename__ = "contact_messages"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True, index=True)
    event_date = Column(String, nullable=True)
    design_id = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)


class DesignIdSequence(Base):
    """Per-prefix counter backing design ID allocation."""
    __tablename__ = "design_id_sequences"

    prefix = Column(String, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
