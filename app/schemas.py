"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
JSON payloads use camelCase field names.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional, List, Union

from app.models import Category, GalleryImage
from app.utils.image_urls import get_image_urls


class CamelModel(BaseModel):
    """Base schema emitting and accepting camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def normalize_keywords(value: Union[str, List[str], None]) -> str:
    """Join keyword lists into the stored comma-separated form."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return ", ".join(k.strip() for k in value if k and k.strip())


class GalleryImageResponse(CamelModel):
    """
    Response schema for gallery image data.
    image_paths mirrors image_keys for older consumers; image_urls are the resolved public URLs.
    """
    id: str
    design_id: str
    title: str
    category: str
    keywords: str
    image_keys: List[str]
    image_paths: List[str]
    image_urls: List[str]
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, image: GalleryImage) -> "GalleryImageResponse":
        keys = list(image.image_keys or [])
        return cls(
            id=image.id,
            design_id=image.design_id,
            title=image.title,
            category=image.category,
            keywords=image.keywords or "",
            image_keys=keys,
            image_paths=keys,
            image_urls=get_image_urls(keys),
            created_at=image.created_at,
        )


class GalleryImageCreate(CamelModel):
    """
    Request schema for creating a gallery item from already uploaded objects.
    Used by the JSON variant of POST /api/gallery.
    """
    title: str = Field(min_length=1)
    category: Category
    keywords: Union[str, List[str], None] = ""
    image_keys: List[str] = Field(
        min_length=1,
        validation_alias=AliasChoices("imageKeys", "imagePaths", "image_keys"),
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("keywords")
    @classmethod
    def join_keywords(cls, v):
        return normalize_keywords(v)

    @field_validator("image_keys")
    @classmethod
    def validate_keys(cls, v: List[str]) -> List[str]:
        keys = [k.strip() for k in v if k and k.strip()]
        if not keys:
            raise ValueError("At least one image key is required")
        return keys


class PresignUploadRequest(CamelModel):
    """Request schema for POST /api/gallery/presign-upload."""
    filename: str = Field(min_length=1)
    content_type: str = "application/octet-stream"

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        if not v.startswith("image/"):
            raise ValueError("Only image files are allowed")
        return v


class PresignUploadResponse(CamelModel):
    """Direct upload target for a single file."""
    upload_url: str
    object_key: str


class ContactMessageCreate(CamelModel):
    """
    Request schema for the public contact form.
    Blank optional fields are stored as null.
    """
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    event_date: Optional[str] = None
    design_id: Optional[str] = None
    message: str = Field(min_length=1)

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v

    @field_validator("phone", "event_date", "design_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ContactMessageResponse(CamelModel):
    """Response schema for a stored lead."""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    event_date: Optional[str] = None
    design_id: Optional[str] = None
    message: str
    created_at: Optional[datetime] = None


class CloseLeadResponse(CamelModel):
    message: str
    phone: str
    deleted_count: int


class LoginRequest(BaseModel):
    password: str


class LoginResponse(CamelModel):
    """Bearer token issued on successful admin login."""
    token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime
