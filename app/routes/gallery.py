"""
Gallery routes.
Public listing/search and lookup by design ID; admin upload, presign and delete.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from typing import List, Optional
from urllib.parse import urljoin
import asyncio
import json
import logging

from app.config import settings
from app.database import get_db
from app.models import Category
from app.schemas import (
    GalleryImageCreate,
    GalleryImageResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    normalize_keywords,
)
from app.services import gallery as gallery_service
from app.services.storage import (
    PresignNotSupported,
    StorageBackend,
    StorageError,
    get_storage,
    make_object_key,
)
from app.utils.image_converter import is_image, prepare_upload
from app.utils.jwt_auth import verify_admin_token
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/gallery", response_model=List[GalleryImageResponse])
async def list_gallery_images(
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    List gallery images, newest first.

    Args:
        category: Exact category match ("all" or empty for every category)
        search: Case-insensitive substring matched against design ID, title and keywords
    """
    try:
        images = await gallery_service.list_images(db, category=category, search=search)
        logger.info(f"Retrieved {len(images)} gallery images (category: {category}, search: {search!r})")
        return [GalleryImageResponse.from_model(img) for img in images]

    except Exception as e:
        logger.error(f"Failed to retrieve gallery images: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch gallery images", "message": str(e)}
        )


@router.get("/gallery/{design_id}", response_model=GalleryImageResponse)
async def get_gallery_image(design_id: str, db: AsyncSession = Depends(get_db)):
    """Get a single gallery image by design ID."""
    try:
        image = await gallery_service.get_image(db, design_id)
        if not image:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Image not found", "message": f"Design {design_id} does not exist"}
            )
        return GalleryImageResponse.from_model(image)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch gallery image {design_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch image", "message": str(e)}
        )


@router.post("/gallery/presign-upload", response_model=PresignUploadResponse)
@limiter.limit(RATE_LIMITS["upload"])
async def presign_gallery_upload(
    payload: PresignUploadRequest,
    request: Request,
    storage: StorageBackend = Depends(get_storage),
    token: dict = Depends(verify_admin_token)
):
    """
    Issue a direct upload target for one file.

    Returns:
        PresignUploadResponse: uploadUrl to PUT the file to, objectKey to send back on create
    """
    object_key = make_object_key(payload.filename)
    try:
        upload_url = await storage.presign_upload(object_key, payload.content_type)
    except PresignNotSupported as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Direct upload unavailable", "message": str(e)}
        )
    except StorageError as e:
        logger.error(f"Failed to presign upload for {payload.filename}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to prepare upload", "message": str(e)}
        )

    # Local targets are relative to this API
    upload_url = urljoin(str(request.base_url), upload_url)
    logger.info(f"Presigned upload for {payload.filename} -> {object_key}")
    return PresignUploadResponse(upload_url=upload_url, object_key=object_key)


@router.post("/gallery", response_model=GalleryImageResponse, status_code=status.HTTP_201_CREATED)
async def create_gallery_image(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    token: dict = Depends(verify_admin_token)
):
    """
    Create a gallery item.

    Accepts either multipart form data (one or more "image" files plus category,
    title and keywords), stored server-side, or JSON {title, category, keywords,
    imageKeys} referencing objects already uploaded through presign-upload.
    """
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("multipart/form-data"):
            return await _create_from_form(request, db, storage)
        return await _create_from_json(request, db, storage)

    except (HTTPException, RequestValidationError):
        raise
    except Exception as e:
        logger.error(f"Error creating gallery image: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload image", "message": str(e)}
        )


async def _create_from_json(request: Request, db: AsyncSession, storage: StorageBackend) -> GalleryImageResponse:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid JSON", "message": "Request body must be JSON or multipart form data"}
        )

    try:
        payload = GalleryImageCreate.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))

    missing = [key for key in payload.image_keys if not await storage.exists(key)]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Unknown image keys", "message": f"Objects not found in storage: {missing}"}
        )

    image = await gallery_service.create_image(
        db,
        title=payload.title,
        category=payload.category,
        keywords=payload.keywords,
        image_keys=payload.image_keys,
    )
    return GalleryImageResponse.from_model(image)


async def _create_from_form(request: Request, db: AsyncSession, storage: StorageBackend) -> GalleryImageResponse:
    form = await request.form()
    files = [f for f in form.getlist("image") if isinstance(f, UploadFile)]

    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No image file provided", "message": "At least one image file is required"}
        )

    title = str(form.get("title") or "").strip()
    raw_category = str(form.get("category") or "").strip()
    if not title or not raw_category:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing fields", "message": "Category and title are required"}
        )
    try:
        category = Category(raw_category)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid category", "message": f"Unknown category: {raw_category}"}
        )
    keywords = normalize_keywords(str(form.get("keywords") or ""))

    for file in files:
        if not file.content_type or not file.content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "Invalid file type", "message": f"File '{file.filename}' is not an image"}
            )

    # Store every file before creating the record; undo on any failure
    stored_keys = []
    try:
        for file in files:
            stored_keys.append(await _store_upload(file, storage))
        image = await gallery_service.create_image(
            db, title=title, category=category, keywords=keywords, image_keys=stored_keys
        )
    except Exception:
        for key in stored_keys:
            try:
                await storage.delete(key)
            except StorageError as cleanup_error:
                logger.warning(f"Failed to clean up {key}: {cleanup_error}")
        raise

    return GalleryImageResponse.from_model(image)


async def _store_upload(file: UploadFile, storage: StorageBackend) -> str:
    data = await file.read()
    filename = file.filename or "upload"

    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "error": "File too large",
                "message": f"File '{filename}' exceeds {settings.MAX_UPLOAD_BYTES:,} bytes"
            }
        )

    if not is_image(data):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid file type", "message": f"File '{filename}' is not a readable image"}
        )

    prepared = await asyncio.to_thread(
        prepare_upload, data, filename, file.content_type, settings.CONVERT_UPLOADS_TO_WEBP
    )
    key = make_object_key(prepared.filename)
    return await storage.save(key, prepared.data, prepared.content_type)


@router.delete("/gallery/{design_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_gallery_image(
    design_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    token: dict = Depends(verify_admin_token)
):
    """Delete a gallery image and every stored object it references."""
    try:
        image = await gallery_service.get_image(db, design_id)
        if not image:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Image not found", "message": f"Design {design_id} does not exist"}
            )

        failed = await gallery_service.delete_image(db, image, storage)
        if failed:
            logger.warning(f"Deleted {design_id} but {len(failed)} stored object(s) remain: {failed}")

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting gallery image {design_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete image", "message": str(e)}
        )
