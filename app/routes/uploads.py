"""
Direct upload target for the local storage backend.
Presigned URLs issued by POST /api/gallery/presign-upload point here.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
import logging

from app.config import settings
from app.services.storage import LocalStorage, StorageBackend, StorageError, get_storage
from app.utils.jwt_auth import verify_upload_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/uploads/{object_key:path}")
async def receive_upload(
    object_key: str,
    request: Request,
    token: str = Query(..., description="Signed upload token from the presigned URL"),
    storage: StorageBackend = Depends(get_storage)
):
    """
    Store the raw request body as object_key.

    Raises:
        HTTPException: 403 for a bad token, 404 when not using local storage,
            413 when the body is too large
    """
    if not isinstance(storage, LocalStorage):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Not found", "message": "Direct uploads are only served for local storage"}
        )

    content_type = request.headers.get("content-type", "application/octet-stream")
    verify_upload_token(token, object_key, content_type)

    data = await request.body()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={"error": "File too large", "message": f"Uploads are limited to {settings.MAX_UPLOAD_BYTES:,} bytes"}
        )

    try:
        await storage.save(object_key, data, content_type)
    except StorageError as e:
        logger.error(f"Failed to store direct upload {object_key}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Upload failed", "message": str(e)}
        )

    logger.info(f"Received direct upload {object_key} ({len(data):,} bytes)")
    return Response(status_code=status.HTTP_200_OK)
