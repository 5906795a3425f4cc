"""
Object storage backends for gallery images.

- local: files on disk under UPLOAD_DIR, served at /uploads; direct uploads go
  through PUT /api/uploads/{key} signed with a short-lived token
- s3: boto3 presigned PUT URLs, objects deleted with delete_object
- cloudinary: server-side uploads only
"""
import asyncio
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from cloudinary.exceptions import Error as CloudinaryError

from app.config import settings
from app.services import cloudinary_service
from app.utils.jwt_auth import create_upload_token

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._\-/]*$")
_SAFE_EXT = re.compile(r"^\.[A-Za-z0-9]{1,8}$")


class StorageError(Exception):
    """Raised when an object storage operation fails."""


class PresignNotSupported(StorageError):
    """Raised by backends that cannot issue direct upload targets."""


def make_object_key(filename: str, folder: str = "gallery") -> str:
    """Build a collision-free object key, keeping the file extension."""
    ext = os.path.splitext(filename or "")[1].lower()
    if not _SAFE_EXT.match(ext):
        ext = ""
    return f"{folder}/{uuid.uuid4().hex}{ext}"


def validate_object_key(key: str) -> str:
    if not key or ".." in key or not _SAFE_KEY.match(key):
        raise StorageError(f"Invalid object key: {key!r}")
    return key


class StorageBackend:
    """Interface shared by all storage backends."""

    name = "base"

    async def presign_upload(self, object_key: str, content_type: str) -> str:
        """Return a URL the client can PUT the object to."""
        raise NotImplementedError

    async def save(self, object_key: str, data: bytes, content_type: str) -> str:
        """Store bytes and return the key to persist on the gallery record."""
        raise NotImplementedError

    async def delete(self, object_key: str) -> None:
        raise NotImplementedError

    async def exists(self, object_key: str) -> bool:
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Stores objects on local disk."""

    name = "local"

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def path_for(self, object_key: str) -> Path:
        # Keys stored as "/uploads/<key>" by older records map to the same file
        key = object_key.lstrip("/")
        if key.startswith("uploads/"):
            key = key[len("uploads/"):]
        validate_object_key(key)
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Object key escapes upload directory: {object_key!r}")
        return path

    async def presign_upload(self, object_key: str, content_type: str) -> str:
        validate_object_key(object_key)
        token = create_upload_token(object_key, content_type)
        return f"/api/uploads/{quote(object_key)}?token={token}"

    async def save(self, object_key: str, data: bytes, content_type: str) -> str:
        path = self.path_for(object_key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise StorageError(f"Failed to write {object_key}: {e}") from e
        logger.info(f"Stored {len(data):,} bytes at {path}")
        return object_key

    async def delete(self, object_key: str) -> None:
        path = self.path_for(object_key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {object_key}: {e}") from e
        logger.info(f"Deleted local object: {object_key}")

    async def exists(self, object_key: str) -> bool:
        try:
            return self.path_for(object_key).is_file()
        except StorageError:
            return False


class S3Storage(StorageBackend):
    """Stores objects in an S3 bucket; clients upload directly with presigned PUT URLs."""

    name = "s3"

    def __init__(self, bucket: str, region: str, client=None):
        if not bucket:
            raise StorageError("S3_BUCKET is not configured")
        self.bucket = bucket
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=region,
        )
        logger.info(f"Initialized S3 client for bucket: {bucket}")

    async def presign_upload(self, object_key: str, content_type: str) -> str:
        validate_object_key(object_key)
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self.bucket, "Key": object_key, "ContentType": content_type},
                ExpiresIn=settings.UPLOAD_TOKEN_EXPIRE_SECONDS,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to presign {object_key}: {e}") from e

    async def save(self, object_key: str, data: bytes, content_type: str) -> str:
        validate_object_key(object_key)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {object_key}: {e}") from e
        logger.info(f"Uploaded {object_key} to s3://{self.bucket}")
        return object_key

    async def delete(self, object_key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=object_key.lstrip("/"))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete {object_key}: {e}") from e
        logger.info(f"Deleted s3://{self.bucket}/{object_key}")

    async def exists(self, object_key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=object_key.lstrip("/"))
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check {object_key}: {e}") from e


class CloudinaryStorage(StorageBackend):
    """
    Stores objects in Cloudinary.
    The stored key is the secure delivery URL, so it resolves without a CDN base.
    """

    name = "cloudinary"

    def __init__(self):
        if not cloudinary_service.validate_cloudinary_config():
            raise StorageError("Cloudinary credentials are not configured")
        cloudinary_service.configure_cloudinary()

    async def presign_upload(self, object_key: str, content_type: str) -> str:
        raise PresignNotSupported("Direct uploads are not supported by the Cloudinary backend")

    async def save(self, object_key: str, data: bytes, content_type: str) -> str:
        public_id = os.path.splitext(validate_object_key(object_key))[0]
        try:
            result = await cloudinary_service.upload_image(data, public_id=public_id)
        except CloudinaryError as e:
            raise StorageError(f"Failed to upload {object_key}: {e}") from e
        return result["url"]

    async def delete(self, object_key: str) -> None:
        try:
            public_id = cloudinary_service.extract_public_id_from_url(object_key)
        except ValueError:
            public_id = os.path.splitext(object_key)[0]
        try:
            await cloudinary_service.delete_image(public_id)
        except CloudinaryError as e:
            raise StorageError(f"Failed to delete {object_key}: {e}") from e

    async def exists(self, object_key: str) -> bool:
        return object_key.startswith("https://res.cloudinary.com/")


_storage: Optional[StorageBackend] = None


def create_storage(backend: Optional[str] = None) -> StorageBackend:
    """Build the storage backend named by STORAGE_BACKEND."""
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "local":
        return LocalStorage(settings.UPLOAD_DIR)
    if backend == "s3":
        return S3Storage(settings.S3_BUCKET, settings.S3_REGION)
    if backend == "cloudinary":
        return CloudinaryStorage()
    raise StorageError(f"Unknown STORAGE_BACKEND: {backend}")


def get_storage() -> StorageBackend:
    """FastAPI dependency returning the process-wide storage backend."""
    global _storage
    if _storage is None:
        _storage = create_storage()
        logger.info(f"Using {_storage.name} storage backend")
    return _storage
