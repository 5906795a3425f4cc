"""
Tests for object keys and the storage backends.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from app.config import settings
from app.services import cloudinary_service
from app.services.storage import (
    CloudinaryStorage,
    LocalStorage,
    PresignNotSupported,
    S3Storage,
    StorageError,
    create_storage,
    make_object_key,
    validate_object_key,
)
from app.utils.jwt_auth import verify_upload_token


class TestObjectKeys:
    def test_make_object_key_keeps_extension(self):
        key = make_object_key("Birthday Photo.JPG")
        folder, name = key.split("/")
        assert folder == "gallery"
        assert name.endswith(".jpg")
        assert len(name) == 32 + len(".jpg")

    def test_make_object_key_is_unique(self):
        assert make_object_key("a.png") != make_object_key("a.png")

    def test_make_object_key_drops_odd_extensions(self):
        assert "." not in make_object_key("archive.tar gz")
        assert "." not in make_object_key("noextension")

    @pytest.mark.parametrize("key", ["", "../etc/passwd", "gallery/../../x", "/absolute.png", "sp ace.png"])
    def test_validate_rejects(self, key):
        with pytest.raises(StorageError):
            validate_object_key(key)

    def test_validate_accepts(self):
        assert validate_object_key("gallery/abc123.png") == "gallery/abc123.png"


class TestLocalStorage:
    async def test_save_exists_delete(self, storage):
        key = await storage.save("gallery/a.png", b"bytes", "image/png")
        assert key == "gallery/a.png"
        assert await storage.exists(key)
        assert storage.path_for(key).read_bytes() == b"bytes"

        await storage.delete(key)
        assert not await storage.exists(key)

    async def test_delete_missing_is_quiet(self, storage):
        await storage.delete("gallery/never-existed.png")

    def test_media_prefixed_keys_map_to_same_file(self, storage):
        assert storage.path_for("/uploads/gallery/a.png") == storage.path_for("gallery/a.png")

    def test_path_traversal_rejected(self, storage):
        with pytest.raises(StorageError):
            storage.path_for("../outside.png")

    async def test_exists_false_for_invalid_key(self, storage):
        assert not await storage.exists("../outside.png")

    async def test_presign_signs_key_and_type(self, storage):
        url = await storage.presign_upload("gallery/a.png", "image/png")
        assert url.startswith("/api/uploads/gallery/a.png?token=")
        verify_upload_token(url.split("token=", 1)[1], "gallery/a.png", "image/png")


class TestS3Storage:
    @pytest.fixture
    def s3_client(self):
        return MagicMock()

    @pytest.fixture
    def s3(self, s3_client):
        return S3Storage("decor-bucket", "us-east-1", client=s3_client)

    def test_requires_bucket(self):
        with pytest.raises(StorageError):
            S3Storage("", "us-east-1", client=MagicMock())

    async def test_presign_put(self, s3, s3_client):
        s3_client.generate_presigned_url.return_value = "https://s3.example.com/signed"

        url = await s3.presign_upload("gallery/a.png", "image/png")

        assert url == "https://s3.example.com/signed"
        s3_client.generate_presigned_url.assert_called_once_with(
            "put_object",
            Params={"Bucket": "decor-bucket", "Key": "gallery/a.png", "ContentType": "image/png"},
            ExpiresIn=settings.UPLOAD_TOKEN_EXPIRE_SECONDS,
        )

    async def test_save_and_delete(self, s3, s3_client):
        assert await s3.save("gallery/a.png", b"data", "image/png") == "gallery/a.png"
        s3_client.put_object.assert_called_once_with(
            Bucket="decor-bucket", Key="gallery/a.png", Body=b"data", ContentType="image/png"
        )

        await s3.delete("gallery/a.png")
        s3_client.delete_object.assert_called_once_with(Bucket="decor-bucket", Key="gallery/a.png")

    async def test_exists(self, s3, s3_client):
        assert await s3.exists("gallery/a.png")

        s3_client.head_object.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadObject")
        assert not await s3.exists("gallery/a.png")

    async def test_exists_other_errors_raise(self, s3, s3_client):
        s3_client.head_object.side_effect = ClientError({"Error": {"Code": "403"}}, "HeadObject")
        with pytest.raises(StorageError):
            await s3.exists("gallery/a.png")

    async def test_delete_failure_wrapped(self, s3, s3_client):
        s3_client.delete_object.side_effect = ClientError({"Error": {"Code": "500"}}, "DeleteObject")
        with pytest.raises(StorageError):
            await s3.delete("gallery/a.png")


class TestCloudinaryStorage:
    @pytest.fixture
    def cloudinary_storage(self, monkeypatch):
        monkeypatch.setattr(cloudinary_service, "validate_cloudinary_config", lambda: True)
        monkeypatch.setattr(cloudinary_service, "configure_cloudinary", lambda: None)
        return CloudinaryStorage()

    def test_requires_credentials(self, monkeypatch):
        monkeypatch.setattr(cloudinary_service, "validate_cloudinary_config", lambda: False)
        with pytest.raises(StorageError):
            CloudinaryStorage()

    async def test_presign_not_supported(self, cloudinary_storage):
        with pytest.raises(PresignNotSupported):
            await cloudinary_storage.presign_upload("gallery/a.png", "image/png")

    async def test_save_returns_secure_url(self, cloudinary_storage, monkeypatch):
        upload = AsyncMock(return_value={"url": "https://res.cloudinary.com/demo/image/upload/v1/gallery/a.png"})
        monkeypatch.setattr(cloudinary_service, "upload_image", upload)

        key = await cloudinary_storage.save("gallery/a.png", b"data", "image/png")

        assert key == "https://res.cloudinary.com/demo/image/upload/v1/gallery/a.png"
        upload.assert_awaited_once_with(b"data", public_id="gallery/a")

    async def test_delete_uses_public_id(self, cloudinary_storage, monkeypatch):
        delete = AsyncMock(return_value={"result": "ok"})
        monkeypatch.setattr(cloudinary_service, "delete_image", delete)

        await cloudinary_storage.delete("https://res.cloudinary.com/demo/image/upload/v12/gallery/a.png")

        delete.assert_awaited_once_with("gallery/a")


def test_create_storage_rejects_unknown_backend():
    with pytest.raises(StorageError):
        create_storage("ftp")


def test_create_storage_local(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    storage = create_storage("local")
    assert isinstance(storage, LocalStorage)
    assert storage.root == tmp_path.resolve()


class TestCloudinaryService:
    """Retry and URL helpers behind the Cloudinary backend."""

    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch):
        monkeypatch.setattr(cloudinary_service.asyncio, "sleep", AsyncMock())

    async def test_upload_retries_transient_errors(self, monkeypatch):
        from cloudinary.exceptions import Error as CloudinaryError

        upload = MagicMock(side_effect=[
            CloudinaryError("timeout"),
            {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/gallery/a.png", "public_id": "gallery/a"},
        ])
        monkeypatch.setattr(cloudinary_service.cloudinary.uploader, "upload", upload)

        result = await cloudinary_service.upload_image(b"data", public_id="gallery/a")

        assert upload.call_count == 2
        assert result["url"].startswith("https://res.cloudinary.com/")
        assert result["public_id"] == "gallery/a"

    async def test_delete_gives_up_after_max_retries(self, monkeypatch):
        from cloudinary.exceptions import Error as CloudinaryError

        destroy = MagicMock(side_effect=CloudinaryError("down"))
        monkeypatch.setattr(cloudinary_service.cloudinary.uploader, "destroy", destroy)

        with pytest.raises(CloudinaryError):
            await cloudinary_service.delete_image("gallery/a", max_retries=3)
        assert destroy.call_count == 3

    @pytest.mark.parametrize(
        "url,public_id",
        [
            ("https://res.cloudinary.com/demo/image/upload/v1712/gallery/abc.png", "gallery/abc"),
            ("https://res.cloudinary.com/demo/image/upload/abc.jpg", "abc"),
        ],
    )
    def test_extract_public_id(self, url, public_id):
        assert cloudinary_service.extract_public_id_from_url(url) == public_id

    def test_extract_public_id_rejects_other_urls(self):
        with pytest.raises(ValueError):
            cloudinary_service.extract_public_id_from_url("https://cdn.example.com/gallery/a.png")

    def test_validate_config(self, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
        monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
        monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "")
        assert not cloudinary_service.validate_cloudinary_config()
        monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret")
        assert cloudinary_service.validate_cloudinary_config()
