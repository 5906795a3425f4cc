"""
Multi-file gallery upload.

Each file is presigned, then PUT straight to storage with progress reporting
and up to three attempts. The gallery record is created only after every file
has been stored.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Union
import asyncio
import logging
import mimetypes
import re

import httpx

from app.client.api import ApiError, DecorApiClient

logger = logging.getLogger(__name__)

MAX_UPLOAD_ATTEMPTS = 3
TRICKLE_INTERVAL = 0.5
TRICKLE_CEILING = 90
CHUNK_SIZE = 64 * 1024


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class UploadItem:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    progress: int = 0
    status: UploadStatus = UploadStatus.PENDING
    error: Optional[str] = None
    object_key: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "UploadItem":
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(filename=path.name, content=path.read_bytes(), content_type=content_type)


class UploadError(Exception):
    """A file could not be prepared or transferred; nothing was created."""

    def __init__(self, item: UploadItem, message: str):
        super().__init__(f"{item.filename}: {message}")
        self.item = item
        self.message = message


class TransferError(Exception):
    """One failed PUT attempt."""


def parse_keywords(value: Union[str, List[str], None]) -> List[str]:
    """Split free-form keyword input on commas and whitespace."""
    if not value:
        return []
    if isinstance(value, list):
        value = ",".join(value)
    return [k for k in re.split(r"[,\s]+", value) if k]


class ProgressReporter:
    """
    Monotonic 0-100 progress for one transfer.

    While no byte progress arrives a trickle adds 1% per interval, capped
    at TRICKLE_CEILING, so slow starts still move.
    """

    def __init__(self, on_progress: Callable[[int], None], interval: float = TRICKLE_INTERVAL):
        self.on_progress = on_progress
        self.interval = interval
        self.value = 0
        self._trickle: Optional[asyncio.Task] = None

    def report(self, value: int) -> None:
        value = max(0, min(100, int(value)))
        if value > self.value:
            self.value = value
            self.on_progress(value)

    def start_trickle(self) -> None:
        if self._trickle is None:
            self._trickle = asyncio.create_task(self._run_trickle())

    def stop_trickle(self) -> None:
        if self._trickle is not None:
            self._trickle.cancel()
            self._trickle = None

    async def _run_trickle(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.value < TRICKLE_CEILING:
                self.report(self.value + 1)


async def put_with_progress(
    http: httpx.AsyncClient,
    url: str,
    item: UploadItem,
    on_progress: Callable[[int], None],
    chunk_size: int = CHUNK_SIZE,
    trickle_interval: float = TRICKLE_INTERVAL,
) -> None:
    """
    PUT item.content to url with its Content-Type.

    Raises:
        TransferError: On a network failure or non-2xx status
    """
    reporter = ProgressReporter(on_progress, trickle_interval)
    total = len(item.content)

    async def body() -> AsyncIterator[bytes]:
        sent = 0
        for start in range(0, total, chunk_size):
            chunk = item.content[start:start + chunk_size]
            yield chunk
            sent += len(chunk)
            reporter.stop_trickle()
            reporter.report(sent * 100 // total)

    reporter.report(1)
    reporter.start_trickle()
    try:
        response = await http.put(
            url,
            content=body(),
            headers={"Content-Type": item.content_type, "Content-Length": str(total)},
        )
    except httpx.TransportError as e:
        raise TransferError(f"Network error during upload: {str(e)}") from e
    finally:
        reporter.stop_trickle()

    if not response.is_success:
        raise TransferError(f"Upload failed with status {response.status_code}")
    reporter.report(100)


class GalleryUploader:
    """
    Uploads a batch of files and creates one gallery record for them.

    Args:
        api: Logged-in API client
        upload_http: Client used for the storage PUTs (defaults to api.http)
        on_change: Called with an item whenever its status or progress changes
    """

    def __init__(
        self,
        api: DecorApiClient,
        upload_http: Optional[httpx.AsyncClient] = None,
        on_change: Optional[Callable[[UploadItem], None]] = None,
        max_attempts: int = MAX_UPLOAD_ATTEMPTS,
        trickle_interval: float = TRICKLE_INTERVAL,
    ):
        self.api = api
        self.upload_http = upload_http or api.http
        self.on_change = on_change
        self.max_attempts = max_attempts
        self.trickle_interval = trickle_interval

    def _update(self, item: UploadItem, **changes) -> None:
        for name, value in changes.items():
            setattr(item, name, value)
        if "progress" in changes:
            logger.debug(f"{item.filename}: {item.progress}%")
        if self.on_change:
            self.on_change(item)

    async def submit(
        self,
        items: List[UploadItem],
        title: str,
        category: str,
        keywords: Union[str, List[str], None] = "",
    ) -> dict:
        """
        Upload every item, then create the gallery record.

        Returns:
            The created record as returned by POST /api/gallery

        Raises:
            ValueError: If items is empty
            UploadError: If any file fails; no record is created
            ApiError: If the create call itself fails
        """
        if not items:
            raise ValueError("Please select at least one image")

        for item in items:
            self._update(item, status=UploadStatus.PENDING, progress=0, error=None, object_key=None)

        image_keys = []
        for item in items:
            image_keys.append(await self._upload_one(item))

        created = await self.api.create_gallery_item(
            title=title,
            category=category,
            keywords=parse_keywords(keywords),
            image_keys=image_keys,
        )
        self.api.cache.prepend_gallery_record(created)
        logger.info(f"Created {created.get('designId')} with {len(image_keys)} image(s)")
        return created

    async def _upload_one(self, item: UploadItem) -> str:
        try:
            target = await self.api.presign_upload(item.filename, item.content_type)
        except ApiError as e:
            self._update(item, status=UploadStatus.ERROR, error=e.message or "Failed to prepare upload")
            raise UploadError(item, item.error) from e

        self._update(item, status=UploadStatus.UPLOADING, progress=0)
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                await put_with_progress(
                    self.upload_http,
                    target["uploadUrl"],
                    item,
                    on_progress=lambda value: self._update(item, progress=value),
                    trickle_interval=self.trickle_interval,
                )
            except TransferError as e:
                last_error = e
                logger.warning(f"Upload attempt {attempt}/{self.max_attempts} for {item.filename} failed: {e}")
                continue

            self._update(item, status=UploadStatus.SUCCESS, progress=100, object_key=target["objectKey"])
            return target["objectKey"]

        self._update(item, status=UploadStatus.ERROR, error=str(last_error))
        raise UploadError(item, str(last_error))
