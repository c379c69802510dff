import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import quote
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from drive_api.config import Settings
from drive_api.core.errors import (
    MetadataWriteError,
    NotFound,
    StorageDeleteError,
    StorageError,
    StorageWriteError,
    TooLarge,
    ValidationError,
)
from drive_api.models.file import FileRecord
from drive_api.repositories.files import FileRepository
from drive_api.schemas.file import FileView, Pagination, PurgeReport
from drive_api.storage.base import BlobStore

log = logging.getLogger(__name__)

STORAGE_ERRORS = (ClientError, BotoCoreError, OSError)

# ids and offsets are signed 64-bit in every supported engine
MAX_ROW_ID = 2**63 - 1


@dataclass
class DownloadLink:
    url: str
    file_name: str
    content_type: str


class FileService:
    """
    Owns the lifecycle of file records and keeps them in step with blob storage.

    Ordering rules:
      - upload writes the blob before the row, so a row never points at a missing blob
      - purge deletes the blob before the row, and keeps the row if the blob delete fails
    The opposite inconsistency (a blob with no row) is possible and only logged.
    """

    def __init__(self, repo: FileRepository, storage: BlobStore, settings: Settings):
        self.repo = repo
        self.storage = storage
        self.settings = settings

    # ----------------- upload -----------------

    def validate_upload(self, *, name: str | None, content_type: str | None, size: int | None) -> None:
        if not name:
            raise ValidationError("No file uploaded")
        if not content_type or not content_type.startswith(tuple(self.settings.ALLOWED_MIME_PREFIXES)):
            raise ValidationError("Invalid file type")
        if size is not None and size > self.settings.MAX_UPLOAD_BYTES:
            raise TooLarge()

    def new_storage_key(self, name: str) -> str:
        # millis for ordering in bucket listings, uuid so two uploads in the same ms never collide
        return f"{self.settings.S3_KEY_PREFIX}/{time.time_ns() // 1_000_000}-{uuid4().hex}-{name}"

    async def upload(self, *, name: str, content_type: str, size: int, content: bytes) -> FileRecord:
        self.validate_upload(name=name, content_type=content_type, size=size)
        if size < 0:
            raise ValidationError("Invalid file size")

        key = self.new_storage_key(name)
        metadata = {
            "originalName": quote(name),
            "uploadedAt": datetime.now(timezone.utc).isoformat(),
        }

        try:
            await run_in_threadpool(
                self.storage.put, key=key, data=content, content_type=content_type, metadata=metadata
            )
        except STORAGE_ERRORS as e:
            log.exception("Blob write failed for %r (key=%s)", name, key)
            raise StorageWriteError() from e

        record = FileRecord(name=name, size=size, content_type=content_type, storage_key=key)
        try:
            record = await self.repo.add(record)
        except SQLAlchemyError as e:
            log.error("Metadata insert failed after blob write; orphaned blob key=%s", key, exc_info=True)
            raise MetadataWriteError(orphan_key=key) from e

        log.info("Uploaded file id=%s name=%r size=%s", record.id, record.name, record.size)
        return record

    # ----------------- read -----------------

    async def list_files(
        self,
        *,
        page: int = 1,
        limit: int | None = None,
        view: FileView = FileView.ALL,
        search: str | None = None,
    ) -> tuple[list[FileRecord], Pagination]:
        page = max(page or 1, 1)
        limit = min(max(limit or self.settings.DEFAULT_PAGE_SIZE, 1), self.settings.MAX_PAGE_SIZE)
        search = search.strip() if search else None

        total = await self.repo.count(view=view, search=search)
        offset = (page - 1) * limit
        records = []
        if offset < total:
            records = await self.repo.page(view=view, search=search, limit=limit, offset=offset)

        total_pages = math.ceil(total / limit)
        pagination = Pagination(
            current_page=page,
            total_items=total,
            total_pages=total_pages,
            items_per_page=limit,
            has_next=page < total_pages,
            has_prev=page > 1,
        )
        return records, pagination

    async def get(self, file_id: int) -> FileRecord:
        record = await self.repo.get(file_id) if _is_row_id(file_id) else None
        if record is None:
            raise NotFound()
        return record

    async def get_download_link(self, file_id: int) -> DownloadLink:
        record = await self.get(file_id)
        try:
            url = await run_in_threadpool(
                self.storage.signed_get_url,
                key=record.storage_key,
                expires_in=self.settings.DOWNLOAD_URL_TTL_SECONDS,
                filename=record.name,
            )
        except STORAGE_ERRORS as e:
            log.exception("Signing download URL failed for file id=%s", file_id)
            raise StorageError() from e

        return DownloadLink(url=url, file_name=record.name, content_type=record.content_type)

    # ----------------- flags -----------------

    async def set_starred(self, file_id: int, value: bool) -> None:
        await self._set_flag(file_id, "starred", value)

    async def set_trashed(self, file_id: int, value: bool) -> None:
        await self._set_flag(file_id, "trashed", value)

    async def _set_flag(self, file_id: int, flag: str, value: bool) -> None:
        if not _is_row_id(file_id) or not await self.repo.set_flag(file_id, flag, value):
            raise NotFound()
        log.info("File id=%s %s=%s", file_id, flag, value)

    # ----------------- purge -----------------

    async def purge_forever(self, file_id: int) -> None:
        record = await self.get(file_id)
        try:
            await run_in_threadpool(self.storage.delete, key=record.storage_key)
        except STORAGE_ERRORS as e:
            log.exception("Blob delete failed for file id=%s (key=%s); row kept", file_id, record.storage_key)
            raise StorageDeleteError() from e

        try:
            await self.repo.delete(file_id)
        except SQLAlchemyError as e:
            log.error(
                "Row delete failed after blob delete; file id=%s references missing blob key=%s",
                file_id,
                record.storage_key,
                exc_info=True,
            )
            raise MetadataWriteError("Failed to delete file", orphan_key=record.storage_key) from e

        log.info("Purged file id=%s key=%s", file_id, record.storage_key)

    async def empty_trash(self) -> PurgeReport:
        report = PurgeReport()
        for file_id in await self.repo.trashed_ids():
            try:
                await self.purge_forever(file_id)
            except (StorageDeleteError, MetadataWriteError):
                report.failed.append(file_id)
            except NotFound:
                # purged by a concurrent request
                continue
            else:
                report.purged.append(file_id)

        log.info("Emptied trash: purged=%s failed=%s", len(report.purged), len(report.failed))
        return report


def _is_row_id(file_id: int) -> bool:
    return 1 <= file_id <= MAX_ROW_ID
