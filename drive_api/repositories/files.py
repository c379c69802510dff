from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import ColumnElement

from drive_api.models.file import FileRecord
from drive_api.schemas.file import FileView


class FileRepository:
    """Metadata store: the `files` table, one row per uploaded blob."""

    def __init__(self, session: AsyncSession, *, recent_window_days: int = 30):
        self.session = session
        self.recent_window_days = recent_window_days

    async def add(self, record: FileRecord) -> FileRecord:
        self.session.add(record)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(record)
        return record

    async def get(self, file_id: int) -> FileRecord | None:
        return await self.session.get(FileRecord, file_id)

    async def set_flag(self, file_id: int, flag: str, value: bool) -> bool:
        """
        Set `starred` or `trashed` in a single UPDATE.

        Returns False when no row has that id.
        """
        if flag not in ("starred", "trashed"):
            raise ValueError(f"unknown flag: {flag}")

        result = await self.session.execute(
            update(FileRecord)
            .where(FileRecord.id == file_id)
            .values({flag: value})
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete(self, file_id: int) -> bool:
        try:
            result = await self.session.execute(delete(FileRecord).where(FileRecord.id == file_id))
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount > 0

    async def page(
        self,
        *,
        view: FileView = FileView.ALL,
        search: str | None = None,
        limit: int,
        offset: int,
    ) -> list[FileRecord]:
        query = (
            select(FileRecord)
            .where(*self._filters(view, search))
            .order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, *, view: FileView = FileView.ALL, search: str | None = None) -> int:
        query = select(func.count()).select_from(FileRecord).where(*self._filters(view, search))
        return (await self.session.execute(query)).scalar_one()

    async def trashed_ids(self) -> list[int]:
        result = await self.session.execute(
            select(FileRecord.id).where(FileRecord.trashed.is_(True)).order_by(FileRecord.id)
        )
        return list(result.scalars().all())

    def _filters(self, view: FileView, search: str | None) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = [true()]

        if view is FileView.DRIVE:
            filters.append(FileRecord.trashed.is_(False))
        elif view is FileView.RECENT:
            since = datetime.now(timezone.utc) - timedelta(days=self.recent_window_days)
            filters.append(FileRecord.trashed.is_(False))
            filters.append(FileRecord.created_at >= since)
        elif view is FileView.STARRED:
            filters.append(FileRecord.trashed.is_(False))
            filters.append(FileRecord.starred.is_(True))
        elif view is FileView.TRASH:
            filters.append(FileRecord.trashed.is_(True))

        if search:
            filters.append(FileRecord.name.ilike(f"%{_escape_like(search)}%", escape="\\"))

        return filters


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
