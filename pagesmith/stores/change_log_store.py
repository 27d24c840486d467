"""Change log store — the per-project undo stack of file mutations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import NamedTuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pagesmith.models.enums import ChangeType
from pagesmith.models.file_change import FileChange


class PendingChange(NamedTuple):
    filename: str
    old_content: str | None
    new_content: str
    change_type: ChangeType


class ChangeLogStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _next_sequence(self, project_id: str) -> int:
        result = await self.session.execute(
            select(func.max(FileChange.sequence)).where(FileChange.project_id == project_id)
        )
        return (result.scalar_one() or 0) + 1

    async def append(
        self,
        project_id: str,
        filename: str,
        old_content: str | None,
        new_content: str,
        change_type: ChangeType,
    ) -> FileChange:
        [change] = await self.append_batch(
            project_id, [PendingChange(filename, old_content, new_content, change_type)]
        )
        return change

    async def append_batch(
        self, project_id: str, changes: Sequence[PendingChange]
    ) -> list[FileChange]:
        if not changes:
            return []
        sequence = await self._next_sequence(project_id)
        rows = [
            FileChange(
                project_id=project_id,
                sequence=sequence + offset,
                filename=change.filename,
                old_content=change.old_content,
                new_content=change.new_content,
                change_type=change.change_type,
            )
            for offset, change in enumerate(changes)
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    def _newest_first(self, project_id: str, limit: int | None, offset: int | None):
        stmt = (
            select(FileChange)
            .where(FileChange.project_id == project_id)
            .order_by(FileChange.sequence.desc())
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    async def list_by_project(
        self, project_id: str, limit: int | None = None, offset: int | None = None
    ) -> list[FileChange]:
        result = await self.session.execute(self._newest_first(project_id, limit, offset))
        return list(result.scalars().all())

    async def list_by_file(
        self,
        project_id: str,
        filename: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[FileChange]:
        stmt = self._newest_first(project_id, limit, offset).where(FileChange.filename == filename)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_since(self, project_id: str, since: datetime) -> list[FileChange]:
        stmt = self._newest_first(project_id, None, None).where(FileChange.created_at >= since)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def top(self, project_id: str) -> FileChange | None:
        """The most recent change of the project, across all files."""
        result = await self.session.execute(self._newest_first(project_id, 1, None))
        return result.scalar_one_or_none()

    async def remove(self, change: FileChange) -> None:
        await self.session.delete(change)
        await self.session.flush()

    async def count(self, project_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(FileChange).where(FileChange.project_id == project_id)
        )
        return result.scalar_one()

    async def clear(self, project_id: str) -> int:
        result = await self.session.execute(
            delete(FileChange).where(FileChange.project_id == project_id)
        )
        return result.rowcount
