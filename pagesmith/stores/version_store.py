"""Snapshot store — versions and the file snapshots they own."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pagesmith.models.project_file import ProjectFile
from pagesmith.models.version import FileSnapshot, ProjectVersion


class VersionStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _next_sequence(self, project_id: str) -> int:
        result = await self.session.execute(
            select(func.max(ProjectVersion.sequence)).where(ProjectVersion.project_id == project_id)
        )
        return (result.scalar_one() or 0) + 1

    async def create_from_files(
        self,
        project_id: str,
        name: str,
        description: str | None,
        files: Iterable[ProjectFile],
    ) -> ProjectVersion:
        """Write a version and one snapshot per file in the caller's transaction."""
        version = ProjectVersion(
            project_id=project_id,
            sequence=await self._next_sequence(project_id),
            name=name,
            description=description,
        )
        version.snapshots = [
            FileSnapshot(filename=f.filename, content=f.content, file_type=f.file_type)
            for f in sorted(files, key=lambda f: f.filename)
        ]
        self.session.add(version)
        await self.session.flush()
        return version

    async def get(self, version_id: str, *, with_snapshots: bool = False) -> ProjectVersion | None:
        stmt = select(ProjectVersion).where(ProjectVersion.id == version_id)
        if with_snapshots:
            stmt = stmt.options(selectinload(ProjectVersion.snapshots))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_project(self, project_id: str) -> list[ProjectVersion]:
        result = await self.session.execute(
            select(ProjectVersion)
            .where(ProjectVersion.project_id == project_id)
            .order_by(ProjectVersion.created_at.desc(), ProjectVersion.sequence.desc())
        )
        return list(result.scalars().all())

    async def get_active(self, project_id: str) -> ProjectVersion | None:
        result = await self.session.execute(
            select(ProjectVersion).where(
                ProjectVersion.project_id == project_id, ProjectVersion.is_active.is_(True)
            )
        )
        return result.scalars().first()

    async def set_active(self, version: ProjectVersion) -> ProjectVersion:
        await self.session.execute(
            update(ProjectVersion)
            .where(ProjectVersion.project_id == version.project_id, ProjectVersion.id != version.id)
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        version.is_active = True
        await self.session.flush()
        return version

    async def delete(self, version: ProjectVersion) -> None:
        await self.session.execute(delete(FileSnapshot).where(FileSnapshot.version_id == version.id))
        await self.session.execute(delete(ProjectVersion).where(ProjectVersion.id == version.id))
        self.session.expunge(version)
