"""Live file persistence, keyed by (project_id, filename)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pagesmith.models.enums import FileType
from pagesmith.models.project_file import ProjectFile


class FileStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_by_project(self, project_id: str) -> list[ProjectFile]:
        result = await self.session.execute(
            select(ProjectFile)
            .where(ProjectFile.project_id == project_id)
            .order_by(ProjectFile.filename)
        )
        return list(result.scalars().all())

    async def get(self, project_id: str, filename: str) -> ProjectFile | None:
        result = await self.session.execute(
            select(ProjectFile).where(
                ProjectFile.project_id == project_id, ProjectFile.filename == filename
            )
        )
        return result.scalar_one_or_none()

    async def add(
        self, project_id: str, filename: str, content: str, file_type: FileType
    ) -> ProjectFile:
        file = ProjectFile(
            project_id=project_id, filename=filename, content=content, file_type=file_type
        )
        self.session.add(file)
        await self.session.flush()
        return file

    async def update(
        self, file: ProjectFile, content: str, file_type: FileType | None = None
    ) -> ProjectFile:
        file.content = content
        if file_type is not None:
            file.file_type = file_type
        await self.session.flush()
        return file

    async def delete(self, file: ProjectFile) -> None:
        await self.session.delete(file)
        await self.session.flush()
