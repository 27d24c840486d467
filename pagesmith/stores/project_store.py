"""Project persistence."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pagesmith.models.file_change import FileChange
from pagesmith.models.project import Project
from pagesmith.models.project_file import ProjectFile
from pagesmith.models.version import FileSnapshot, ProjectVersion


class ProjectStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, name: str, description: str | None = None) -> Project:
        project = Project(name=name, description=description)
        self.session.add(project)
        await self.session.flush()
        return project

    async def get(self, project_id: str) -> Project | None:
        return await self.session.get(Project, project_id)

    async def list_all(self) -> list[Project]:
        result = await self.session.execute(select(Project).order_by(Project.created_at.desc()))
        return list(result.scalars().all())

    async def delete(self, project: Project) -> None:
        # Children first, so the cascade holds even where the engine ignores FK actions.
        version_ids = select(ProjectVersion.id).where(ProjectVersion.project_id == project.id)
        await self.session.execute(
            delete(FileSnapshot).where(FileSnapshot.version_id.in_(version_ids))
        )
        await self.session.execute(
            delete(ProjectVersion).where(ProjectVersion.project_id == project.id)
        )
        await self.session.execute(delete(FileChange).where(FileChange.project_id == project.id))
        await self.session.execute(delete(ProjectFile).where(ProjectFile.project_id == project.id))
        await self.session.delete(project)
        await self.session.flush()
