"""Project service — the thin project CRUD the version-control core hangs off."""

from __future__ import annotations

import logging

from pagesmith.errors import NotFoundError
from pagesmith.models.project import Project
from pagesmith.schemas.project import ProjectCreate
from pagesmith.services import project_locks
from pagesmith.stores.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


async def require_project(uow: AbstractUnitOfWork, project_id: str) -> Project:
    """Load a project inside an open unit of work or raise NotFoundError."""
    project = await uow.projects.get(project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


async def create_project(uow: AbstractUnitOfWork, data: ProjectCreate) -> Project:
    async with uow:
        project = await uow.projects.add(data.name, data.description)
    logger.info("Created project %s (%s)", project.id, project.name)
    return project


async def get_project(uow: AbstractUnitOfWork, project_id: str) -> Project:
    async with uow:
        return await require_project(uow, project_id)


async def list_projects(uow: AbstractUnitOfWork) -> list[Project]:
    async with uow:
        return await uow.projects.list_all()


async def delete_project(uow: AbstractUnitOfWork, project_id: str) -> None:
    async with project_locks.project_lock(project_id), uow:
        project = await require_project(uow, project_id)
        await uow.projects.delete(project)
    project_locks.forget(project_id)
    logger.info("Deleted project %s with its files, versions and change log", project_id)
