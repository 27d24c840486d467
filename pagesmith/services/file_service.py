"""File service — the tracked write path for live project files.

Every create/update/delete writes its FileChange in the same transaction
as the file mutation, so the undo stack never drifts from the live state.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from pagesmith.errors import ConflictError, NotFoundError, ValidationError
from pagesmith.models.enums import ChangeType, FileType, infer_file_type
from pagesmith.models.project_file import ProjectFile
from pagesmith.services import project_locks
from pagesmith.services.project_service import require_project
from pagesmith.stores.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def validate_filename(filename: str) -> str:
    name = filename.strip()
    if not name:
        raise ValidationError("Filename is required")
    if name.startswith("/") or ".." in PurePosixPath(name).parts:
        raise ValidationError(f"Invalid filename: {filename!r}")
    return name


async def list_files(uow: AbstractUnitOfWork, project_id: str) -> list[ProjectFile]:
    async with uow:
        await require_project(uow, project_id)
        return await uow.files.list_by_project(project_id)


async def get_file(uow: AbstractUnitOfWork, project_id: str, filename: str) -> ProjectFile:
    async with uow:
        await require_project(uow, project_id)
        file = await uow.files.get(project_id, filename)
        if file is None:
            raise NotFoundError("File", filename)
        return file


async def create_file(
    uow: AbstractUnitOfWork,
    project_id: str,
    filename: str,
    content: str,
    file_type: FileType | None = None,
) -> ProjectFile:
    filename = validate_filename(filename)
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        if await uow.files.get(project_id, filename) is not None:
            raise ConflictError(f"File '{filename}' already exists")
        file = await uow.files.add(
            project_id, filename, content, file_type or infer_file_type(filename)
        )
        await uow.changes.append(project_id, filename, None, content, ChangeType.CREATE)
    logger.info("Created %s in project %s", filename, project_id)
    return file


async def update_file(
    uow: AbstractUnitOfWork,
    project_id: str,
    filename: str,
    content: str,
    file_type: FileType | None = None,
) -> ProjectFile:
    """Rewrite a file; a change is recorded only when the content differs."""
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        file = await uow.files.get(project_id, filename)
        if file is None:
            raise NotFoundError("File", filename)
        old_content = file.content
        await uow.files.update(file, content, file_type)
        if content != old_content:
            await uow.changes.append(
                project_id, filename, old_content, content, ChangeType.UPDATE
            )
    return file


async def upsert_file(
    uow: AbstractUnitOfWork,
    project_id: str,
    filename: str,
    content: str,
    file_type: FileType | None = None,
) -> tuple[ProjectFile, bool]:
    """Create or update; returns (file, created)."""
    filename = validate_filename(filename)
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        file = await uow.files.get(project_id, filename)
        if file is None:
            file = await uow.files.add(
                project_id, filename, content, file_type or infer_file_type(filename)
            )
            await uow.changes.append(project_id, filename, None, content, ChangeType.CREATE)
            return file, True

        old_content = file.content
        await uow.files.update(file, content, file_type)
        if content != old_content:
            await uow.changes.append(
                project_id, filename, old_content, content, ChangeType.UPDATE
            )
        return file, False


async def delete_file(uow: AbstractUnitOfWork, project_id: str, filename: str) -> None:
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        file = await uow.files.get(project_id, filename)
        if file is None:
            raise NotFoundError("File", filename)
        old_content = file.content
        await uow.files.delete(file)
        await uow.changes.append(project_id, filename, old_content, "", ChangeType.DELETE)
    logger.info("Deleted %s from project %s", filename, project_id)
