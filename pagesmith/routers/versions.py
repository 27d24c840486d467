"""Version-control endpoints — versions, rollback, change log, undo, compare."""

from fastapi import APIRouter, HTTPException, Query

from pagesmith.config import settings
from pagesmith.routers.deps import ProjectId, UnitOfWork
from pagesmith.schemas.change import (
    ClearChangesResponse,
    FileChangeResponse,
    UndoRedoState,
    UndoResponse,
)
from pagesmith.schemas.version import (
    BranchCreate,
    DiffResult,
    RollbackResult,
    VersionCreate,
    VersionResponse,
    VersionWithSnapshotsResponse,
)
from pagesmith.services import version_control_service

router = APIRouter()

_PAGE_MAX = settings.change_history_max_page_size


# ── Versions ────────────────────────────────────────────────────────


@router.post("/{project_id}/versions", response_model=VersionWithSnapshotsResponse, status_code=201)
async def create_version(project_id: ProjectId, body: VersionCreate, uow: UnitOfWork):
    return await version_control_service.create_version(
        uow, project_id, body.name, body.description
    )


@router.get("/{project_id}/versions", response_model=list[VersionResponse])
async def get_version_history(project_id: ProjectId, uow: UnitOfWork):
    return await version_control_service.get_version_history(uow, project_id)


@router.get("/{project_id}/versions/active", response_model=VersionResponse)
async def get_active_version(project_id: ProjectId, uow: UnitOfWork):
    version = await version_control_service.get_active_version(uow, project_id)
    if not version:
        raise HTTPException(status_code=404, detail="No active version")
    return version


@router.get("/{project_id}/versions/{version_id}", response_model=VersionWithSnapshotsResponse)
async def get_version(project_id: ProjectId, version_id: str, uow: UnitOfWork):
    return await version_control_service.get_version_with_files(uow, version_id, project_id)


@router.post("/{project_id}/versions/{version_id}/rollback", response_model=RollbackResult)
async def rollback_to_version(project_id: ProjectId, version_id: str, uow: UnitOfWork):
    return await version_control_service.rollback_to_version(uow, version_id, project_id)


@router.delete("/{project_id}/versions/{version_id}", status_code=204)
async def delete_version(project_id: ProjectId, version_id: str, uow: UnitOfWork):
    await version_control_service.delete_version(uow, version_id, project_id)


@router.post("/{project_id}/branch", response_model=VersionWithSnapshotsResponse, status_code=201)
async def create_experimental_branch(project_id: ProjectId, body: BranchCreate, uow: UnitOfWork):
    return await version_control_service.create_experimental_branch(
        uow, project_id, body.base_name, body.description
    )


# ── Change log & undo ───────────────────────────────────────────────


@router.get("/{project_id}/changes", response_model=list[FileChangeResponse])
async def get_change_history(
    project_id: ProjectId,
    uow: UnitOfWork,
    filename: str | None = None,
    limit: int | None = Query(None, ge=1, le=_PAGE_MAX),
    offset: int | None = Query(None, ge=0),
):
    if filename:
        return await version_control_service.get_file_change_history(
            uow, project_id, filename, limit, offset
        )
    return await version_control_service.get_change_history(uow, project_id, limit, offset)


@router.get("/{project_id}/changes/recent", response_model=list[FileChangeResponse])
async def get_recent_changes(
    project_id: ProjectId,
    uow: UnitOfWork,
    hours: int = Query(
        settings.recent_changes_hours, ge=1, le=settings.recent_changes_max_hours
    ),
):
    return await version_control_service.get_recent_changes(uow, project_id, hours)


@router.get("/{project_id}/changes/{filename:path}", response_model=list[FileChangeResponse])
async def get_file_change_history(
    project_id: ProjectId,
    filename: str,
    uow: UnitOfWork,
    limit: int | None = Query(None, ge=1, le=_PAGE_MAX),
    offset: int | None = Query(None, ge=0),
):
    return await version_control_service.get_file_change_history(
        uow, project_id, filename, limit, offset
    )


@router.delete("/{project_id}/changes", response_model=ClearChangesResponse)
async def clear_change_history(project_id: ProjectId, uow: UnitOfWork):
    removed = await version_control_service.clear_change_history(uow, project_id)
    return ClearChangesResponse(removed=removed)


@router.post("/{project_id}/undo", response_model=UndoResponse)
async def undo_last_change(project_id: ProjectId, uow: UnitOfWork):
    undone = await version_control_service.undo_last_change(uow, project_id)
    if not undone:
        raise HTTPException(status_code=400, detail="No changes to undo")
    return UndoResponse(message="Successfully undid last change")


@router.get("/{project_id}/undo-state", response_model=UndoRedoState)
async def get_undo_state(project_id: ProjectId, uow: UnitOfWork):
    return await version_control_service.get_undo_redo_state(uow, project_id)


# ── Compare ─────────────────────────────────────────────────────────


@router.get("/{project_id}/compare/{version_id}/current", response_model=list[DiffResult])
async def compare_with_current_state(project_id: ProjectId, version_id: str, uow: UnitOfWork):
    return await version_control_service.compare_with_current_state(uow, version_id, project_id)


@router.get("/{project_id}/compare/{version_id_1}/{version_id_2}", response_model=list[DiffResult])
async def compare_versions(
    project_id: ProjectId, version_id_1: str, version_id_2: str, uow: UnitOfWork
):
    return await version_control_service.compare_versions(
        uow, version_id_1, version_id_2, project_id
    )
