"""Project CRUD + tracked live-file endpoints."""

from fastapi import APIRouter, Response

from pagesmith.routers.deps import ProjectId, UnitOfWork
from pagesmith.schemas.project import (
    FileCreate,
    FileResponse,
    FileUpdate,
    ProjectCreate,
    ProjectResponse,
)
from pagesmith.services import file_service, project_service

router = APIRouter()


@router.get("/", response_model=list[ProjectResponse])
async def list_projects(uow: UnitOfWork):
    return await project_service.list_projects(uow)


@router.post("/", response_model=ProjectResponse, status_code=201)
async def create_project(data: ProjectCreate, uow: UnitOfWork):
    return await project_service.create_project(uow, data)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, uow: UnitOfWork):
    return await project_service.get_project(uow, project_id)


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: str, uow: UnitOfWork):
    await project_service.delete_project(uow, project_id)


# ── Live files ──────────────────────────────────────────────────────


@router.get("/{project_id}/files", response_model=list[FileResponse])
async def list_files(project_id: ProjectId, uow: UnitOfWork):
    return await file_service.list_files(uow, project_id)


@router.post("/{project_id}/files", response_model=FileResponse, status_code=201)
async def create_file(project_id: ProjectId, data: FileCreate, uow: UnitOfWork):
    return await file_service.create_file(
        uow, project_id, data.filename, data.content, data.file_type
    )


@router.get("/{project_id}/files/{filename:path}", response_model=FileResponse)
async def get_file(project_id: ProjectId, filename: str, uow: UnitOfWork):
    return await file_service.get_file(uow, project_id, filename)


@router.put("/{project_id}/files/{filename:path}", response_model=FileResponse)
async def put_file(
    project_id: ProjectId, filename: str, data: FileUpdate, uow: UnitOfWork, response: Response
):
    """Create the file if it is missing, otherwise overwrite it."""
    file, created = await file_service.upsert_file(
        uow, project_id, filename, data.content, data.file_type
    )
    if created:
        response.status_code = 201
    return file


@router.delete("/{project_id}/files/{filename:path}", status_code=204)
async def delete_file(project_id: ProjectId, filename: str, uow: UnitOfWork):
    await file_service.delete_file(uow, project_id, filename)
