"""Version, snapshot, diff and rollback schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from pagesmith.models.enums import ChangeType, FileType


class VersionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None


class BranchCreate(BaseModel):
    base_name: str = Field(..., max_length=200)
    description: str | None = None


class SnapshotResponse(BaseModel):
    id: str
    version_id: str
    filename: str
    content: str
    file_type: FileType
    created_at: datetime

    model_config = {"from_attributes": True}


class VersionResponse(BaseModel):
    id: str
    project_id: str
    name: str
    description: str | None
    sequence: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class VersionWithSnapshotsResponse(VersionResponse):
    snapshots: list[SnapshotResponse]


class DiffResult(BaseModel):
    """One file's difference between two file sets."""

    filename: str
    old_content: str
    new_content: str
    diff: str
    change_type: ChangeType


class RollbackResult(BaseModel):
    version_id: str
    project_id: str
    created: list[str] = []
    updated: list[str] = []
    deleted: list[str] = []
    message: str = "Successfully rolled back to version"
