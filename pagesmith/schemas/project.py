"""Project and live-file request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from pagesmith.models.enums import FileType


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FileCreate(BaseModel):
    filename: str = Field(..., max_length=512)
    content: str = ""
    file_type: FileType | None = None  # inferred from the extension when omitted


class FileUpdate(BaseModel):
    content: str
    file_type: FileType | None = None


class FileResponse(BaseModel):
    id: str
    project_id: str
    filename: str
    content: str
    file_type: FileType
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
