"""Change-log and undo schemas."""

from datetime import datetime

from pydantic import BaseModel

from pagesmith.models.enums import ChangeType


class FileChangeResponse(BaseModel):
    id: str
    project_id: str
    sequence: int
    filename: str
    old_content: str | None
    new_content: str
    change_type: ChangeType
    created_at: datetime

    model_config = {"from_attributes": True}


class UndoRedoState(BaseModel):
    can_undo: bool
    can_redo: bool  # always False: undo consumes the change, nothing is kept to redo
    current_position: int
    total_changes: int


class UndoResponse(BaseModel):
    message: str


class ClearChangesResponse(BaseModel):
    removed: int
