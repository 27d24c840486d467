"""FileChange ORM model — one entry of a project's undo stack."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pagesmith.database import Base, utcnow
from pagesmith.models.enums import ChangeType


class FileChange(Base):
    __tablename__ = "file_changes"
    __table_args__ = (UniqueConstraint("project_id", "sequence"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    # Per-project monotonic order of the undo stack; created_at is informational only.
    sequence: Mapped[int] = mapped_column(Integer)
    filename: Mapped[str] = mapped_column(String(512))
    old_content: Mapped[str | None] = mapped_column(Text, nullable=True)  # None for CREATE
    new_content: Mapped[str] = mapped_column(Text, default="")  # "" for DELETE
    change_type: Mapped[ChangeType] = mapped_column(Enum(ChangeType, native_enum=False, length=8))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
