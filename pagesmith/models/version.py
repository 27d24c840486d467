"""ProjectVersion + FileSnapshot — immutable named checkpoints of a project."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pagesmith.database import Base, utcnow
from pagesmith.models.enums import FileType


class ProjectVersion(Base):
    __tablename__ = "project_versions"
    __table_args__ = (UniqueConstraint("project_id", "sequence"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    # Per-project creation order; breaks created_at ties.
    sequence: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(255))  # human label, not unique
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    snapshots: Mapped[list["FileSnapshot"]] = relationship(
        back_populates="version",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FileSnapshot.filename",
    )


class FileSnapshot(Base):
    __tablename__ = "file_snapshots"
    __table_args__ = (UniqueConstraint("version_id", "filename"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    version_id: Mapped[str] = mapped_column(
        ForeignKey("project_versions.id", ondelete="CASCADE"), index=True
    )
    filename: Mapped[str] = mapped_column(String(512))
    content: Mapped[str] = mapped_column(Text)
    file_type: Mapped[FileType] = mapped_column(Enum(FileType, native_enum=False, length=8))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    version: Mapped[ProjectVersion] = relationship(back_populates="snapshots")
