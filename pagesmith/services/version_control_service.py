"""Version control service — snapshots, rollback, change log, undo and diffs.

Two change-tracking mechanisms live side by side here:

* versions: immutable named snapshots of every file in a project;
* the change log: one FileChange per file mutation, used as an undo stack.

Every operation that writes more than one row runs inside a single unit of
work, and mutating operations hold the project's lock for their duration.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pagesmith.config import settings
from pagesmith.errors import ActiveVersionDeletionError, NotFoundError, ValidationError
from pagesmith.models.enums import ChangeType, infer_file_type
from pagesmith.models.file_change import FileChange
from pagesmith.models.version import ProjectVersion
from pagesmith.schemas.change import UndoRedoState
from pagesmith.schemas.version import DiffResult, RollbackResult
from pagesmith.services import project_locks
from pagesmith.services.project_service import require_project
from pagesmith.stores.change_log_store import PendingChange
from pagesmith.stores.unit_of_work import AbstractUnitOfWork
from pagesmith.utils.diff import as_file_set, compare_file_sets

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _load_version(
    uow: AbstractUnitOfWork,
    version_id: str,
    project_id: str | None = None,
    *,
    with_snapshots: bool = False,
) -> ProjectVersion:
    version = await uow.versions.get(version_id, with_snapshots=with_snapshots)
    # A version reached through another project's URL does not exist for the caller.
    if version is None or (project_id is not None and version.project_id != project_id):
        raise NotFoundError("ProjectVersion", version_id)
    return version


# ── Versions ────────────────────────────────────────────────────────


async def create_version(
    uow: AbstractUnitOfWork,
    project_id: str,
    name: str,
    description: str | None = None,
) -> ProjectVersion:
    """Snapshot every live file of the project into a new version."""
    if not name or not name.strip():
        raise ValidationError("Version name is required")

    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        files = await uow.files.list_by_project(project_id)
        version = await uow.versions.create_from_files(project_id, name.strip(), description, files)

    logger.info(
        "Created version %s '%s' of project %s with %d files",
        version.id, version.name, project_id, len(version.snapshots),
    )
    return version


async def create_experimental_branch(
    uow: AbstractUnitOfWork,
    project_id: str,
    base_name: str,
    description: str | None = None,
) -> ProjectVersion:
    """Create a version named ``{base_name}-experiment-{YYYYMMDDTHHMMSS}`` (UTC)."""
    if not base_name or not base_name.strip():
        raise ValidationError("Base name is required")

    timestamp = _utcnow().strftime("%Y%m%dT%H%M%S")
    return await create_version(
        uow, project_id, f"{base_name.strip()}-experiment-{timestamp}", description
    )


async def get_version_history(uow: AbstractUnitOfWork, project_id: str) -> list[ProjectVersion]:
    """Versions of a project, newest first, without their snapshots."""
    async with uow:
        await require_project(uow, project_id)
        return await uow.versions.list_by_project(project_id)


async def get_version_with_files(
    uow: AbstractUnitOfWork, version_id: str, project_id: str | None = None
) -> ProjectVersion:
    async with uow:
        return await _load_version(uow, version_id, project_id, with_snapshots=True)


async def get_active_version(uow: AbstractUnitOfWork, project_id: str) -> ProjectVersion | None:
    async with uow:
        await require_project(uow, project_id)
        return await uow.versions.get_active(project_id)


async def delete_version(
    uow: AbstractUnitOfWork, version_id: str, project_id: str | None = None
) -> None:
    """Delete a version and its snapshots; the active version is protected."""
    async with uow:
        version = await _load_version(uow, version_id, project_id)
        if version.is_active:
            logger.warning("Refused to delete active version %s", version_id)
            raise ActiveVersionDeletionError(version_id)
        await uow.versions.delete(version)
    logger.info("Deleted version %s", version_id)


# ── Rollback ────────────────────────────────────────────────────────


async def rollback_to_version(
    uow: AbstractUnitOfWork, version_id: str, project_id: str | None = None
) -> RollbackResult:
    """Make the live file set match the version's snapshots, atomically.

    Every file touched is recorded in the change log, so each step of a
    rollback can itself be undone. Files whose content already matches are
    not touched and leave no change behind. The version becomes the
    project's only active version.
    """
    if project_id is None:
        project_id = (await get_version_with_files(uow, version_id)).project_id

    async with project_locks.project_lock(project_id), uow:
        version = await _load_version(uow, version_id, project_id, with_snapshots=True)
        live = {f.filename: f for f in await uow.files.list_by_project(project_id)}
        wanted = {s.filename for s in version.snapshots}

        pending: list[PendingChange] = []
        result = RollbackResult(version_id=version.id, project_id=project_id)

        for snapshot in version.snapshots:
            current = live.get(snapshot.filename)
            if current is None:
                await uow.files.add(
                    project_id, snapshot.filename, snapshot.content, snapshot.file_type
                )
                pending.append(
                    PendingChange(snapshot.filename, None, snapshot.content, ChangeType.CREATE)
                )
                result.created.append(snapshot.filename)
            elif current.content != snapshot.content:
                pending.append(
                    PendingChange(
                        snapshot.filename, current.content, snapshot.content, ChangeType.UPDATE
                    )
                )
                await uow.files.update(current, snapshot.content, snapshot.file_type)
                result.updated.append(snapshot.filename)
            elif current.file_type != snapshot.file_type:
                # Same content, only the type label drifted: converge without logging.
                await uow.files.update(current, current.content, snapshot.file_type)

        for filename, current in live.items():
            if filename in wanted:
                continue
            pending.append(PendingChange(filename, current.content, "", ChangeType.DELETE))
            await uow.files.delete(current)
            result.deleted.append(filename)

        await uow.changes.append_batch(project_id, pending)
        await uow.versions.set_active(version)

    logger.info(
        "Rolled back project %s to version %s: %d created, %d updated, %d deleted",
        project_id, version_id, len(result.created), len(result.updated), len(result.deleted),
    )
    return result


# ── Change log & undo ───────────────────────────────────────────────


async def track_file_change(
    uow: AbstractUnitOfWork,
    project_id: str,
    filename: str,
    old_content: str | None,
    new_content: str,
    change_type: ChangeType,
) -> FileChange:
    """Append one entry to the project's change log."""
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        return await uow.changes.append(project_id, filename, old_content, new_content, change_type)


async def get_change_history(
    uow: AbstractUnitOfWork,
    project_id: str,
    limit: int | None = None,
    offset: int | None = None,
) -> list[FileChange]:
    async with uow:
        await require_project(uow, project_id)
        return await uow.changes.list_by_project(project_id, limit, offset)


async def get_file_change_history(
    uow: AbstractUnitOfWork,
    project_id: str,
    filename: str,
    limit: int | None = None,
    offset: int | None = None,
) -> list[FileChange]:
    async with uow:
        await require_project(uow, project_id)
        return await uow.changes.list_by_file(project_id, filename, limit, offset)


async def get_recent_changes(
    uow: AbstractUnitOfWork, project_id: str, hours: int = 24
) -> list[FileChange]:
    if not 1 <= hours <= settings.recent_changes_max_hours:
        raise ValidationError(
            f"hours must be between 1 and {settings.recent_changes_max_hours}"
        )
    since = (_utcnow() - timedelta(hours=hours)).replace(tzinfo=None)
    async with uow:
        await require_project(uow, project_id)
        return await uow.changes.list_since(project_id, since)


async def clear_change_history(uow: AbstractUnitOfWork, project_id: str) -> int:
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        removed = await uow.changes.clear(project_id)
    logger.info("Cleared %d changes from project %s", removed, project_id)
    return removed


async def undo_last_change(uow: AbstractUnitOfWork, project_id: str) -> bool:
    """Reverse and consume the most recent change of the project.

    Returns False, touching nothing, when the change log is empty. There is
    no redo: the undone change is deleted.
    """
    async with project_locks.project_lock(project_id), uow:
        await require_project(uow, project_id)
        change = await uow.changes.top(project_id)
        if change is None:
            return False

        current = await uow.files.get(project_id, change.filename)

        if change.change_type == ChangeType.CREATE:
            if current is not None:
                await uow.files.delete(current)
        elif change.change_type == ChangeType.UPDATE:
            if current is not None and change.old_content is not None:
                await uow.files.update(current, change.old_content)
        elif change.change_type == ChangeType.DELETE:
            if current is None and change.old_content is not None:
                await uow.files.add(
                    project_id,
                    change.filename,
                    change.old_content,
                    infer_file_type(change.filename),
                )

        await uow.changes.remove(change)

    logger.info(
        "Undid %s of %s in project %s", change.change_type, change.filename, project_id
    )
    return True


async def get_undo_redo_state(uow: AbstractUnitOfWork, project_id: str) -> UndoRedoState:
    async with uow:
        await require_project(uow, project_id)
        total = await uow.changes.count(project_id)
    return UndoRedoState(
        can_undo=total > 0,
        can_redo=False,
        current_position=total,
        total_changes=total,
    )


# ── Diffs ───────────────────────────────────────────────────────────


async def compare_versions(
    uow: AbstractUnitOfWork,
    version_id_1: str,
    version_id_2: str,
    project_id: str | None = None,
) -> list[DiffResult]:
    """Differences going from version 1 to version 2."""
    async with uow:
        first = await _load_version(uow, version_id_1, project_id, with_snapshots=True)
        second = await _load_version(uow, version_id_2, project_id, with_snapshots=True)
        old_files = as_file_set(first.snapshots)
        new_files = as_file_set(second.snapshots)
    return compare_file_sets(old_files, new_files)


async def compare_with_current_state(
    uow: AbstractUnitOfWork, version_id: str, project_id: str | None = None
) -> list[DiffResult]:
    """Differences going from the version to the project's live files."""
    async with uow:
        version = await _load_version(uow, version_id, project_id, with_snapshots=True)
        old_files = as_file_set(version.snapshots)
        new_files = as_file_set(await uow.files.list_by_project(version.project_id))
    return compare_file_sets(old_files, new_files)
