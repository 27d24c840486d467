"""Version control service tests — snapshots, rollback, undo, diffs."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from pagesmith.errors import (
    ActiveVersionDeletionError,
    NotFoundError,
    TransactionFailure,
    ValidationError,
)
from pagesmith.models.enums import ChangeType, FileType
from pagesmith.models.version import ProjectVersion
from pagesmith.schemas.project import ProjectCreate
from pagesmith.services import file_service, project_service
from pagesmith.services import version_control_service as vcs
from pagesmith.stores.change_log_store import ChangeLogStore


# ── Versions ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_version_snapshots_every_live_file(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<h1>Hi</h1>", "style.css": "h1{}"})

    created = await vcs.create_version(uow, project.id, "v1", "first cut")
    version = await vcs.get_version_with_files(uow, created.id)

    assert version.name == "v1"
    assert version.description == "first cut"
    assert version.is_active is False
    assert [(s.filename, s.content, s.file_type) for s in version.snapshots] == [
        ("index.html", "<h1>Hi</h1>", FileType.HTML),
        ("style.css", "h1{}", FileType.CSS),
    ]


@pytest.mark.asyncio
async def test_create_version_of_empty_project(uow, project):
    version = await vcs.create_version(uow, project.id, "empty")
    assert version.snapshots == []


@pytest.mark.asyncio
async def test_snapshots_are_frozen(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<a>"})
    version = await vcs.create_version(uow, project.id, "v1")

    await file_service.update_file(uow, project.id, "index.html", "<b>")

    reloaded = await vcs.get_version_with_files(uow, version.id)
    assert reloaded.snapshots[0].content == "<a>"


@pytest.mark.asyncio
async def test_create_version_validation(uow, project):
    with pytest.raises(ValidationError):
        await vcs.create_version(uow, project.id, "   ")
    with pytest.raises(NotFoundError):
        await vcs.create_version(uow, "missing-project", "v1")
    assert await vcs.get_version_history(uow, project.id) == []


@pytest.mark.asyncio
async def test_version_history_is_newest_first(uow, project):
    first = await vcs.create_version(uow, project.id, "v1")
    second = await vcs.create_version(uow, project.id, "v2")

    history = await vcs.get_version_history(uow, project.id)

    assert [v.id for v in history] == [second.id, first.id]


@pytest.mark.asyncio
async def test_version_history_breaks_timestamp_ties_by_creation_order(
    uow, project, session_factory
):
    first = await vcs.create_version(uow, project.id, "v1")
    second = await vcs.create_version(uow, project.id, "v2")
    async with session_factory() as session:
        await session.execute(
            update(ProjectVersion)
            .where(ProjectVersion.project_id == project.id)
            .values(created_at=datetime(2025, 1, 1))
        )
        await session.commit()

    history = await vcs.get_version_history(uow, project.id)

    assert [v.name for v in history] == ["v2", "v1"]
    assert [v.sequence for v in history] == [second.sequence, first.sequence] == [2, 1]


@pytest.mark.asyncio
async def test_get_unknown_version(uow, project):
    with pytest.raises(NotFoundError):
        await vcs.get_version_with_files(uow, "nope")


@pytest.mark.asyncio
async def test_version_is_scoped_to_its_project(uow, project):
    other = await project_service.create_project(uow, ProjectCreate(name="Other"))
    version = await vcs.create_version(uow, other.id, "theirs")

    with pytest.raises(NotFoundError):
        await vcs.get_version_with_files(uow, version.id, project.id)
    with pytest.raises(NotFoundError):
        await vcs.rollback_to_version(uow, version.id, project.id)


@pytest.mark.asyncio
async def test_experimental_branch_name(uow, project, seed_files, monkeypatch):
    monkeypatch.setattr(
        vcs, "_utcnow", lambda: datetime(2025, 1, 31, 12, 34, 56, tzinfo=timezone.utc)
    )
    await seed_files(project.id, {"index.html": "<a>"})

    branch = await vcs.create_experimental_branch(uow, project.id, "dark-mode", "try it")

    assert branch.name == "dark-mode-experiment-20250131T123456"
    assert branch.description == "try it"
    assert [s.filename for s in branch.snapshots] == ["index.html"]


@pytest.mark.asyncio
async def test_experimental_branch_requires_base_name(uow, project):
    with pytest.raises(ValidationError):
        await vcs.create_experimental_branch(uow, project.id, "")


@pytest.mark.asyncio
async def test_delete_version(uow, project):
    version = await vcs.create_version(uow, project.id, "v1")

    await vcs.delete_version(uow, version.id)

    with pytest.raises(NotFoundError):
        await vcs.get_version_with_files(uow, version.id)


@pytest.mark.asyncio
async def test_delete_active_version_is_refused(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<a>"})
    version = await vcs.create_version(uow, project.id, "v1")
    await vcs.rollback_to_version(uow, version.id)

    with pytest.raises(ActiveVersionDeletionError):
        await vcs.delete_version(uow, version.id)

    assert (await vcs.get_version_with_files(uow, version.id)).snapshots


# ── Rollback ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rollback_converges_live_state(uow, project, seed_files, live_state):
    await seed_files(project.id, {"index.html": "<a>", "style.css": "body{}"})
    version = await vcs.create_version(uow, project.id, "v1")

    await file_service.update_file(uow, project.id, "index.html", "<b>")
    await file_service.delete_file(uow, project.id, "style.css")
    await file_service.create_file(uow, project.id, "app.js", "run()")

    result = await vcs.rollback_to_version(uow, version.id)

    assert result.created == ["style.css"]
    assert result.updated == ["index.html"]
    assert result.deleted == ["app.js"]
    assert await live_state(project.id) == {
        "index.html": ("<a>", "HTML"),
        "style.css": ("body{}", "CSS"),
    }

    latest = await vcs.get_change_history(uow, project.id, limit=3)
    assert [(c.filename, c.change_type) for c in latest] == [
        ("app.js", ChangeType.DELETE),
        ("style.css", ChangeType.CREATE),
        ("index.html", ChangeType.UPDATE),
    ]
    update = latest[2]
    assert update.old_content == "<b>" and update.new_content == "<a>"
    assert latest[1].old_content is None
    assert latest[0].old_content == "run()" and latest[0].new_content == ""


@pytest.mark.asyncio
async def test_rollback_marks_only_target_active(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<a>"})
    first = await vcs.create_version(uow, project.id, "v1")
    second = await vcs.create_version(uow, project.id, "v2")

    await vcs.rollback_to_version(uow, first.id)
    await vcs.rollback_to_version(uow, second.id)

    active = {v.id: v.is_active for v in await vcs.get_version_history(uow, project.id)}
    assert active == {first.id: False, second.id: True}
    assert (await vcs.get_active_version(uow, project.id)).id == second.id


@pytest.mark.asyncio
async def test_second_rollback_records_nothing(uow, project, seed_files, live_state):
    await seed_files(project.id, {"index.html": "<a>"})
    version = await vcs.create_version(uow, project.id, "v1")
    await file_service.update_file(uow, project.id, "index.html", "<b>")

    await vcs.rollback_to_version(uow, version.id)
    state_after_first = await live_state(project.id)
    count_after_first = (await vcs.get_undo_redo_state(uow, project.id)).total_changes

    result = await vcs.rollback_to_version(uow, version.id)

    assert result.created == result.updated == result.deleted == []
    assert await live_state(project.id) == state_after_first
    assert (await vcs.get_undo_redo_state(uow, project.id)).total_changes == count_after_first


@pytest.mark.asyncio
async def test_rollback_to_empty_version_deletes_everything(
    uow, project, seed_files, live_state
):
    empty = await vcs.create_version(uow, project.id, "blank")
    await seed_files(project.id, {"index.html": "<a>", "app.js": "x"})

    result = await vcs.rollback_to_version(uow, empty.id)

    assert sorted(result.deleted) == ["app.js", "index.html"]
    assert await live_state(project.id) == {}


@pytest.mark.asyncio
async def test_rollback_restores_drifted_file_type_silently(uow, project, live_state):
    await file_service.create_file(uow, project.id, "theme.css", "body{}", FileType.CSS)
    version = await vcs.create_version(uow, project.id, "v1")
    await file_service.update_file(uow, project.id, "theme.css", "body{}", FileType.HTML)
    assert await live_state(project.id) == {"theme.css": ("body{}", "HTML")}
    changes_before = (await vcs.get_undo_redo_state(uow, project.id)).total_changes

    result = await vcs.rollback_to_version(uow, version.id)

    assert await live_state(project.id) == {"theme.css": ("body{}", "CSS")}
    assert result.created == result.updated == result.deleted == []
    assert (await vcs.get_undo_redo_state(uow, project.id)).total_changes == changes_before


@pytest.mark.asyncio
async def test_rollback_unknown_version(uow, project):
    with pytest.raises(NotFoundError):
        await vcs.rollback_to_version(uow, "nope", project.id)


@pytest.mark.asyncio
async def test_failed_rollback_leaves_state_untouched(
    uow, project, seed_files, live_state, monkeypatch
):
    await seed_files(project.id, {"index.html": "<a>", "style.css": "body{}"})
    version = await vcs.create_version(uow, project.id, "v1")
    await file_service.update_file(uow, project.id, "index.html", "<b>")
    await file_service.delete_file(uow, project.id, "style.css")
    before = await live_state(project.id)
    changes_before = (await vcs.get_undo_redo_state(uow, project.id)).total_changes

    async def broken_batch(self, project_id, changes):
        raise OperationalError("INSERT INTO file_changes", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ChangeLogStore, "append_batch", broken_batch)

    with pytest.raises(TransactionFailure):
        await vcs.rollback_to_version(uow, version.id)

    monkeypatch.undo()
    assert await live_state(project.id) == before
    assert (await vcs.get_undo_redo_state(uow, project.id)).total_changes == changes_before
    assert await vcs.get_active_version(uow, project.id) is None


# ── Change log & undo ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_undo_create_removes_file(uow, project, live_state):
    await file_service.create_file(uow, project.id, "index.html", "<a>")

    assert await vcs.undo_last_change(uow, project.id) is True

    assert await live_state(project.id) == {}
    assert (await vcs.get_undo_redo_state(uow, project.id)).total_changes == 0


@pytest.mark.asyncio
async def test_undo_update_restores_previous_content(uow, project, seed_files, live_state):
    await seed_files(project.id, {"index.html": "C1"})
    await file_service.update_file(uow, project.id, "index.html", "C2")

    await vcs.undo_last_change(uow, project.id)

    assert await live_state(project.id) == {"index.html": ("C1", "HTML")}


@pytest.mark.asyncio
async def test_undo_delete_recreates_file_with_inferred_type(uow, project, live_state):
    await file_service.create_file(uow, project.id, "style.css", "body{}", FileType.CSS)
    await file_service.delete_file(uow, project.id, "style.css")

    await vcs.undo_last_change(uow, project.id)

    assert await live_state(project.id) == {"style.css": ("body{}", "CSS")}


@pytest.mark.asyncio
async def test_undo_on_empty_log_changes_nothing(uow, project, seed_files, live_state):
    await seed_files(project.id, {"index.html": "<a>"})
    await vcs.clear_change_history(uow, project.id)

    assert await vcs.undo_last_change(uow, project.id) is False
    assert await live_state(project.id) == {"index.html": ("<a>", "HTML")}


@pytest.mark.asyncio
async def test_undo_pops_most_recent_change_across_files(uow, project, seed_files, live_state):
    await seed_files(project.id, {"index.html": "<a>", "app.js": "v1"})
    await file_service.update_file(uow, project.id, "index.html", "<b>")
    await file_service.update_file(uow, project.id, "app.js", "v2")

    await vcs.undo_last_change(uow, project.id)

    assert await live_state(project.id) == {
        "app.js": ("v1", "JS"),
        "index.html": ("<b>", "HTML"),
    }
    top = (await vcs.get_change_history(uow, project.id, limit=1))[0]
    assert (top.filename, top.new_content) == ("index.html", "<b>")


@pytest.mark.asyncio
async def test_rollback_can_be_undone_step_by_step(uow, project, seed_files, live_state):
    await seed_files(project.id, {"index.html": "<a>"})
    version = await vcs.create_version(uow, project.id, "v1")
    await file_service.update_file(uow, project.id, "index.html", "<b>")
    await file_service.create_file(uow, project.id, "app.js", "x")
    before_rollback = await live_state(project.id)

    await vcs.rollback_to_version(uow, version.id)
    await vcs.undo_last_change(uow, project.id)  # app.js DELETE
    await vcs.undo_last_change(uow, project.id)  # index.html UPDATE

    assert await live_state(project.id) == before_rollback


@pytest.mark.asyncio
async def test_undo_redo_state(uow, project, seed_files):
    state = await vcs.get_undo_redo_state(uow, project.id)
    assert state.model_dump() == {
        "can_undo": False,
        "can_redo": False,
        "current_position": 0,
        "total_changes": 0,
    }

    await seed_files(project.id, {"index.html": "<a>", "style.css": ""})
    await vcs.undo_last_change(uow, project.id)

    state = await vcs.get_undo_redo_state(uow, project.id)
    assert state.can_undo is True
    assert state.can_redo is False
    assert state.current_position == state.total_changes == 1


@pytest.mark.asyncio
async def test_track_file_change_and_history_paging(uow, project):
    for n in range(5):
        await vcs.track_file_change(
            uow, project.id, "index.html", f"<{n}>", f"<{n + 1}>", ChangeType.UPDATE
        )
    await vcs.track_file_change(uow, project.id, "app.js", None, "x", ChangeType.CREATE)

    history = await vcs.get_change_history(uow, project.id)
    assert [c.sequence for c in history] == [6, 5, 4, 3, 2, 1]

    page = await vcs.get_change_history(uow, project.id, limit=2, offset=1)
    assert [c.new_content for c in page] == ["<5>", "<4>"]

    per_file = await vcs.get_file_change_history(uow, project.id, "index.html", limit=10)
    assert len(per_file) == 5
    assert all(c.filename == "index.html" for c in per_file)


@pytest.mark.asyncio
async def test_recent_and_cleared_changes(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<a>", "app.js": "x"})

    assert len(await vcs.get_recent_changes(uow, project.id, hours=1)) == 2
    assert await vcs.clear_change_history(uow, project.id) == 2
    assert await vcs.get_change_history(uow, project.id) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("hours", [0, 100_000_000])
async def test_recent_changes_window_is_bounded(uow, project, hours):
    with pytest.raises(ValidationError):
        await vcs.get_recent_changes(uow, project.id, hours=hours)


@pytest.mark.asyncio
async def test_change_log_of_unknown_project(uow):
    with pytest.raises(NotFoundError):
        await vcs.undo_last_change(uow, "missing")


# ── Diffs ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_compare_versions_reports_update(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<a>"})
    first = await vcs.create_version(uow, project.id, "v1")
    await file_service.update_file(uow, project.id, "index.html", "<b>")
    second = await vcs.create_version(uow, project.id, "v2")

    [diff] = await vcs.compare_versions(uow, first.id, second.id)

    assert diff.change_type == ChangeType.UPDATE
    assert diff.old_content == "<a>"
    assert diff.new_content == "<b>"
    assert "- <a>" in diff.diff.splitlines()
    assert "+ <b>" in diff.diff.splitlines()


@pytest.mark.asyncio
async def test_compare_versions_with_disjoint_files(uow, project, seed_files):
    await seed_files(project.id, {"x.html": "x"})
    first = await vcs.create_version(uow, project.id, "A")
    await file_service.delete_file(uow, project.id, "x.html")
    await file_service.create_file(uow, project.id, "y.html", "y")
    second = await vcs.create_version(uow, project.id, "B")

    diffs = await vcs.compare_versions(uow, first.id, second.id)

    assert sorted((d.filename, d.change_type) for d in diffs) == [
        ("x.html", ChangeType.DELETE),
        ("y.html", ChangeType.CREATE),
    ]


@pytest.mark.asyncio
async def test_compare_with_current_state_sees_live_delete(uow, project, seed_files):
    await seed_files(project.id, {"index.html": "<a>", "style.css": "body{}"})
    version = await vcs.create_version(uow, project.id, "v1")
    await file_service.delete_file(uow, project.id, "style.css")

    [diff] = await vcs.compare_with_current_state(uow, version.id)

    assert diff.filename == "style.css"
    assert diff.change_type == ChangeType.DELETE
    assert diff.old_content == "body{}"
    assert diff.new_content == ""


@pytest.mark.asyncio
async def test_compare_unknown_version(uow, project):
    version = await vcs.create_version(uow, project.id, "v1")
    with pytest.raises(NotFoundError):
        await vcs.compare_versions(uow, version.id, "nope")
