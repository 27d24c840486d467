"""Line diffs and file-set comparison.

``diff_content`` compares lines strictly by position: it never re-aligns
after an inserted or removed line, so a single insertion near the top
shows up as every following line changed. Clients render this format
as-is, so the behaviour is kept stable.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import NamedTuple

from pagesmith.models.enums import ChangeType, FileType
from pagesmith.schemas.version import DiffResult


class FileEntry(NamedTuple):
    content: str
    file_type: FileType


def diff_content(old: str, new: str) -> str:
    """Return a positional line diff of ``old`` → ``new``.

    Rows are ``"- line"`` (removed), ``"+ line"`` (added) or ``"  line"``
    (unchanged). Lines missing on one side count as empty; empty lines
    present on both sides are dropped from the output.
    """
    old_lines = old.split("\n")
    new_lines = new.split("\n")

    rows: list[str] = []
    for i in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[i] if i < len(old_lines) else ""
        new_line = new_lines[i] if i < len(new_lines) else ""

        if old_line != new_line:
            if old_line and not new_line:
                rows.append(f"- {old_line}")
            elif new_line and not old_line:
                rows.append(f"+ {new_line}")
            else:
                rows.append(f"- {old_line}")
                rows.append(f"+ {new_line}")
        elif old_line:
            rows.append(f"  {old_line}")

    return "\n".join(rows)


def compare_file_sets(
    old_files: Mapping[str, FileEntry], new_files: Mapping[str, FileEntry]
) -> list[DiffResult]:
    """Classify every filename in either set as CREATE, DELETE or UPDATE.

    Files whose content is identical on both sides are left out.
    """
    results: list[DiffResult] = []
    for filename in sorted(old_files.keys() | new_files.keys()):
        before = old_files.get(filename)
        after = new_files.get(filename)

        if before is None:
            change_type, old_content, new_content = ChangeType.CREATE, "", after.content
        elif after is None:
            change_type, old_content, new_content = ChangeType.DELETE, before.content, ""
        elif before.content == after.content:
            continue
        else:
            change_type, old_content, new_content = ChangeType.UPDATE, before.content, after.content

        results.append(
            DiffResult(
                filename=filename,
                old_content=old_content,
                new_content=new_content,
                diff=diff_content(old_content, new_content),
                change_type=change_type,
            )
        )
    return results


def as_file_set(rows) -> dict[str, FileEntry]:
    """Index snapshots or live files by filename."""
    return {row.filename: FileEntry(row.content, row.file_type) for row in rows}
