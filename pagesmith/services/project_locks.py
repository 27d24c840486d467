"""Per-project mutation locks.

Rollback, undo and tracked writes each read the live file set and then
rewrite it; two of them interleaving on one project would corrupt the
change log. Locks are process-local.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

_locks: dict[str, asyncio.Lock] = {}


@asynccontextmanager
async def project_lock(project_id: str):
    if project_id not in _locks:
        _locks[project_id] = asyncio.Lock()

    async with _locks[project_id]:
        yield


def forget(project_id: str) -> None:
    _locks.pop(project_id, None)
