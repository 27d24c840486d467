"""Unit of work — one atomic transaction across all stores.

Services depend on ``AbstractUnitOfWork`` only, so the same orchestration
runs against any storage engine that implements it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagesmith.database import async_session
from pagesmith.errors import TransactionFailure
from pagesmith.stores.change_log_store import ChangeLogStore
from pagesmith.stores.file_store import FileStore
from pagesmith.stores.project_store import ProjectStore
from pagesmith.stores.version_store import VersionStore

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Contract every storage backend must satisfy.

    Usage::

        async with uow:
            ...  # reads and writes through uow.files / uow.versions / ...

    A clean exit commits; any exception rolls everything back.
    """

    projects: ProjectStore
    files: FileStore
    versions: VersionStore
    changes: ChangeLogStore

    async def __aenter__(self) -> AbstractUnitOfWork:
        await self._begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self._end()

    @abstractmethod
    async def _begin(self) -> None:
        """Open the transaction and bind the stores to it."""

    @abstractmethod
    async def _end(self) -> None:
        """Release whatever _begin acquired."""

    @abstractmethod
    async def commit(self) -> None:
        """Make every write since _begin durable."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard every write since _begin."""


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session):
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if isinstance(exc, SQLAlchemyError):
            logger.error("Transaction failed, rolling back", exc_info=exc)
            try:
                await self.rollback()
            except SQLAlchemyError:
                logger.exception("Rollback failed, discarding the session")
            finally:
                await self._end()
            raise TransactionFailure() from exc
        try:
            await super().__aexit__(exc_type, exc, tb)
        except SQLAlchemyError as commit_exc:
            logger.error("Commit failed, transaction rolled back", exc_info=commit_exc)
            raise TransactionFailure("commit") from commit_exc

    async def _begin(self) -> None:
        if self.session is not None:
            raise RuntimeError("Unit of work is already in progress")
        self.session = self.session_factory()
        self.projects = ProjectStore(self.session)
        self.files = FileStore(self.session)
        self.versions = VersionStore(self.session)
        self.changes = ChangeLogStore(self.session)

    async def _end(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def get_uow() -> AbstractUnitOfWork:
    """FastAPI dependency — a fresh unit of work per request."""
    return SqlAlchemyUnitOfWork(async_session)
