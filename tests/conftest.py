"""Shared fixtures — a throwaway SQLite database per test."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import pagesmith.models  # noqa: F401
from pagesmith.database import Base, configure_engine
from pagesmith.main import app
from pagesmith.schemas.project import ProjectCreate
from pagesmith.services import file_service, project_service
from pagesmith.stores.unit_of_work import SqlAlchemyUnitOfWork, get_uow


@pytest.fixture
async def session_factory(tmp_path):
    engine = configure_engine(create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def uow(session_factory):
    return SqlAlchemyUnitOfWork(session_factory)


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_uow] = lambda: SqlAlchemyUnitOfWork(session_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def project(uow):
    return await project_service.create_project(uow, ProjectCreate(name="Todo App"))


@pytest.fixture
def seed_files(uow):
    """Create files through the tracked write path, one CREATE change each."""

    async def _seed(project_id: str, files: dict[str, str]) -> None:
        for filename, content in files.items():
            await file_service.create_file(uow, project_id, filename, content)

    return _seed


@pytest.fixture
def live_state(uow):
    """{filename: (content, file_type)} of the project's live files."""

    async def _state(project_id: str) -> dict[str, tuple[str, str]]:
        files = await file_service.list_files(uow, project_id)
        return {f.filename: (f.content, f.file_type.value) for f in files}

    return _state
