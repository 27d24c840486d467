"""Shared route dependencies."""

from typing import Annotated

from fastapi import Depends

from pagesmith.services import project_service
from pagesmith.stores.unit_of_work import AbstractUnitOfWork, get_uow

UnitOfWork = Annotated[AbstractUnitOfWork, Depends(get_uow)]


async def existing_project_id(project_id: str, uow: UnitOfWork) -> str:
    """Resolve the path's project or answer 404 before the handler runs."""
    await project_service.get_project(uow, project_id)
    return project_id


ProjectId = Annotated[str, Depends(existing_project_id)]
