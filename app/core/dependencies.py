"""
FastAPI dependency injection utilities.

Provides one AsyncSession per request, the UnitOfWork built on it, and the
services that use that unit of work.

Usage:
    @router.get("/person/{id}")
    async def get_person(id: int, service: PersonServiceDep):
        ...
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_async_sessionmaker
from app.repos.unit_of_work import UnitOfWork
from app.services.city_service import CityService
from app.services.file_service import FileService
from app.services.person_service import PersonService

# ============================================================================
# Database Dependencies
# ============================================================================


async def get_async_db_session() -> AsyncGenerator[AsyncSession]:
    """
    Async database session dependency for FastAPI endpoints.

    Tests replace this dependency to point the app at their own engine.

    Yields:
        Async SQLAlchemy database session
    """
    session_maker = get_async_sessionmaker()
    async with session_maker() as session:
        yield session


AsyncDbSession = Annotated[AsyncSession, Depends(get_async_db_session)]


async def get_unit_of_work(db: AsyncDbSession) -> AsyncGenerator[UnitOfWork]:
    """One unit of work per request; an open transaction is rolled back on exit."""
    async with UnitOfWork(db) as uow:
        yield uow


UnitOfWorkDep = Annotated[UnitOfWork, Depends(get_unit_of_work)]


# ============================================================================
# Service Dependencies
# ============================================================================


def get_person_service(uow: UnitOfWorkDep) -> PersonService:
    return PersonService(uow)


def get_city_service(uow: UnitOfWorkDep) -> CityService:
    return CityService(uow)


def get_file_service() -> FileService:
    return FileService()


PersonServiceDep = Annotated[PersonService, Depends(get_person_service)]
CityServiceDep = Annotated[CityService, Depends(get_city_service)]
FileServiceDep = Annotated[FileService, Depends(get_file_service)]
