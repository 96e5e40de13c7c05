"""
Schema and reference-data management used by scripts/setup_database.py.

Cities are reference data: persons can only be created in an existing
city, so a fresh database is seeded with the default list below.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.db.models import Base, CityModel, PersonConnectionModel, PersonModel, PhoneNumberModel
from app.domain.entities import City
from app.repos.city_repo import CityRepository

logger = logging.getLogger(__name__)

DEFAULT_CITIES: tuple[str, ...] = (
    "Tbilisi",
    "Batumi",
    "Kutaisi",
    "Rustavi",
    "Zugdidi",
    "Gori",
    "Telavi",
)

_COUNTED_TABLES = {
    "cities": CityModel,
    "persons": PersonModel,
    "phone_numbers": PhoneNumberModel,
    "person_connections": PersonConnectionModel,
}


async def seed_cities(session: AsyncSession, names: Iterable[str] = DEFAULT_CITIES) -> int:
    """Insert the cities that do not exist yet and commit.

    Returns:
        Number of cities inserted
    """
    repo = CityRepository(session)
    inserted = 0
    for name in names:
        city = City.create(name)
        if await repo.get_by_name(city.name) is not None:
            continue
        await repo.add(city)
        inserted += 1
    await session.commit()
    logger.info("Seeded cities", extra={"inserted": inserted})
    return inserted


async def drop_all_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def truncate_all_tables(session: AsyncSession) -> None:
    """Delete every row, children first, keeping the schema."""
    for table in reversed(Base.metadata.sorted_tables):
        await session.execute(table.delete())
    await session.commit()


async def table_counts(session: AsyncSession) -> dict[str, int]:
    counts: dict[str, int] = {}
    for name, model in _COUNTED_TABLES.items():
        result = await session.execute(select(func.count()).select_from(model))
        counts[name] = int(result.scalar_one())
    return counts
