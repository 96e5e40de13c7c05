"""City repository."""

import logging

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.observability import db_metrics
from app.db.models import CityModel
from app.domain.entities import City
from app.repos.common import to_city

logger = logging.getLogger(__name__)


class CityRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_all(self) -> list[City]:
        """All cities ordered by name."""
        with db_metrics.track("city_get_all"):
            result = await self.session.execute(
                select(CityModel).order_by(CityModel.name, CityModel.id)
            )
        return [to_city(row) for row in result.scalars().all()]

    async def get_by_id(self, city_id: int) -> City | None:
        row = await self.session.get(CityModel, city_id)
        return to_city(row) if row is not None else None

    async def get_by_name(self, name: str) -> City | None:
        result = await self.session.execute(select(CityModel).where(CityModel.name == name))
        row = result.scalar_one_or_none()
        return to_city(row) if row is not None else None

    async def exists(self, city_id: int) -> bool:
        result = await self.session.execute(select(exists().where(CityModel.id == city_id)))
        return bool(result.scalar())

    async def add(self, city: City) -> City:
        """Stage a new city and flush to obtain its id."""
        row = CityModel(name=city.name)
        self.session.add(row)
        await self.session.flush()
        logger.info("Added city %s", row.name, extra={"city_id": row.id})
        return to_city(row)
