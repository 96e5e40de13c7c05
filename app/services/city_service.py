"""City read operations."""

import logging

from app.core.errors import ErrorKey
from app.domain.entities import City
from app.repos.unit_of_work import UnitOfWork
from app.services.result import Result

logger = logging.getLogger(__name__)


class CityService:
    def __init__(self, uow: UnitOfWork) -> None:
        self.uow = uow

    async def get_all_cities(self) -> Result[list[City]]:
        try:
            return Result.success(await self.uow.cities.get_all())
        except Exception as exc:
            logger.error(f"Failed to list cities: {exc}", exc_info=True)
            return Result.failure(ErrorKey.DATABASE_OPERATION_FAILED, str(exc))

    async def get_city(self, city_id: int) -> Result[City]:
        try:
            city = await self.uow.cities.get_by_id(city_id)
        except Exception as exc:
            logger.error(f"Failed to load city {city_id}: {exc}", exc_info=True)
            return Result.failure(ErrorKey.DATABASE_OPERATION_FAILED, str(exc))
        if city is None:
            return Result.failure(ErrorKey.CITY_NOT_FOUND, city_id=city_id)
        return Result.success(city)
