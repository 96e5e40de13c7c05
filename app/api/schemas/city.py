"""Pydantic schemas for City responses."""

from app.api.schemas.common import CamelModel
from app.domain.entities import City


class CityResponse(CamelModel):
    id: int
    name: str

    @classmethod
    def from_entity(cls, city: City) -> "CityResponse":
        return cls(id=city.id, name=city.name)
