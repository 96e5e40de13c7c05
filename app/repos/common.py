"""
Common repository functions shared across multiple repos.

Row-to-entity mapping lives here so every repository materializes the same
domain records from ORM rows.
"""

from app.db.models import CityModel, PersonConnectionModel, PersonModel, PhoneNumberModel
from app.domain.entities import City, Person, PersonConnection, PhoneNumber
from app.domain.enums import ConnectionType, Gender, PhoneType

__all__ = [
    "to_city",
    "to_person",
    "to_phone_number",
    "to_connection",
]


def to_city(row: CityModel) -> City:
    return City(
        id=row.id,
        name=row.name,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_person(row: PersonModel) -> Person:
    return Person(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        gender=Gender(row.gender),
        personal_number=row.personal_number,
        date_of_birth=row.date_of_birth,
        city_id=row.city_id,
        image_path=row.image_path,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_phone_number(row: PhoneNumberModel) -> PhoneNumber:
    return PhoneNumber(
        id=row.id,
        type=PhoneType(row.type),
        number=row.number,
        person_id=row.person_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_connection(row: PersonConnectionModel) -> PersonConnection:
    return PersonConnection(
        id=row.id,
        person_id=row.person_id,
        connected_person_id=row.connected_person_id,
        connection_type=ConnectionType(row.connection_type),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
