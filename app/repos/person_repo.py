"""
Person repository.

Besides plain CRUD this module owns the read models of the directory:
- the detail view (person + city + phone numbers + outgoing connections)
- quick and detailed search with page-number pagination
- the per-person connection-count report

Storage errors propagate unchanged.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date

from sqlalchemy import delete, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.observability import db_metrics
from app.db.models import CityModel, PersonConnectionModel, PersonModel
from app.domain.entities import (
    ConnectionReportEntry,
    Person,
    PersonDetails,
    PersonSummary,
)
from app.domain.enums import ConnectionType, Gender
from app.repos.common import to_city, to_person
from app.repos.connection_repo import PersonConnectionRepository
from app.repos.pagination import Page, fetch_page
from app.repos.phone_number_repo import PhoneNumberRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonSearchFilters:
    """Filters for detailed search. Unset fields do not constrain the result."""

    first_name: str | None = None
    last_name: str | None = None
    personal_number: str | None = None
    gender: Gender | None = None
    date_of_birth_from: date | None = None
    date_of_birth_to: date | None = None
    city_id: int | None = None


def _contains_ci(column, term: str):
    """Case-insensitive substring match."""
    return func.lower(column).contains(term.lower(), autoescape=True)


def _summary_query():
    return (
        select(
            PersonModel.id,
            PersonModel.first_name,
            PersonModel.last_name,
            PersonModel.personal_number,
            PersonModel.gender,
            PersonModel.date_of_birth,
            PersonModel.image_path,
            CityModel.name.label("city_name"),
        )
        .join(CityModel, CityModel.id == PersonModel.city_id)
        .order_by(PersonModel.first_name, PersonModel.last_name, PersonModel.id)
    )


def _to_summary(row) -> PersonSummary:
    return PersonSummary(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        personal_number=row.personal_number,
        gender=Gender(row.gender),
        date_of_birth=row.date_of_birth,
        city_name=row.city_name,
        image_path=row.image_path,
    )


class PersonRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def get_by_id(self, person_id: int) -> Person | None:
        row = await self.session.get(PersonModel, person_id)
        return to_person(row) if row is not None else None

    async def exists(self, person_id: int) -> bool:
        result = await self.session.execute(select(exists().where(PersonModel.id == person_id)))
        return bool(result.scalar())

    async def personal_number_exists(
        self, personal_number: str, *, exclude_id: int | None = None
    ) -> bool:
        condition = PersonModel.personal_number == personal_number
        if exclude_id is not None:
            condition = condition & (PersonModel.id != exclude_id)
        result = await self.session.execute(select(exists().where(condition)))
        return bool(result.scalar())

    async def add(self, person: Person) -> Person:
        """Stage a new person and flush to obtain its id."""
        row = PersonModel(
            first_name=person.first_name,
            last_name=person.last_name,
            gender=person.gender,
            personal_number=person.personal_number,
            date_of_birth=person.date_of_birth,
            city_id=person.city_id,
            image_path=person.image_path,
            created_at=person.created_at,
            updated_at=person.updated_at,
        )
        self.session.add(row)
        await self.session.flush()
        return to_person(row)

    async def update(self, person: Person) -> None:
        """Write every mutable field of ``person`` to its row."""
        if person.id is None:
            raise ValueError("Cannot update a person that has not been persisted")
        await self.session.execute(
            update(PersonModel)
            .where(PersonModel.id == person.id)
            .values(
                first_name=person.first_name,
                last_name=person.last_name,
                gender=person.gender,
                personal_number=person.personal_number,
                date_of_birth=person.date_of_birth,
                city_id=person.city_id,
                image_path=person.image_path,
                updated_at=person.updated_at,
            )
        )

    async def delete(self, person_id: int) -> int:
        result = await self.session.execute(delete(PersonModel).where(PersonModel.id == person_id))
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Detail view
    # ------------------------------------------------------------------

    async def get_person_with_details(self, person_id: int) -> PersonDetails | None:
        """Hydrate a person with city, phone numbers and outgoing connections."""
        with db_metrics.track("person_get_details"):
            result = await self.session.execute(
                select(PersonModel, CityModel)
                .join(CityModel, CityModel.id == PersonModel.city_id)
                .where(PersonModel.id == person_id)
            )
            row = result.one_or_none()
            if row is None:
                return None
            person_row, city_row = row

            phones = await PhoneNumberRepository(self.session).get_by_person_id(person_id)
            connections = await PersonConnectionRepository(
                self.session
            ).get_person_connections(person_id)

        return PersonDetails(
            person=to_person(person_row),
            city=to_city(city_row),
            phone_numbers=tuple(phones),
            connections=tuple(connections),
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def quick_search(
        self, term: str, page_number: int, page_size: int
    ) -> Page[PersonSummary]:
        """Case-insensitive substring search over names and personal number."""
        stmt = _summary_query()
        term = (term or "").strip()
        if term:
            stmt = stmt.where(
                or_(
                    _contains_ci(PersonModel.first_name, term),
                    _contains_ci(PersonModel.last_name, term),
                    _contains_ci(PersonModel.personal_number, term),
                )
            )
        with db_metrics.track("person_quick_search"):
            rows, total = await fetch_page(
                self.session, stmt, page_number=page_number, page_size=page_size
            )
        return Page(
            items=[_to_summary(r) for r in rows],
            total_count=total,
            page_number=page_number,
            page_size=page_size,
        )

    async def detailed_search(
        self, filters: PersonSearchFilters, page_number: int, page_size: int
    ) -> Page[PersonSummary]:
        """Conjunctive search over every person field."""
        stmt = _summary_query()
        if filters.first_name:
            stmt = stmt.where(_contains_ci(PersonModel.first_name, filters.first_name.strip()))
        if filters.last_name:
            stmt = stmt.where(_contains_ci(PersonModel.last_name, filters.last_name.strip()))
        if filters.personal_number:
            stmt = stmt.where(PersonModel.personal_number == filters.personal_number.strip())
        if filters.gender is not None:
            stmt = stmt.where(PersonModel.gender == filters.gender)
        if filters.date_of_birth_from is not None:
            stmt = stmt.where(PersonModel.date_of_birth >= filters.date_of_birth_from)
        if filters.date_of_birth_to is not None:
            stmt = stmt.where(PersonModel.date_of_birth <= filters.date_of_birth_to)
        if filters.city_id is not None:
            stmt = stmt.where(PersonModel.city_id == filters.city_id)

        with db_metrics.track("person_detailed_search"):
            rows, total = await fetch_page(
                self.session, stmt, page_number=page_number, page_size=page_size
            )
        return Page(
            items=[_to_summary(r) for r in rows],
            total_count=total,
            page_number=page_number,
            page_size=page_size,
        )

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    async def get_all_persons_connection_report(self) -> list[ConnectionReportEntry]:
        """Outgoing connection counts by type for every person.

        Persons and grouped counts are fetched separately and joined in
        memory, so persons without connections still get an (empty) entry.
        """
        with db_metrics.track("person_connection_report"):
            persons = await self.session.execute(
                select(PersonModel.id, PersonModel.first_name, PersonModel.last_name).order_by(
                    PersonModel.first_name, PersonModel.last_name, PersonModel.id
                )
            )
            counts = await self.session.execute(
                select(
                    PersonConnectionModel.person_id,
                    PersonConnectionModel.connection_type,
                    func.count().label("count"),
                ).group_by(PersonConnectionModel.person_id, PersonConnectionModel.connection_type)
            )

        counts_by_person: dict[int, dict[ConnectionType, int]] = defaultdict(dict)
        for person_id, connection_type, count in counts.all():
            counts_by_person[person_id][ConnectionType(connection_type)] = int(count)

        return [
            ConnectionReportEntry(
                person_id=row.id,
                first_name=row.first_name,
                last_name=row.last_name,
                connection_counts=dict(counts_by_person.get(row.id, {})),
            )
            for row in persons.all()
        ]
