"""
Unit tests for the person repository read models.

Tests cover:
- Detail view hydration (city, phones, outgoing connections)
- Quick search: case-insensitive substring over names and personal number
- Detailed search: conjunctive filters and date range
- Page metadata
- Connection report including persons without connections
"""

from datetime import date

import pytest

from app.domain.enums import ConnectionType, Gender, PhoneType
from app.repos.person_repo import PersonRepository, PersonSearchFilters


class TestCrud:
    @pytest.mark.anyio
    async def test_personal_number_exists_honours_exclusion(self, async_db_session, make_person):
        person = await make_person(personal_number="12345678901")
        repo = PersonRepository(async_db_session)

        assert await repo.personal_number_exists("12345678901")
        assert not await repo.personal_number_exists("12345678901", exclude_id=person.id)
        assert not await repo.personal_number_exists("99999999999")

    @pytest.mark.anyio
    async def test_update_writes_all_mutable_fields(self, async_db_session, make_person, cities):
        person = await make_person()
        repo = PersonRepository(async_db_session)

        await repo.update(
            person.update_basic_info(
                first_name="Jane",
                last_name="Doe",
                gender=Gender.FEMALE,
                personal_number="55555555555",
                date_of_birth=date(1980, 2, 2),
                city_id=cities["Batumi"].id,
            )
        )
        await async_db_session.commit()

        stored = await repo.get_by_id(person.id)
        assert stored.first_name == "Jane"
        assert stored.gender == Gender.FEMALE
        assert stored.personal_number == "55555555555"
        assert stored.city_id == cities["Batumi"].id

    @pytest.mark.anyio
    async def test_missing_person(self, async_db_session):
        repo = PersonRepository(async_db_session)
        assert await repo.get_by_id(404) is None
        assert await repo.get_person_with_details(404) is None
        assert not await repo.exists(404)


class TestDetails:
    @pytest.mark.anyio
    async def test_details_include_city_phones_and_connections(
        self, async_db_session, make_person, connect, city
    ):
        person = await make_person(
            phone_numbers=[(PhoneType.MOBILE, "5551111"), (PhoneType.HOME, "5552222")]
        )
        friend = await make_person(first_name="Nino", last_name="Beridze")
        await connect(person.id, friend.id, ConnectionType.ACQUAINTANCE)

        details = await PersonRepository(async_db_session).get_person_with_details(person.id)

        assert details.person.id == person.id
        assert details.city.name == city.name
        assert [p.number for p in details.phone_numbers] == ["5551111", "5552222"]
        assert len(details.connections) == 1
        view = details.connections[0]
        assert view.connected_person_id == friend.id
        assert view.connected_person_first_name == "Nino"
        assert view.connection_type == ConnectionType.ACQUAINTANCE


class TestQuickSearch:
    @pytest.mark.anyio
    async def test_matches_names_case_insensitively(self, async_db_session, make_person):
        await make_person(first_name="Giorgi", last_name="Beridze")
        await make_person(first_name="Nino", last_name="Giorgadze")
        await make_person(first_name="Levan", last_name="Kapanadze")

        page = await PersonRepository(async_db_session).quick_search("GIORG", 1, 10)

        assert page.total_count == 2
        assert [p.first_name for p in page.items] == ["Giorgi", "Nino"]

    @pytest.mark.anyio
    async def test_matches_personal_number_substring(self, async_db_session, make_person):
        await make_person(personal_number="01001012345")
        await make_person(personal_number="99999999999")

        page = await PersonRepository(async_db_session).quick_search("10123", 1, 10)

        assert [p.personal_number for p in page.items] == ["01001012345"]

    @pytest.mark.anyio
    async def test_wildcards_in_term_are_literal(self, async_db_session, make_person):
        await make_person(first_name="Anna")

        page = await PersonRepository(async_db_session).quick_search("%", 1, 10)

        assert page.total_count == 0

    @pytest.mark.anyio
    async def test_paging_metadata(self, async_db_session, make_person):
        for name in ("Aa", "Bb", "Cc", "Dd", "Ee"):
            await make_person(first_name=name, last_name="Smith")

        page = await PersonRepository(async_db_session).quick_search("smith", 2, 2)

        assert [p.first_name for p in page.items] == ["Cc", "Dd"]
        assert page.total_count == 5
        assert page.total_pages == 3
        assert page.has_next is True
        assert page.has_previous is True

    @pytest.mark.anyio
    async def test_page_past_the_end_is_empty(self, async_db_session, make_person):
        await make_person()

        page = await PersonRepository(async_db_session).quick_search("john", 3, 10)

        assert page.items == []
        assert page.total_count == 1
        assert page.has_next is False


class TestDetailedSearch:
    @pytest.mark.anyio
    async def test_filters_are_conjunctive(self, async_db_session, make_person, cities):
        await make_person(first_name="Nino", gender=Gender.FEMALE)
        await make_person(first_name="Nino", gender=Gender.MALE)
        await make_person(
            first_name="Nino", gender=Gender.FEMALE, city_id=cities["Batumi"].id
        )

        page = await PersonRepository(async_db_session).detailed_search(
            PersonSearchFilters(
                first_name="nin", gender=Gender.FEMALE, city_id=cities["Tbilisi"].id
            ),
            1,
            10,
        )

        assert page.total_count == 1
        assert page.items[0].gender == Gender.FEMALE
        assert page.items[0].city_name == "Tbilisi"

    @pytest.mark.anyio
    async def test_personal_number_matches_exactly(self, async_db_session, make_person):
        await make_person(personal_number="01001012345")
        await make_person(personal_number="01001012346")

        page = await PersonRepository(async_db_session).detailed_search(
            PersonSearchFilters(personal_number="01001012345"), 1, 10
        )

        assert [p.personal_number for p in page.items] == ["01001012345"]

    @pytest.mark.anyio
    async def test_date_of_birth_range_is_inclusive(self, async_db_session, make_person):
        await make_person(first_name="Early", date_of_birth=date(1980, 1, 1))
        await make_person(first_name="Middle", date_of_birth=date(1990, 1, 1))
        await make_person(first_name="Late", date_of_birth=date(2000, 1, 1))

        page = await PersonRepository(async_db_session).detailed_search(
            PersonSearchFilters(
                date_of_birth_from=date(1980, 1, 1), date_of_birth_to=date(1990, 1, 1)
            ),
            1,
            10,
        )

        assert sorted(p.first_name for p in page.items) == ["Early", "Middle"]

    @pytest.mark.anyio
    async def test_no_filters_returns_everyone(self, async_db_session, make_person):
        await make_person()
        await make_person()

        page = await PersonRepository(async_db_session).detailed_search(
            PersonSearchFilters(), 1, 10
        )

        assert page.total_count == 2


class TestConnectionReport:
    @pytest.mark.anyio
    async def test_counts_outgoing_connections_by_type(
        self, async_db_session, make_person, connect
    ):
        a = await make_person(first_name="Anna")
        b = await make_person(first_name="Boris")
        c = await make_person(first_name="Carl")
        await make_person(first_name="Dato")
        await connect(a.id, b.id, ConnectionType.COLLEAGUE)
        await connect(a.id, c.id, ConnectionType.COLLEAGUE)
        await connect(b.id, c.id, ConnectionType.RELATIVE)

        report = await PersonRepository(async_db_session).get_all_persons_connection_report()
        by_name = {entry.first_name: entry for entry in report}

        assert [entry.first_name for entry in report] == ["Anna", "Boris", "Carl", "Dato"]
        assert by_name["Anna"].connection_counts == {ConnectionType.COLLEAGUE: 2}
        assert by_name["Boris"].connection_counts == {
            ConnectionType.COLLEAGUE: 1,
            ConnectionType.RELATIVE: 1,
        }
        assert by_name["Carl"].total_connections == 2
        assert by_name["Dato"].connection_counts == {}
