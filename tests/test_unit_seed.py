"""Unit tests for schema and reference-data helpers in app.db.seed."""

import pytest
from sqlalchemy import inspect

from app.db.seed import (
    DEFAULT_CITIES,
    drop_all_tables,
    seed_cities,
    table_counts,
    truncate_all_tables,
)
from app.domain.enums import PhoneType
from app.repos.city_repo import CityRepository


@pytest.mark.anyio
class TestSeedCities:
    async def test_seeds_default_cities(self, async_db_session):
        inserted = await seed_cities(async_db_session)

        assert inserted == len(DEFAULT_CITIES)
        names = [city.name for city in await CityRepository(async_db_session).get_all()]
        assert sorted(names) == sorted(DEFAULT_CITIES)

    async def test_is_idempotent(self, async_db_session):
        await seed_cities(async_db_session, ["Tbilisi", "Batumi"])

        assert await seed_cities(async_db_session, ["Batumi", "Gori"]) == 1
        assert (await table_counts(async_db_session))["cities"] == 3


@pytest.mark.anyio
class TestTableHelpers:
    async def test_table_counts(self, async_db_session, make_person, connect):
        first = await make_person(phone_numbers=[(PhoneType.MOBILE, "555111")])
        second = await make_person(first_name="Anna")
        await connect(first.id, second.id)

        assert await table_counts(async_db_session) == {
            "cities": 3,
            "persons": 2,
            "phone_numbers": 1,
            "person_connections": 2,
        }

    async def test_truncate_keeps_schema(self, async_db_session, make_person):
        await make_person(phone_numbers=[(PhoneType.HOME, "2223344")])

        await truncate_all_tables(async_db_session)

        assert set((await table_counts(async_db_session)).values()) == {0}

    async def test_drop_all_tables(self, async_engine):
        await drop_all_tables(async_engine)

        async with async_engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert tables == []
