"""
Pytest configuration and shared fixtures.

Provides:
- A fresh in-memory SQLite database per test (async SQLAlchemy + aiosqlite)
- AsyncSession and UnitOfWork fixtures bound to that database
- Seeded cities
- FastAPI app and httpx AsyncClient with the session and file storage overridden

Async Helper Fixtures:
- make_person: create a person (and phone numbers) directly in the database
- connect: connect two persons in both directions
- person_payload: build a valid create/update request body
"""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add app to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing app
os.environ["DATABASE_URL_APP"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "test"
os.environ["OTEL_ENABLED"] = "false"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["OBSERVABILITY_STRUCTURED_LOGS"] = "false"
os.environ.setdefault("FILE_UPLOAD_PATH", tempfile.mkdtemp(prefix="person-directory-test-"))

import httpx  # noqa: E402 (import after env setup)
import pytest  # noqa: E402 (import after env setup)
from fastapi import FastAPI  # noqa: E402 (import after env setup)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402

from app.core.db import create_all_tables, create_fresh_async_engine  # noqa: E402
from app.core.dependencies import get_async_db_session, get_file_service  # noqa: E402
from app.db.seed import seed_cities  # noqa: E402
from app.domain.entities import City, Person, PhoneNumber  # noqa: E402
from app.domain.enums import ConnectionType, Gender, PhoneType  # noqa: E402
from app.main import create_app  # noqa: E402
from app.repos.city_repo import CityRepository  # noqa: E402
from app.repos.connection_repo import PersonConnectionRepository  # noqa: E402
from app.repos.person_repo import PersonRepository  # noqa: E402
from app.repos.phone_number_repo import PhoneNumberRepository  # noqa: E402
from app.repos.unit_of_work import UnitOfWork  # noqa: E402
from app.services.file_service import FileService  # noqa: E402

TEST_CITIES = ("Tbilisi", "Batumi", "Kutaisi")


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_cached_engine(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Start every test without a cached engine or sessionmaker.

    Plain (sync) fixture so it applies to sync and async tests alike; an
    engine cached by one test is never reused on another test's event loop.
    """
    from app.core import db

    monkeypatch.setattr(db, "_async_engine", None)
    monkeypatch.setattr(db, "_async_sessionmaker", None)


@pytest.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Fresh in-memory database with the full schema.

    The engine uses a single shared connection, so every session created on
    it sees the same data.
    """
    engine = create_fresh_async_engine("sqlite+aiosqlite://")
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def async_db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    session = AsyncSession(async_engine, expire_on_commit=False, autoflush=False)
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def uow(async_db_session: AsyncSession) -> UnitOfWork:
    return UnitOfWork(async_db_session)


@pytest.fixture
async def cities(async_db_session: AsyncSession) -> dict[str, City]:
    """Seeded cities keyed by name."""
    await seed_cities(async_db_session, TEST_CITIES)
    return {city.name: city for city in await CityRepository(async_db_session).get_all()}


@pytest.fixture
def city(cities: dict[str, City]) -> City:
    return cities["Tbilisi"]


# ============================================================================
# Data Helpers
# ============================================================================


@pytest.fixture
def make_person(
    async_db_session: AsyncSession, city: City
) -> Callable[..., Awaitable[Person]]:
    """
    Async helper creating a committed person.

    Personal numbers are generated unless given, so several persons can be
    created in one test.
    """
    counter = {"next": 1}

    async def _make(**kwargs: Any) -> Person:
        seq = counter["next"]
        counter["next"] += 1
        phones = kwargs.pop("phone_numbers", [])
        defaults: dict[str, Any] = {
            "first_name": "John",
            "last_name": "Smith",
            "gender": Gender.MALE,
            "personal_number": f"{seq:011d}",
            "date_of_birth": date(1990, 5, 17),
            "city_id": city.id,
        }
        defaults.update(kwargs)
        person = await PersonRepository(async_db_session).add(Person.create(**defaults))
        await PhoneNumberRepository(async_db_session).add_many(
            PhoneNumber.create(type=phone_type, number=number, person_id=person.id)
            for phone_type, number in phones
        )
        await async_db_session.commit()
        return person

    return _make


@pytest.fixture
def connect(async_db_session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Async helper connecting two persons in both directions and committing."""

    async def _connect(
        person_id: int,
        connected_person_id: int,
        connection_type: ConnectionType = ConnectionType.COLLEAGUE,
    ) -> None:
        await PersonConnectionRepository(async_db_session).add_bidirectional(
            person_id, connected_person_id, connection_type
        )
        await async_db_session.commit()

    return _connect


@pytest.fixture
def person_payload(city: City) -> Callable[..., dict[str, Any]]:
    """Build a valid camelCase request body for create and update."""

    def _payload(**overrides: Any) -> dict[str, Any]:
        body: dict[str, Any] = {
            "firstName": "John",
            "lastName": "Smith",
            "gender": "Male",
            "personalNumber": "01001012345",
            "dateOfBirth": "1990-05-17",
            "cityId": city.id,
            "phoneNumbers": [{"type": PhoneType.MOBILE.value, "number": "+995555123456"}],
        }
        body.update(overrides)
        return body

    return _payload


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
def file_service(tmp_path: Path) -> FileService:
    return FileService(upload_path=tmp_path / "images", base_url="/api/files")


@pytest.fixture
def app(async_db_session: AsyncSession, file_service: FileService) -> FastAPI:
    """Application wired to the test database and a temporary upload directory."""
    application = create_app()

    async def override_get_async_db():
        yield async_db_session

    application.dependency_overrides[get_async_db_session] = override_get_async_db
    application.dependency_overrides[get_file_service] = lambda: file_service
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
