"""
Person Service

Use cases of the person directory: person CRUD, image attachment,
bidirectional connections, search and the connection report.

Every operation returns a Result. Expected outcomes (missing person or city,
duplicate personal number, duplicate connection, invalid input) come back as
failure or validation-failure results. Unexpected storage errors are logged,
the transaction is rolled back and a ``DatabaseOperationFailed`` result
carrying the exception message is returned.

Write paths follow one shape:
    pre-validate -> begin transaction -> mutate -> save_changes -> commit
and leave no partial state behind on any failure, cancellation included.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.exc import IntegrityError

from app.core.errors import ErrorKey, InvalidArgumentError
from app.core.observability import metrics, record_operation
from app.domain.entities import (
    PERSONAL_NUMBER_LENGTH,
    ConnectionReportEntry,
    Person,
    PersonConnection,
    PersonDetails,
    PersonSummary,
    PhoneNumber,
)
from app.domain.enums import ConnectionType, Gender, PhoneType
from app.repos.pagination import MAX_PAGE_SIZE, Page
from app.repos.person_repo import PersonSearchFilters
from app.repos.unit_of_work import UnitOfWork
from app.services.result import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhoneNumberData:
    type: PhoneType
    number: str


@dataclass(frozen=True)
class PersonData:
    """Input for create and update. Phone numbers replace any existing ones."""

    first_name: str
    last_name: str
    gender: Gender
    personal_number: str
    date_of_birth: date
    city_id: int
    phone_numbers: list[PhoneNumberData] = field(default_factory=list)


@dataclass(frozen=True)
class ConnectionData:
    person_id: int
    connected_person_id: int
    connection_type: ConnectionType


def _outcome(result: Result) -> str:
    if result.is_success:
        return "success"
    if result.is_validation_failure:
        return "validation_failure"
    if result.is_not_found:
        return "not_found"
    return "failure"


def _id_errors(*checks: tuple[int | None, ErrorKey]) -> list[ErrorKey]:
    """Keys of the ids that are not positive; checked before any storage call."""
    return [key for value, key in checks if value is None or value <= 0]


def _validate_paging(page_number: int, page_size: int) -> list[ErrorKey]:
    errors: list[ErrorKey] = []
    if page_number < 1:
        errors.append(ErrorKey.PAGE_NUMBER_MUST_BE_POSITIVE)
    if page_size < 1:
        errors.append(ErrorKey.PAGE_SIZE_MUST_BE_POSITIVE)
    elif page_size > MAX_PAGE_SIZE:
        errors.append(ErrorKey.PAGE_SIZE_MAXIMUM)
    return errors


class PersonService:
    def __init__(self, uow: UnitOfWork) -> None:
        self.uow = uow

    def _finish[T](self, operation: str, result: Result[T]) -> Result[T]:
        record_operation(operation, _outcome(result))
        return result

    async def _storage_failure(self, operation: str, exc: Exception) -> Result:
        logger.error(
            f"{operation} failed: {exc}",
            extra={"operation": operation, "error_type": type(exc).__name__},
            exc_info=True,
        )
        await self.uow.session.rollback()
        return Result.failure(ErrorKey.DATABASE_OPERATION_FAILED, str(exc))

    async def _details_or_not_found(self, person_id: int) -> Result[PersonDetails]:
        details = await self.uow.persons.get_person_with_details(person_id)
        if details is None:
            return Result.failure(ErrorKey.PERSON_NOT_FOUND, person_id=person_id)
        return Result.success(details)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_person(self, person_id: int) -> Result[PersonDetails]:
        errors = _id_errors((person_id, ErrorKey.PERSON_ID_REQUIRED))
        if errors:
            return self._finish("get_person", Result.validation_failure(errors))
        try:
            result = await self._details_or_not_found(person_id)
        except Exception as exc:
            result = await self._storage_failure("get_person", exc)
        return self._finish("get_person", result)

    async def quick_search(
        self, search_term: str | None, page_number: int = 1, page_size: int = 10
    ) -> Result[Page[PersonSummary]]:
        """Search first name, last name and personal number by substring."""
        errors: list[ErrorKey] = []
        if not search_term or not search_term.strip():
            errors.append(ErrorKey.SEARCH_TERM_REQUIRED)
        errors.extend(_validate_paging(page_number, page_size))
        if errors:
            return self._finish("quick_search", Result.validation_failure(errors))

        try:
            page = await self.uow.persons.quick_search(search_term, page_number, page_size)
            result = Result.success(page)
        except Exception as exc:
            result = await self._storage_failure("quick_search", exc)
        return self._finish("quick_search", result)

    async def detailed_search(
        self, filters: PersonSearchFilters, page_number: int = 1, page_size: int = 10
    ) -> Result[Page[PersonSummary]]:
        errors = _validate_paging(page_number, page_size)
        personal_number = (filters.personal_number or "").strip()
        if personal_number and len(personal_number) != PERSONAL_NUMBER_LENGTH:
            errors.append(ErrorKey.PERSONAL_NUMBER_LENGTH)
        elif personal_number and not personal_number.isdigit():
            errors.append(ErrorKey.PERSONAL_NUMBER_ONLY_DIGITS)
        if filters.city_id is not None and filters.city_id <= 0:
            errors.append(ErrorKey.CITY_ID_REQUIRED)
        if errors:
            return self._finish("detailed_search", Result.validation_failure(errors))

        try:
            page = await self.uow.persons.detailed_search(filters, page_number, page_size)
            result = Result.success(page)
        except Exception as exc:
            result = await self._storage_failure("detailed_search", exc)
        return self._finish("detailed_search", result)

    async def get_connection_report(self) -> Result[list[ConnectionReportEntry]]:
        """Outgoing connection counts by type, one entry per person."""
        try:
            entries = await self.uow.persons.get_all_persons_connection_report()
            result = Result.success(entries)
        except Exception as exc:
            result = await self._storage_failure("connection_report", exc)
        return self._finish("connection_report", result)

    # ------------------------------------------------------------------
    # Person writes
    # ------------------------------------------------------------------

    async def create_person(self, data: PersonData) -> Result[PersonDetails]:
        """
        Create a person together with its phone numbers.

        The person row and all phone rows are committed in one transaction;
        if attaching any phone fails nothing is persisted.
        """
        operation = "create_person"
        try:
            if not await self.uow.cities.exists(data.city_id):
                return self._finish(
                    operation, Result.failure(ErrorKey.CITY_NOT_FOUND, city_id=data.city_id)
                )
            if await self.uow.persons.personal_number_exists(data.personal_number.strip()):
                logger.info(
                    "Rejected duplicate personal number",
                    extra={"operation": operation},
                )
                return self._finish(
                    operation, Result.failure(ErrorKey.PERSONAL_NUMBER_ALREADY_EXISTS)
                )

            async with self.uow.transaction():
                person = Person.create(
                    first_name=data.first_name,
                    last_name=data.last_name,
                    gender=data.gender,
                    personal_number=data.personal_number,
                    date_of_birth=data.date_of_birth,
                    city_id=data.city_id,
                )
                person = await self.uow.persons.add(person)
                await self.uow.phone_numbers.add_many(
                    PhoneNumber.create(type=phone.type, number=phone.number, person_id=person.id)
                    for phone in data.phone_numbers
                )
                await self.uow.save_changes()

            logger.info("Person created", extra={"person_id": person.id})
            result = await self._details_or_not_found(person.id)
        except InvalidArgumentError as exc:
            logger.info(
                f"Rejected person input: {exc.message}",
                extra={"operation": operation, "error_key": exc.key.value},
            )
            result = Result.validation_failure([exc.key])
        except Exception as exc:
            result = await self._storage_failure(operation, exc)
        return self._finish(operation, result)

    async def update_person(self, person_id: int, data: PersonData) -> Result[PersonDetails]:
        """Replace basic info and the full phone list of an existing person."""
        operation = "update_person"
        errors = _id_errors((person_id, ErrorKey.PERSON_ID_REQUIRED))
        if errors:
            return self._finish(operation, Result.validation_failure(errors))
        try:
            person = await self.uow.persons.get_by_id(person_id)
            if person is None:
                return self._finish(
                    operation, Result.failure(ErrorKey.PERSON_NOT_FOUND, person_id=person_id)
                )
            if not await self.uow.cities.exists(data.city_id):
                return self._finish(
                    operation, Result.failure(ErrorKey.CITY_NOT_FOUND, city_id=data.city_id)
                )
            if await self.uow.persons.personal_number_exists(
                data.personal_number.strip(), exclude_id=person_id
            ):
                return self._finish(
                    operation, Result.failure(ErrorKey.PERSONAL_NUMBER_ALREADY_EXISTS)
                )

            async with self.uow.transaction():
                updated = person.update_basic_info(
                    first_name=data.first_name,
                    last_name=data.last_name,
                    gender=data.gender,
                    personal_number=data.personal_number,
                    date_of_birth=data.date_of_birth,
                    city_id=data.city_id,
                )
                await self.uow.persons.update(updated)
                await self.uow.phone_numbers.delete_by_person_id(person_id)
                await self.uow.phone_numbers.add_many(
                    PhoneNumber.create(type=phone.type, number=phone.number, person_id=person_id)
                    for phone in data.phone_numbers
                )
                await self.uow.save_changes()

            logger.info("Person updated", extra={"person_id": person_id})
            result = await self._details_or_not_found(person_id)
        except InvalidArgumentError as exc:
            logger.info(
                f"Rejected person input: {exc.message}",
                extra={"operation": operation, "error_key": exc.key.value},
            )
            result = Result.validation_failure([exc.key])
        except Exception as exc:
            result = await self._storage_failure(operation, exc)
        return self._finish(operation, result)

    async def delete_person(self, person_id: int) -> Result[None]:
        """Delete a person with its connections (both roles) and phone numbers."""
        operation = "delete_person"
        errors = _id_errors((person_id, ErrorKey.PERSON_ID_REQUIRED))
        if errors:
            return self._finish(operation, Result.validation_failure(errors))
        try:
            if not await self.uow.persons.exists(person_id):
                return self._finish(
                    operation, Result.failure(ErrorKey.PERSON_NOT_FOUND, person_id=person_id)
                )

            async with self.uow.transaction():
                removed_connections = await self.uow.connections.delete_person_connections(
                    person_id
                )
                await self.uow.phone_numbers.delete_by_person_id(person_id)
                await self.uow.persons.delete(person_id)
                await self.uow.save_changes()

            if removed_connections:
                # Two rows per logical connection
                metrics.person_connection_changes_total.labels(action="removed").inc(
                    removed_connections // 2
                )
            logger.info(
                "Person deleted",
                extra={"person_id": person_id, "connection_rows": removed_connections},
            )
            result = Result.success()
        except Exception as exc:
            result = await self._storage_failure(operation, exc)
        return self._finish(operation, result)

    async def upload_person_image(
        self, person_id: int, image_path: str
    ) -> Result[PersonDetails]:
        """Record a stored image path on the person and return the detail view."""
        operation = "upload_person_image"
        errors = _id_errors((person_id, ErrorKey.PERSON_ID_REQUIRED))
        if errors:
            return self._finish(operation, Result.validation_failure(errors))
        try:
            person = await self.uow.persons.get_by_id(person_id)
            if person is None:
                return self._finish(
                    operation, Result.failure(ErrorKey.PERSON_NOT_FOUND, person_id=person_id)
                )

            async with self.uow.transaction():
                await self.uow.persons.update(person.update_image_path(image_path))
                await self.uow.save_changes()

            result = await self._details_or_not_found(person_id)
        except InvalidArgumentError as exc:
            result = Result.validation_failure([exc.key])
        except Exception as exc:
            result = await self._storage_failure(operation, exc)
        return self._finish(operation, result)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    async def add_person_connection(self, data: ConnectionData) -> Result[None]:
        """
        Connect two persons in both directions with one connection type.

        A pair can hold only one connection, whatever its type. Two concurrent
        adds for the same pair both insert (A, B) and (B, A); the loser hits
        the ordered-pair unique constraint and is reported as
        ``ConnectionAlreadyExists``.
        """
        operation = "add_connection"
        try:
            # ids, self-connection and type are checked before touching storage
            PersonConnection.create(
                person_id=data.person_id,
                connected_person_id=data.connected_person_id,
                connection_type=data.connection_type,
            )
        except InvalidArgumentError as exc:
            return self._finish(operation, Result.validation_failure([exc.key]))

        try:
            if not await self.uow.persons.exists(
                data.person_id
            ) or not await self.uow.persons.exists(data.connected_person_id):
                return self._finish(operation, Result.failure(ErrorKey.PERSON_NOT_FOUND))

            if await self.uow.connections.connection_exists(
                data.person_id, data.connected_person_id
            ):
                return self._finish(operation, Result.failure(ErrorKey.CONNECTION_ALREADY_EXISTS))

            async with self.uow.transaction():
                await self.uow.connections.add_bidirectional(
                    data.person_id, data.connected_person_id, data.connection_type
                )
                await self.uow.save_changes()

            metrics.person_connection_changes_total.labels(action="added").inc()
            logger.info(
                "Connection added",
                extra={
                    "person_id": data.person_id,
                    "connected_person_id": data.connected_person_id,
                    "connection_type": ConnectionType(data.connection_type).value,
                },
            )
            result = Result.success()
        except InvalidArgumentError as exc:
            result = Result.validation_failure([exc.key])
        except IntegrityError:
            logger.warning(
                "Concurrent duplicate connection rejected",
                extra={
                    "person_id": data.person_id,
                    "connected_person_id": data.connected_person_id,
                },
            )
            await self.uow.session.rollback()
            result = Result.failure(ErrorKey.CONNECTION_ALREADY_EXISTS)
        except Exception as exc:
            result = await self._storage_failure(operation, exc)
        return self._finish(operation, result)

    async def remove_person_connection(
        self, person_id: int, connected_person_id: int
    ) -> Result[None]:
        """Remove both directions of the connection between two persons."""
        operation = "remove_connection"
        errors = _id_errors(
            (person_id, ErrorKey.PERSON_ID_REQUIRED),
            (connected_person_id, ErrorKey.CONNECTED_PERSON_ID_REQUIRED),
        )
        if errors:
            return self._finish(operation, Result.validation_failure(errors))
        try:
            if not await self.uow.connections.connection_exists(person_id, connected_person_id):
                return self._finish(operation, Result.failure(ErrorKey.CONNECTION_NOT_FOUND))

            async with self.uow.transaction():
                removed = await self.uow.connections.delete_bidirectional(
                    person_id, connected_person_id
                )
                await self.uow.save_changes()

            metrics.person_connection_changes_total.labels(action="removed").inc()
            logger.info(
                "Connection removed",
                extra={
                    "person_id": person_id,
                    "connected_person_id": connected_person_id,
                    "rows": removed,
                },
            )
            result = Result.success()
        except Exception as exc:
            result = await self._storage_failure(operation, exc)
        return self._finish(operation, result)
