"""Domain entities: City, Person, PhoneNumber, PersonConnection and read views.

Entities are immutable records. Application code builds them through the
validating ``create`` factories and changes them through named mutators that
return a new instance. The plain dataclass constructor performs no validation;
repositories use it to materialize rows that were validated when written.

Relationships are kept as identifiers. Read paths assemble the
``PersonDetails`` view instead of navigating object graphs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from enum import Enum

from app.core.errors import ErrorKey, InvalidArgumentError
from app.domain.enums import ConnectionType, Gender, PhoneType

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PERSONAL_NUMBER_LENGTH = 11
MINIMUM_AGE = 18
PHONE_NUMBER_MIN_LENGTH = 4
PHONE_NUMBER_MAX_LENGTH = 50
CITY_NAME_MAX_LENGTH = 100
IMAGE_PATH_MAX_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(UTC)


def calculate_age(date_of_birth: date, today: date | None = None) -> int:
    """Full years between ``date_of_birth`` and ``today`` (exact birthday)."""
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def _require_positive_id(value: int | None, field_name: str, key: ErrorKey) -> int:
    if value is None or value <= 0:
        raise InvalidArgumentError(f"{field_name} must be greater than 0", key=key)
    return value


def _coerce_enum[E: Enum](
    enum_cls: type[E], value: E | str | None, field_name: str, key: ErrorKey
) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidArgumentError(f"{field_name} '{value}' is not valid", key=key) from None


def _clean_name(value: str | None, field_name: str, required: ErrorKey, length: ErrorKey) -> str:
    if value is None or not value.strip():
        raise InvalidArgumentError(f"{field_name} cannot be null or empty", key=required)
    cleaned = value.strip()
    if not NAME_MIN_LENGTH <= len(cleaned) <= NAME_MAX_LENGTH:
        raise InvalidArgumentError(
            f"{field_name} must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters",
            key=length,
        )
    return cleaned


def _clean_phone_number(number: str | None) -> str:
    if number is None or not number.strip():
        raise InvalidArgumentError(
            "Phone number cannot be null or empty", key=ErrorKey.PHONE_NUMBER_REQUIRED
        )
    cleaned = number.strip()
    if not PHONE_NUMBER_MIN_LENGTH <= len(cleaned) <= PHONE_NUMBER_MAX_LENGTH:
        raise InvalidArgumentError(
            f"Phone number must be between {PHONE_NUMBER_MIN_LENGTH} and "
            f"{PHONE_NUMBER_MAX_LENGTH} characters",
            key=ErrorKey.PHONE_NUMBER_LENGTH,
        )
    return cleaned


@dataclass(frozen=True)
class City:
    """A city persons live in. Names are unique."""

    name: str
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(cls, name: str) -> City:
        if name is None or not name.strip():
            raise InvalidArgumentError("City name cannot be null or empty")
        cleaned = name.strip()
        if len(cleaned) > CITY_NAME_MAX_LENGTH:
            raise InvalidArgumentError(
                f"City name must be at most {CITY_NAME_MAX_LENGTH} characters"
            )
        return cls(name=cleaned)


@dataclass(frozen=True)
class Person:
    """
    Represents an individual in the directory.

    Phone numbers and connections are stored separately and reference the
    person by id.
    """

    first_name: str
    last_name: str
    gender: Gender
    personal_number: str
    date_of_birth: date
    city_id: int
    image_path: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @staticmethod
    def _validated_basic_info(
        first_name: str,
        last_name: str,
        gender: Gender,
        personal_number: str,
        date_of_birth: date,
        city_id: int,
        today: date | None,
    ) -> dict:
        first = _clean_name(
            first_name, "FirstName", ErrorKey.FIRST_NAME_REQUIRED, ErrorKey.FIRST_NAME_LENGTH
        )
        last = _clean_name(
            last_name, "LastName", ErrorKey.LAST_NAME_REQUIRED, ErrorKey.LAST_NAME_LENGTH
        )

        if gender is None:
            raise InvalidArgumentError("Gender is required", key=ErrorKey.GENDER_INVALID)
        gender = _coerce_enum(Gender, gender, "Gender", ErrorKey.GENDER_INVALID)

        if personal_number is None or len(personal_number.strip()) != PERSONAL_NUMBER_LENGTH:
            raise InvalidArgumentError(
                f"PersonalNumber must be exactly {PERSONAL_NUMBER_LENGTH} characters",
                key=ErrorKey.PERSONAL_NUMBER_LENGTH,
            )

        if date_of_birth is None:
            raise InvalidArgumentError(
                "DateOfBirth is required", key=ErrorKey.DATE_OF_BIRTH_REQUIRED
            )
        if isinstance(date_of_birth, datetime):
            date_of_birth = date_of_birth.date()
        if calculate_age(date_of_birth, today) < MINIMUM_AGE:
            raise InvalidArgumentError(
                f"Person must be at least {MINIMUM_AGE} years old",
                key=ErrorKey.MINIMUM_AGE_18_REQUIRED,
            )

        _require_positive_id(city_id, "CityId", ErrorKey.CITY_ID_REQUIRED)

        return {
            "first_name": first,
            "last_name": last,
            "gender": gender,
            "personal_number": personal_number.strip(),
            "date_of_birth": date_of_birth,
            "city_id": city_id,
        }

    @classmethod
    def create(
        cls,
        *,
        first_name: str,
        last_name: str,
        gender: Gender,
        personal_number: str,
        date_of_birth: date,
        city_id: int,
        today: date | None = None,
    ) -> Person:
        """Build a new, not yet persisted person.

        Raises:
            InvalidArgumentError: If any field breaks a person invariant
        """
        return cls(
            **cls._validated_basic_info(
                first_name, last_name, gender, personal_number, date_of_birth, city_id, today
            )
        )

    def update_basic_info(
        self,
        *,
        first_name: str,
        last_name: str,
        gender: Gender,
        personal_number: str,
        date_of_birth: date,
        city_id: int,
        today: date | None = None,
    ) -> Person:
        """Return a copy with new basic info, validated the same way as ``create``."""
        fields = self._validated_basic_info(
            first_name, last_name, gender, personal_number, date_of_birth, city_id, today
        )
        return replace(self, updated_at=_utcnow(), **fields)

    def update_image_path(self, image_path: str | None) -> Person:
        cleaned = image_path.strip() if image_path else None
        if cleaned and len(cleaned) > IMAGE_PATH_MAX_LENGTH:
            raise InvalidArgumentError(
                f"ImagePath must be at most {IMAGE_PATH_MAX_LENGTH} characters"
            )
        return replace(self, image_path=cleaned or None, updated_at=_utcnow())

    def age(self, today: date | None = None) -> int:
        return calculate_age(self.date_of_birth, today)


@dataclass(frozen=True)
class PhoneNumber:
    """A phone number owned by exactly one person."""

    type: PhoneType
    number: str
    person_id: int
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(cls, *, type: PhoneType, number: str, person_id: int) -> PhoneNumber:
        cleaned = _clean_phone_number(number)
        _require_positive_id(person_id, "PersonId", ErrorKey.PERSON_ID_REQUIRED)
        phone_type = _coerce_enum(PhoneType, type, "PhoneType", ErrorKey.PHONE_TYPE_INVALID)
        return cls(type=phone_type, number=cleaned, person_id=person_id)

    def update_phone_info(self, *, type: PhoneType, number: str) -> PhoneNumber:
        cleaned = _clean_phone_number(number)
        phone_type = _coerce_enum(PhoneType, type, "PhoneType", ErrorKey.PHONE_TYPE_INVALID)
        return replace(self, type=phone_type, number=cleaned, updated_at=_utcnow())


@dataclass(frozen=True)
class PersonConnection:
    """
    One directional row of an undirected connection.

    Rows are only ever written in reciprocal pairs by the connection
    repository's bidirectional operations.
    """

    person_id: int
    connected_person_id: int
    connection_type: ConnectionType
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(
        cls,
        *,
        person_id: int,
        connected_person_id: int,
        connection_type: ConnectionType,
    ) -> PersonConnection:
        _require_positive_id(person_id, "PersonId", ErrorKey.PERSON_ID_REQUIRED)
        _require_positive_id(
            connected_person_id, "ConnectedPersonId", ErrorKey.CONNECTED_PERSON_ID_REQUIRED
        )
        if person_id == connected_person_id:
            raise InvalidArgumentError(
                "Person cannot be connected to themselves", key=ErrorKey.CANNOT_CONNECT_TO_SELF
            )
        return cls(
            person_id=person_id,
            connected_person_id=connected_person_id,
            connection_type=_coerce_enum(
                ConnectionType,
                connection_type,
                "ConnectionType",
                ErrorKey.CONNECTION_TYPE_INVALID,
            ),
        )

    def reversed(self) -> PersonConnection:
        """The reciprocal row of this connection, with the same type."""
        return PersonConnection(
            person_id=self.connected_person_id,
            connected_person_id=self.person_id,
            connection_type=self.connection_type,
        )


# ============================================================================
# Read views
# ============================================================================


@dataclass(frozen=True)
class ConnectionView:
    """An outgoing connection joined with the connected person's name."""

    id: int
    person_id: int
    connected_person_id: int
    connected_person_first_name: str
    connected_person_last_name: str
    connection_type: ConnectionType


@dataclass(frozen=True)
class PersonDetails:
    """A person hydrated with city, phone numbers and outgoing connections."""

    person: Person
    city: City
    phone_numbers: tuple[PhoneNumber, ...] = ()
    connections: tuple[ConnectionView, ...] = ()


@dataclass(frozen=True)
class PersonSummary:
    """Search result row."""

    id: int
    first_name: str
    last_name: str
    personal_number: str
    gender: Gender
    date_of_birth: date
    city_name: str
    image_path: str | None = None

    @property
    def age(self) -> int:
        return calculate_age(self.date_of_birth)


@dataclass(frozen=True)
class ConnectionReportEntry:
    """Outgoing connection counts per type for one person."""

    person_id: int
    first_name: str
    last_name: str
    connection_counts: dict[ConnectionType, int] = field(default_factory=dict)

    @property
    def total_connections(self) -> int:
        return sum(self.connection_counts.values())
