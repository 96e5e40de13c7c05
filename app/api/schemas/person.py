"""
Pydantic schemas for Person API operations.

Request schemas run the field rules (name alphabet, personal number
digits, minimum age, phone length) before a request reaches the service.
Errors are raised as ErrorKey values and localized by the validation
error handler.
"""

from datetime import date, datetime
from typing import Self

from pydantic import Field, field_validator, model_validator

from app.api.schemas.city import CityResponse
from app.api.schemas.common import CamelModel
from app.core.errors import ErrorKey
from app.core.validators import (
    validate_first_name,
    validate_last_name,
    validate_minimum_age,
    validate_names_consistent,
    validate_personal_number,
    validate_phone_number,
    validate_positive_id,
)
from app.domain.entities import ConnectionView, PersonDetails, PersonSummary, PhoneNumber
from app.domain.enums import ConnectionType, Gender, PhoneType
from app.services.person_service import ConnectionData, PersonData, PhoneNumberData

# ============================================================================
# Requests
# ============================================================================


class PhoneNumberRequest(CamelModel):
    type: PhoneType = Field(..., examples=[PhoneType.MOBILE])
    number: str = Field(..., examples=["+995 555 123 456"])

    @field_validator("number")
    @classmethod
    def check_number(cls, v: str) -> str:
        return validate_phone_number(v)


class PersonCreateRequest(CamelModel):
    first_name: str = Field(..., description="Georgian or Latin letters only", examples=["Giorgi"])
    last_name: str = Field(..., examples=["Beridze"])
    gender: Gender = Field(..., examples=[Gender.MALE])
    personal_number: str = Field(..., description="Exactly 11 digits", examples=["01001012345"])
    date_of_birth: date = Field(
        ..., description="Person must be at least 18", examples=["1990-05-17"]
    )
    city_id: int = Field(..., examples=[1])
    phone_numbers: list[PhoneNumberRequest] = Field(default_factory=list)

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, v: str) -> str:
        return validate_first_name(v)

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, v: str) -> str:
        return validate_last_name(v)

    @field_validator("personal_number")
    @classmethod
    def check_personal_number(cls, v: str) -> str:
        return validate_personal_number(v)

    @field_validator("date_of_birth")
    @classmethod
    def check_date_of_birth(cls, v: date) -> date:
        return validate_minimum_age(v)

    @field_validator("city_id")
    @classmethod
    def check_city_id(cls, v: int) -> int:
        return validate_positive_id(v, ErrorKey.CITY_ID_REQUIRED)

    @model_validator(mode="after")
    def check_name_alphabets(self) -> Self:
        validate_names_consistent(self.first_name, self.last_name)
        return self

    def to_data(self) -> PersonData:
        return PersonData(
            first_name=self.first_name,
            last_name=self.last_name,
            gender=self.gender,
            personal_number=self.personal_number,
            date_of_birth=self.date_of_birth,
            city_id=self.city_id,
            phone_numbers=[
                PhoneNumberData(type=phone.type, number=phone.number)
                for phone in self.phone_numbers
            ],
        )


class PersonUpdateRequest(PersonCreateRequest):
    """Same fields as create; the phone list replaces the stored one."""


class PersonConnectionRequest(CamelModel):
    person_id: int = Field(..., examples=[1])
    connected_person_id: int = Field(..., examples=[2])
    connection_type: ConnectionType = Field(..., examples=[ConnectionType.COLLEAGUE])

    @field_validator("person_id")
    @classmethod
    def check_person_id(cls, v: int) -> int:
        return validate_positive_id(v, ErrorKey.PERSON_ID_REQUIRED)

    @field_validator("connected_person_id")
    @classmethod
    def check_connected_person_id(cls, v: int) -> int:
        return validate_positive_id(v, ErrorKey.CONNECTED_PERSON_ID_REQUIRED)

    @model_validator(mode="after")
    def check_not_self(self) -> Self:
        if self.person_id == self.connected_person_id:
            raise ValueError(ErrorKey.CANNOT_CONNECT_TO_SELF.value)
        return self

    def to_data(self) -> ConnectionData:
        return ConnectionData(
            person_id=self.person_id,
            connected_person_id=self.connected_person_id,
            connection_type=self.connection_type,
        )


# ============================================================================
# Responses
# ============================================================================


class PhoneNumberResponse(CamelModel):
    id: int
    type: PhoneType
    number: str

    @classmethod
    def from_entity(cls, phone: PhoneNumber) -> "PhoneNumberResponse":
        return cls(id=phone.id, type=phone.type, number=phone.number)


class PersonConnectionResponse(CamelModel):
    id: int
    connected_person_id: int
    connected_person_first_name: str
    connected_person_last_name: str
    connection_type: ConnectionType

    @classmethod
    def from_view(cls, view: ConnectionView) -> "PersonConnectionResponse":
        return cls(
            id=view.id,
            connected_person_id=view.connected_person_id,
            connected_person_first_name=view.connected_person_first_name,
            connected_person_last_name=view.connected_person_last_name,
            connection_type=view.connection_type,
        )


class PersonResponse(CamelModel):
    """Full detail view of a person."""

    id: int
    first_name: str
    last_name: str
    gender: Gender
    personal_number: str
    date_of_birth: date
    age: int
    city: CityResponse
    image_path: str | None = None
    image_url: str | None = None
    phone_numbers: list[PhoneNumberResponse] = Field(default_factory=list)
    connections: list[PersonConnectionResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_details(
        cls, details: PersonDetails, image_url: str | None = None
    ) -> "PersonResponse":
        person = details.person
        return cls(
            id=person.id,
            first_name=person.first_name,
            last_name=person.last_name,
            gender=person.gender,
            personal_number=person.personal_number,
            date_of_birth=person.date_of_birth,
            age=person.age(),
            city=CityResponse.from_entity(details.city),
            image_path=person.image_path,
            image_url=image_url or None,
            phone_numbers=[PhoneNumberResponse.from_entity(p) for p in details.phone_numbers],
            connections=[PersonConnectionResponse.from_view(c) for c in details.connections],
            created_at=person.created_at,
            updated_at=person.updated_at,
        )


class PersonListResponse(CamelModel):
    """Search result row."""

    id: int
    first_name: str
    last_name: str
    personal_number: str
    gender: Gender
    age: int
    city_name: str
    image_path: str | None = None

    @classmethod
    def from_summary(cls, summary: PersonSummary) -> "PersonListResponse":
        return cls(
            id=summary.id,
            first_name=summary.first_name,
            last_name=summary.last_name,
            personal_number=summary.personal_number,
            gender=summary.gender,
            age=summary.age,
            city_name=summary.city_name,
            image_path=summary.image_path,
        )
