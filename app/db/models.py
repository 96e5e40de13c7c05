"""
SQLAlchemy 2.x ORM models for the Person Directory API.

Models use the Mapped[] type annotation syntax and mapped_column.
Rows reference each other by foreign-key columns only; detail views are
assembled by explicit queries in the repositories.
"""

from datetime import UTC, date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.domain.enums import ConnectionType, Gender, PhoneType


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class CityModel(TimestampMixin, Base):
    """Cities. Deleting a city is restricted while persons reference it."""

    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<City(id={self.id}, name={self.name})>"


class PersonModel(TimestampMixin, Base):
    """Persons. Personal numbers are unique across the directory."""

    __tablename__ = "persons"
    __table_args__ = (
        Index("ix_persons_first_name_last_name", "first_name", "last_name"),
        Index("ix_persons_city_id", "city_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    gender: Mapped[Gender] = mapped_column(
        Enum(Gender, create_constraint=True, name="gender", values_callable=_enum_values),
        nullable=False,
    )
    personal_number: Mapped[str] = mapped_column(String(11), nullable=False, unique=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    city_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cities.id", ondelete="RESTRICT"), nullable=False
    )
    image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Person(id={self.id}, first_name={self.first_name}, "
            f"last_name={self.last_name})>"
        )


class PhoneNumberModel(TimestampMixin, Base):
    """Phone numbers, removed together with their person."""

    __tablename__ = "phone_numbers"
    __table_args__ = (Index("ix_phone_numbers_person_id", "person_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[PhoneType] = mapped_column(
        Enum(PhoneType, create_constraint=True, name="phone_type", values_callable=_enum_values),
        nullable=False,
    )
    number: Mapped[str] = mapped_column(String(50), nullable=False)
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<PhoneNumber(id={self.id}, person_id={self.person_id}, type={self.type})>"


class PersonConnectionModel(TimestampMixin, Base):
    """
    One direction of an undirected person-to-person connection.

    Every (A, B, type) row has a partner (B, A, type). The ordered pair is
    unique, and both rows of a pair are always written in one transaction.
    """

    __tablename__ = "person_connections"
    __table_args__ = (
        UniqueConstraint(
            "person_id", "connected_person_id", name="uq_person_connections_pair"
        ),
        CheckConstraint(
            "person_id <> connected_person_id", name="chk_person_connections_not_self"
        ),
        Index("ix_person_connections_person_id", "person_id"),
        Index("ix_person_connections_connected_person_id", "connected_person_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("persons.id", ondelete="RESTRICT"), nullable=False
    )
    connected_person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("persons.id", ondelete="RESTRICT"), nullable=False
    )
    connection_type: Mapped[ConnectionType] = mapped_column(
        Enum(
            ConnectionType,
            create_constraint=True,
            name="connection_type",
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<PersonConnection(person_id={self.person_id}, "
            f"connected_person_id={self.connected_person_id}, type={self.connection_type})>"
        )
