"""Pydantic schemas for the person connection report."""

from collections.abc import Iterable

from pydantic import Field

from app.api.schemas.common import CamelModel
from app.domain.entities import ConnectionReportEntry
from app.domain.enums import ConnectionType


class PersonConnectionSummary(CamelModel):
    person_id: int
    first_name: str
    last_name: str
    connection_counts: dict[ConnectionType, int] = Field(
        default_factory=dict,
        description="Outgoing connections per type; types without connections are omitted",
        examples=[{"Colleague": 2, "Relative": 1}],
    )
    total_connections: int

    @classmethod
    def from_entry(cls, entry: ConnectionReportEntry) -> "PersonConnectionSummary":
        return cls(
            person_id=entry.person_id,
            first_name=entry.first_name,
            last_name=entry.last_name,
            connection_counts=dict(entry.connection_counts),
            total_connections=entry.total_connections,
        )


class PersonConnectionReportResponse(CamelModel):
    person_connections: list[PersonConnectionSummary] = Field(default_factory=list)

    @classmethod
    def from_entries(
        cls, entries: Iterable[ConnectionReportEntry]
    ) -> "PersonConnectionReportResponse":
        return cls(person_connections=[PersonConnectionSummary.from_entry(e) for e in entries])
