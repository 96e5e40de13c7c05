"""
Person connection repository.

A connection between two persons is stored as two directional rows,
(A -> B, type) and (B -> A, type). The public write operations here always
touch both rows. They do not check that the persons exist or that the pair
is free; the person service does that before calling them.

Storage errors propagate unchanged.
"""

import logging

from sqlalchemy import and_, delete, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.observability import db_metrics
from app.db.models import PersonConnectionModel, PersonModel
from app.domain.entities import ConnectionView, PersonConnection
from app.domain.enums import ConnectionType
from app.repos.common import to_connection

logger = logging.getLogger(__name__)

_Connected = aliased(PersonModel, name="connected_person")


def _connection_view_query():
    """Outgoing connections joined with the connected person, in name order."""
    return (
        select(
            PersonConnectionModel.id,
            PersonConnectionModel.person_id,
            PersonConnectionModel.connected_person_id,
            _Connected.first_name,
            _Connected.last_name,
            PersonConnectionModel.connection_type,
        )
        .join(_Connected, _Connected.id == PersonConnectionModel.connected_person_id)
        .order_by(_Connected.first_name, _Connected.last_name, _Connected.id)
    )


def _to_view(row) -> ConnectionView:
    return ConnectionView(
        id=row.id,
        person_id=row.person_id,
        connected_person_id=row.connected_person_id,
        connected_person_first_name=row.first_name,
        connected_person_last_name=row.last_name,
        connection_type=ConnectionType(row.connection_type),
    )


class PersonConnectionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def connection_exists(self, person_id: int, connected_person_id: int) -> bool:
        """Directional existence check for person_id -> connected_person_id."""
        stmt = select(
            exists().where(
                PersonConnectionModel.person_id == person_id,
                PersonConnectionModel.connected_person_id == connected_person_id,
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def get_connection(
        self, person_id: int, connected_person_id: int
    ) -> PersonConnection | None:
        result = await self.session.execute(
            select(PersonConnectionModel).where(
                PersonConnectionModel.person_id == person_id,
                PersonConnectionModel.connected_person_id == connected_person_id,
            )
        )
        row = result.scalar_one_or_none()
        return to_connection(row) if row is not None else None

    def _stage(self, connection: PersonConnection) -> None:
        self.session.add(
            PersonConnectionModel(
                person_id=connection.person_id,
                connected_person_id=connection.connected_person_id,
                connection_type=connection.connection_type,
            )
        )

    async def add_bidirectional(
        self,
        person_id: int,
        connected_person_id: int,
        connection_type: ConnectionType,
    ) -> tuple[PersonConnection, PersonConnection]:
        """Stage both directions of a new connection and flush them.

        Raises:
            InvalidArgumentError: If the ids are not positive or are equal
            IntegrityError: If either direction already exists
        """
        forward = PersonConnection.create(
            person_id=person_id,
            connected_person_id=connected_person_id,
            connection_type=connection_type,
        )
        backward = forward.reversed()
        with db_metrics.track("connection_add_bidirectional"):
            self._stage(forward)
            self._stage(backward)
            await self.session.flush()
        logger.debug(
            "Staged connection pair",
            extra={
                "person_id": person_id,
                "connected_person_id": connected_person_id,
                "connection_type": forward.connection_type.value,
            },
        )
        return forward, backward

    async def delete_bidirectional(self, person_id: int, connected_person_id: int) -> int:
        """Delete both directional rows of the unordered pair in one statement.

        Returns:
            Number of rows removed (2 for a consistent pair, 0 if not connected)
        """
        stmt = delete(PersonConnectionModel).where(
            or_(
                and_(
                    PersonConnectionModel.person_id == person_id,
                    PersonConnectionModel.connected_person_id == connected_person_id,
                ),
                and_(
                    PersonConnectionModel.person_id == connected_person_id,
                    PersonConnectionModel.connected_person_id == person_id,
                ),
            )
        )
        with db_metrics.track("connection_delete_bidirectional"):
            result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_person_connections(self, person_id: int) -> int:
        """Delete every row in which the person appears, in either role."""
        stmt = delete(PersonConnectionModel).where(
            or_(
                PersonConnectionModel.person_id == person_id,
                PersonConnectionModel.connected_person_id == person_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_person_connections(self, person_id: int) -> list[ConnectionView]:
        """Outgoing connections of a person ordered by the connected person's name."""
        stmt = _connection_view_query().where(PersonConnectionModel.person_id == person_id)
        result = await self.session.execute(stmt)
        return [_to_view(row) for row in result.all()]

    async def get_connections_by_type(
        self, person_id: int, connection_type: ConnectionType
    ) -> list[ConnectionView]:
        stmt = _connection_view_query().where(
            PersonConnectionModel.person_id == person_id,
            PersonConnectionModel.connection_type == connection_type,
        )
        result = await self.session.execute(stmt)
        return [_to_view(row) for row in result.all()]
