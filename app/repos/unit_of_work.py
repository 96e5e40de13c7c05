"""
Unit of Work: one transactional scope over one AsyncSession.

The four repositories are created together with the unit of work and share
its session, so every write staged through them is committed or rolled back
as a whole.

Usage:
    async with UnitOfWork(session) as uow:
        async with uow.transaction():
            person = await uow.persons.add(person)
            await uow.phone_numbers.add_many(phones)
            await uow.save_changes()

A unit of work belongs to one request or operation and must not be shared
between concurrent tasks. Only one transaction can be open at a time.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import TransactionStateError
from app.repos.city_repo import CityRepository
from app.repos.connection_repo import PersonConnectionRepository
from app.repos.person_repo import PersonRepository
from app.repos.phone_number_repo import PhoneNumberRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.persons = PersonRepository(session)
        self.cities = CityRepository(session)
        self.phone_numbers = PhoneNumberRepository(session)
        self.connections = PersonConnectionRepository(session)
        self._transaction_open = False

    @property
    def in_transaction(self) -> bool:
        return self._transaction_open

    async def begin_transaction(self) -> None:
        """Open the transaction.

        Reads issued earlier may have auto-begun a session transaction; that
        one is adopted instead of starting a nested one.

        Raises:
            TransactionStateError: If a transaction is already open
        """
        if self._transaction_open:
            raise TransactionStateError("A transaction is already in progress")
        if not self.session.in_transaction():
            await self.session.begin()
        self._transaction_open = True

    async def commit_transaction(self) -> None:
        """Commit the open transaction, rolling back if the commit fails.

        Raises:
            TransactionStateError: If no transaction is open
        """
        if not self._transaction_open:
            raise TransactionStateError("No transaction in progress")
        try:
            await self.session.commit()
        except BaseException:
            logger.warning("Commit failed, rolling back", exc_info=True)
            await self.session.rollback()
            raise
        finally:
            self._transaction_open = False

    async def rollback_transaction(self) -> None:
        """
        Raises:
            TransactionStateError: If no transaction is open
        """
        if not self._transaction_open:
            raise TransactionStateError("No transaction in progress")
        try:
            await self.session.rollback()
        finally:
            self._transaction_open = False

    async def save_changes(self) -> int:
        """Flush staged ORM changes to the database.

        Returns:
            Number of new, modified and deleted objects that were pending
        """
        pending = len(self.session.new) + len(self.session.dirty) + len(self.session.deleted)
        await self.session.flush()
        return pending

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["UnitOfWork"]:
        """Begin, then commit on success or roll back on any exception.

        Cancellation counts as an exception: a cancelled operation leaves no
        partial writes behind.
        """
        await self.begin_transaction()
        try:
            yield self
        except BaseException:
            if self._transaction_open:
                await self.rollback_transaction()
            raise
        await self.commit_transaction()

    async def close(self) -> None:
        if self._transaction_open:
            await self.rollback_transaction()
        await self.session.close()

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
