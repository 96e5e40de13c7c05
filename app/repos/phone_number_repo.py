"""Phone number repository."""

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import PhoneNumberModel
from app.domain.entities import PhoneNumber
from app.repos.common import to_phone_number


class PhoneNumberRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_person_id(self, person_id: int) -> list[PhoneNumber]:
        result = await self.session.execute(
            select(PhoneNumberModel)
            .where(PhoneNumberModel.person_id == person_id)
            .order_by(PhoneNumberModel.id)
        )
        return [to_phone_number(row) for row in result.scalars().all()]

    async def add_many(self, phone_numbers: Iterable[PhoneNumber]) -> list[PhoneNumber]:
        """Stage phone numbers and flush to obtain their ids."""
        rows = [
            PhoneNumberModel(type=phone.type, number=phone.number, person_id=phone.person_id)
            for phone in phone_numbers
        ]
        if not rows:
            return []
        self.session.add_all(rows)
        await self.session.flush()
        return [to_phone_number(row) for row in rows]

    async def delete_by_person_id(self, person_id: int) -> int:
        """Delete every phone number of a person. Returns the number of rows removed."""
        result = await self.session.execute(
            delete(PhoneNumberModel).where(PhoneNumberModel.person_id == person_id)
        )
        return result.rowcount or 0
