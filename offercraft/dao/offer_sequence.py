"""
Offer Number Sequence Data Access Object (DAO).

WHAT: Atomic increment-and-read of the monthly offer counter.

WHY: Counting existing offers to derive the next number races under
concurrent creation and reuses numbers after deletes. A single counter row
updated with UPDATE ... RETURNING is atomic on every supported backend.
"""

from typing import Optional
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.offer_sequence import OfferNumberSequence


class OfferNumberSequenceDAO(BaseDAO[OfferNumberSequence]):
    """Data Access Object for OfferNumberSequence model."""

    def __init__(self, session: AsyncSession):
        super().__init__(OfferNumberSequence, session)

    async def increment(self, tenant_id: int, year: int, month: int) -> Optional[int]:
        """
        Increment the counter for a period and return the new value.

        Returns:
            New last_value, or None if no counter row exists yet
        """
        result = await self.session.execute(
            update(OfferNumberSequence)
            .where(
                OfferNumberSequence.tenant_id == tenant_id,
                OfferNumberSequence.year == year,
                OfferNumberSequence.month == month,
            )
            .values(last_value=OfferNumberSequence.last_value + 1)
            .returning(OfferNumberSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def start(self, tenant_id: int, year: int, month: int) -> int:
        """
        Create the counter row for a period with value 1.

        Raises:
            IntegrityError: If another transaction created the row first
        """
        await self.create(tenant_id=tenant_id, year=year, month=month, last_value=1)
        return 1
