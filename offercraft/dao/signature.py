"""
Signature Data Access Object (DAO).

WHY: The unique constraint on offer_id is the last line of defence against
double signing; get_for_offer is the cheap check made before inserting.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.signature import Signature


class SignatureDAO(BaseDAO[Signature]):
    """Data Access Object for Signature model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Signature, session)

    async def get_for_offer(self, offer_id: int) -> Optional[Signature]:
        """Get the signature of an offer, if any."""
        result = await self.session.execute(
            select(Signature).where(Signature.offer_id == offer_id)
        )
        return result.scalar_one_or_none()
