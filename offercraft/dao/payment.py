"""
Payment Milestone Data Access Object (DAO).

WHAT: Queries for an offer's payment schedule.

WHY: Milestones are always addressed through their offer and tenant, so a
milestone id from another offer or tenant is reported as missing.
"""

from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.payment import PaymentMilestone


class PaymentMilestoneDAO(BaseDAO[PaymentMilestone]):
    """Data Access Object for PaymentMilestone model."""

    def __init__(self, session: AsyncSession):
        super().__init__(PaymentMilestone, session)

    async def list_for_offer(self, offer_id: int, tenant_id: int) -> List[PaymentMilestone]:
        """An offer's milestones in schedule order."""
        result = await self.session.execute(
            select(PaymentMilestone)
            .where(
                PaymentMilestone.offer_id == offer_id,
                PaymentMilestone.tenant_id == tenant_id,
            )
            .order_by(PaymentMilestone.sort_order, PaymentMilestone.id)
        )
        return list(result.scalars().all())

    async def get_for_offer(
        self, milestone_id: int, offer_id: int, tenant_id: int
    ) -> Optional[PaymentMilestone]:
        result = await self.session.execute(
            select(PaymentMilestone).where(
                PaymentMilestone.id == milestone_id,
                PaymentMilestone.offer_id == offer_id,
                PaymentMilestone.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def max_sort_order(self, offer_id: int) -> int:
        """Highest position in the schedule, 0 when it is empty."""
        result = await self.session.execute(
            select(func.max(PaymentMilestone.sort_order)).where(
                PaymentMilestone.offer_id == offer_id
            )
        )
        return result.scalar_one() or 0

    async def percentage_total(self, offer_id: int, exclude_id: Optional[int] = None) -> Decimal:
        """
        Sum of milestone percentages of an offer.

        Args:
            offer_id: Offer whose schedule is summed
            exclude_id: Milestone left out (the one being updated)
        """
        query = select(func.coalesce(func.sum(PaymentMilestone.percentage), 0)).where(
            PaymentMilestone.offer_id == offer_id
        )
        if exclude_id is not None:
            query = query.where(PaymentMilestone.id != exclude_id)
        result = await self.session.execute(query)
        return Decimal(str(result.scalar_one()))
