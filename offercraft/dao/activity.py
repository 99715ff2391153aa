"""
Offer Activity Data Access Object (DAO).

WHAT: Append and read operations for the offer activity log.

WHY: Activities are append-only; this DAO deliberately has no update
or delete helpers.
"""

from typing import List, Optional, Dict, Any
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.activity import OfferActivity, OfferActivityType


class OfferActivityDAO(BaseDAO[OfferActivity]):
    """Data Access Object for OfferActivity model."""

    def __init__(self, session: AsyncSession):
        super().__init__(OfferActivity, session)

    async def record(
        self,
        tenant_id: int,
        offer_id: int,
        activity_type: OfferActivityType,
        message: str,
        actor_id: Optional[int] = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> OfferActivity:
        """Append one activity row."""
        return await self.create(
            tenant_id=tenant_id,
            offer_id=offer_id,
            type=activity_type,
            message=message,
            actor_id=actor_id,
            extra_data=extra_data,
        )

    async def list_for_offer(
        self,
        offer_id: int,
        tenant_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[OfferActivity]:
        """
        Get activities of an offer, newest first.

        Args:
            offer_id: Offer ID
            tenant_id: Tenant ID for security
            skip: Pagination offset
            limit: Pagination limit
        """
        result = await self.session.execute(
            select(OfferActivity)
            .where(
                OfferActivity.offer_id == offer_id,
                OfferActivity.tenant_id == tenant_id,
            )
            .order_by(OfferActivity.created_at.desc(), OfferActivity.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
