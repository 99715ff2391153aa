"""
Offer activity service.

WHAT: Records and reads the per-offer activity log.

WHY: Users need a timeline of what happened to an offer and who did it.
Recording goes through one service so every event carries the tenant,
offer and actor consistently.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.activity import OfferActivityDAO
from offercraft.models.activity import OfferActivity, OfferActivityType
from offercraft.models.offer import Offer, OfferStatus


class OfferActivityService:
    """Service for the offer activity log."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity_dao = OfferActivityDAO(session)

    async def record(
        self,
        offer: Offer,
        activity_type: OfferActivityType,
        message: str,
        actor_id: Optional[int] = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> OfferActivity:
        """
        Append an activity to an offer's log.

        Args:
            offer: Offer the event belongs to
            activity_type: Event type
            message: Human-readable description
            actor_id: Acting user (None for public-link actions)
            extra_data: Type-specific details

        Returns:
            Created OfferActivity
        """
        return await self.activity_dao.record(
            tenant_id=offer.tenant_id,
            offer_id=offer.id,
            activity_type=activity_type,
            message=message,
            actor_id=actor_id,
            extra_data=extra_data,
        )

    async def record_status_change(
        self,
        offer: Offer,
        previous: OfferStatus,
        activity_type: OfferActivityType = OfferActivityType.STATUS_CHANGED,
        message: Optional[str] = None,
        actor_id: Optional[int] = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> OfferActivity:
        """Append a status change event with from/to statuses in the details."""
        details = {"from_status": previous.value, "to_status": offer.status.value}
        if extra_data:
            details.update(extra_data)
        return await self.record(
            offer,
            activity_type,
            message or f"Status changed from {previous.value} to {offer.status.value}",
            actor_id=actor_id,
            extra_data=details,
        )

    async def list_for_offer(
        self, offer_id: int, tenant_id: int, skip: int = 0, limit: int = 100
    ) -> List[OfferActivity]:
        """Get an offer's activities, newest first."""
        return await self.activity_dao.list_for_offer(offer_id, tenant_id, skip=skip, limit=limit)
