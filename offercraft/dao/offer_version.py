"""
Offer Version Data Access Object (DAO).

WHAT: Database operations for the OfferVersion model.

WHY: Version numbers must be contiguous per offer and never reused. The
max+1 lookup lives here; the offer row lock that makes it safe is taken
by the caller through OfferDAO.get_for_update.
"""

from typing import List, Optional, Dict, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.offer_version import OfferVersion


class OfferVersionDAO(BaseDAO[OfferVersion]):
    """Data Access Object for OfferVersion model."""

    def __init__(self, session: AsyncSession):
        super().__init__(OfferVersion, session)

    async def get_next_version_number(self, offer_id: int) -> int:
        """
        Get the next version number for an offer.

        Returns:
            Next version number (1 if first version)
        """
        result = await self.session.execute(
            select(func.max(OfferVersion.version)).where(OfferVersion.offer_id == offer_id)
        )
        max_version = result.scalar_one_or_none()
        return (max_version or 0) + 1

    async def create_version(
        self,
        tenant_id: int,
        offer_id: int,
        version: int,
        payload: Dict[str, Any],
        author_id: Optional[int],
        change_note: Optional[str] = None,
    ) -> OfferVersion:
        """
        Insert a snapshot row with an explicit version number.

        Raises:
            IntegrityError: If (offer_id, version) is already taken
        """
        return await self.create(
            tenant_id=tenant_id,
            offer_id=offer_id,
            version=version,
            payload=payload,
            author_id=author_id,
            change_note=change_note,
        )

    async def list_for_offer(self, offer_id: int, tenant_id: int) -> List[OfferVersion]:
        """
        Get all versions of an offer, newest first.

        Args:
            offer_id: Offer ID
            tenant_id: Tenant ID for security

        Returns:
            List of versions ordered by version number descending
        """
        result = await self.session.execute(
            select(OfferVersion)
            .where(
                OfferVersion.offer_id == offer_id,
                OfferVersion.tenant_id == tenant_id,
            )
            .order_by(OfferVersion.version.desc())
        )
        return list(result.scalars().all())

    async def get_for_offer(
        self, version_id: int, offer_id: int, tenant_id: int
    ) -> Optional[OfferVersion]:
        """Get one version, only if it belongs to the offer and tenant."""
        result = await self.session.execute(
            select(OfferVersion).where(
                OfferVersion.id == version_id,
                OfferVersion.offer_id == offer_id,
                OfferVersion.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()
