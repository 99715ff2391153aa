"""
Offer Data Access Object (DAO).

WHAT: Database operations for the Offer aggregate.

WHY: The DAO pattern:
1. Separates data access from business logic
2. Enforces tenant scoping on every offer query
3. Provides the row lock that serializes changes to one offer

HOW: Extends BaseDAO with offer-specific queries:
- Tree loading with fresh state (populate_existing)
- SELECT ... FOR UPDATE on the offer row
- Status/search filtered listing with a matching count
"""

from typing import List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from offercraft.dao.base import BaseDAO
from offercraft.models.offer import Offer, OfferStatus


class OfferDAO(BaseDAO[Offer]):
    """
    Data Access Object for Offer model.

    WHY: Sections, articles, client and signature are selectin-loaded by the
    mapper, so every query here returns offers whose whole tree can be read
    without further IO.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize OfferDAO.

        Args:
            session: Async database session
        """
        super().__init__(Offer, session)

    async def get_with_tree(self, offer_id: int, tenant_id: int) -> Optional[Offer]:
        """
        Load an offer and its section/article tree, refreshing cached state.

        WHY: After a tree replacement the identity map may still hold the
        old collections; populate_existing reloads them from the database.

        Args:
            offer_id: Offer ID
            tenant_id: Tenant ID that must own the offer

        Returns:
            Offer if found in the tenant, None otherwise
        """
        result = await self.session.execute(
            select(Offer)
            .where(Offer.id == offer_id, Offer.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_share_token(self, share_token: str) -> Optional[Offer]:
        """
        Load an offer for the public share link.

        WHY: The share link is the only caller without a tenant context.
        The unguessable token in the link is the capability; sequential
        offer IDs are never accepted here.
        """
        result = await self.session.execute(
            select(Offer)
            .where(Offer.share_token == share_token)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, offer_id: int, tenant_id: int) -> Optional[Offer]:
        """
        Load an offer and lock its row until the transaction ends.

        WHAT: SELECT ... FOR UPDATE on the offer row.

        WHY: Every mutation of the offer aggregate holds this lock, so
        concurrent edits, status changes, signatures and snapshots of one
        offer are serialized (including the max(version) read).

        Args:
            offer_id: Offer ID
            tenant_id: Tenant ID that must own the offer

        Returns:
            Locked Offer if found in the tenant, None otherwise
        """
        result = await self.session.execute(
            select(Offer)
            .where(Offer.id == offer_id, Offer.tenant_id == tenant_id)
            .with_for_update(of=Offer)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _filtered(
        self,
        query: Select,
        tenant_id: int,
        status: Optional[OfferStatus],
        search: Optional[str],
    ) -> Select:
        query = query.where(Offer.tenant_id == tenant_id)
        if status is not None:
            query = query.where(Offer.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Offer.title).like(pattern),
                    func.lower(Offer.offer_number).like(pattern),
                )
            )
        return query

    async def list_for_tenant(
        self,
        tenant_id: int,
        status: Optional[OfferStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Offer], int]:
        """
        List offers for a tenant, newest first, with total count.

        Args:
            tenant_id: Tenant ID
            status: Optional status filter
            search: Optional case-insensitive match on title or number
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (offers page, total matching count)
        """
        result = await self.session.execute(
            self._filtered(select(Offer), tenant_id, status, search)
            .order_by(Offer.created_at.desc(), Offer.id.desc())
            .offset(skip)
            .limit(limit)
        )
        offers = list(result.scalars().all())

        count_result = await self.session.execute(
            self._filtered(select(func.count(Offer.id)), tenant_id, status, search)
        )
        return offers, count_result.scalar_one()
