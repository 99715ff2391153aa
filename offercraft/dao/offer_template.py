"""
Offer Template Data Access Object (DAO).

WHAT: Tenant-scoped queries for offer templates.

WHY: The template library is filtered by category and searched by name;
the distinct categories feed the filter dropdown.
"""

from typing import List, Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.offer_template import OfferTemplate


class OfferTemplateDAO(BaseDAO[OfferTemplate]):
    """Data Access Object for OfferTemplate model."""

    def __init__(self, session: AsyncSession):
        super().__init__(OfferTemplate, session)

    async def list_for_tenant(
        self,
        tenant_id: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[OfferTemplate]:
        """
        List a tenant's templates by name.

        Args:
            tenant_id: Owning tenant
            category: Exact category filter
            search: Case-insensitive match on name or description

        Returns:
            Matching templates ordered by name
        """
        query = select(OfferTemplate).where(OfferTemplate.tenant_id == tenant_id)
        if category:
            query = query.where(OfferTemplate.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    OfferTemplate.name.ilike(pattern),
                    OfferTemplate.description.ilike(pattern),
                )
            )
        result = await self.session.execute(query.order_by(OfferTemplate.name, OfferTemplate.id))
        return list(result.scalars().all())

    async def get_categories(self, tenant_id: int) -> List[str]:
        """Distinct non-empty categories of a tenant's templates, sorted."""
        result = await self.session.execute(
            select(OfferTemplate.category)
            .where(
                OfferTemplate.tenant_id == tenant_id,
                OfferTemplate.category.isnot(None),
            )
            .distinct()
        )
        return sorted(row[0] for row in result.all() if row[0])
