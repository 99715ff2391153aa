"""
Article Template Data Access Object (DAO).

WHY: Deleted catalog entries stay in the table (is_active=False); every
listing here hides them.
"""

from typing import List, Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.article_template import ArticleTemplate


class ArticleTemplateDAO(BaseDAO[ArticleTemplate]):
    """Data Access Object for ArticleTemplate model."""

    def __init__(self, session: AsyncSession):
        super().__init__(ArticleTemplate, session)

    async def list_active(
        self,
        tenant_id: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[ArticleTemplate]:
        """List a tenant's active catalog entries by name."""
        query = select(ArticleTemplate).where(
            ArticleTemplate.tenant_id == tenant_id,
            ArticleTemplate.is_active.is_(True),
        )
        if category:
            query = query.where(ArticleTemplate.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    ArticleTemplate.name.ilike(pattern),
                    ArticleTemplate.description.ilike(pattern),
                )
            )
        result = await self.session.execute(
            query.order_by(ArticleTemplate.name, ArticleTemplate.id)
        )
        return list(result.scalars().all())

    async def get_categories(self, tenant_id: int) -> List[str]:
        """Distinct categories of active entries, sorted."""
        result = await self.session.execute(
            select(ArticleTemplate.category)
            .where(
                ArticleTemplate.tenant_id == tenant_id,
                ArticleTemplate.is_active.is_(True),
                ArticleTemplate.category.isnot(None),
            )
            .distinct()
        )
        return sorted(row[0] for row in result.all() if row[0])
