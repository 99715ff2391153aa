"""
Client Data Access Object (DAO).

WHY: Offers may only be addressed to clients of the same tenant; the
service checks ownership through get_by_id_and_tenant here.
"""

from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.models.client import Client


class ClientDAO(BaseDAO[Client]):
    """Data Access Object for Client model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Client, session)

    async def list_for_tenant(self, tenant_id: int, skip: int = 0, limit: int = 100) -> List[Client]:
        """List a tenant's clients alphabetically."""
        result = await self.session.execute(
            select(Client)
            .where(Client.tenant_id == tenant_id)
            .order_by(Client.company_name)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
