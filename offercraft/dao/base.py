"""
Base Data Access Object (DAO) class.

WHY: The DAO pattern separates database operations from business logic,
making the codebase more testable and keeping every tenant predicate in
one layer instead of scattered across services.
"""

from typing import Generic, TypeVar, Type, Optional, List, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.models.base import Base

# Type variable for model class
ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Base Data Access Object providing CRUD operations for all models.

    WHY: Using generics allows type-safe reuse across different models.
    DAOs only flush; committing is the caller's job (see db.session.get_db).

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize DAO with model class and database session.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Field values for the new record

        Returns:
            The created model instance with database-generated fields populated

        Raises:
            IntegrityError: If unique constraints are violated
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()  # Flush to get auto-generated fields
        return instance

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """
        Retrieve a single record by primary key, without tenant scoping.

        WHY: Only the public share-link flow may look records up without a
        tenant. Everything else goes through get_by_id_and_tenant.

        Args:
            id: Primary key value

        Returns:
            The model instance if found, None otherwise
        """
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    def _require_tenant_column(self) -> None:
        if not hasattr(self.model, "tenant_id"):
            raise AttributeError(
                f"{self.model.__name__} is not a multi-tenant model (no tenant_id field)"
            )

    async def get_by_id_and_tenant(self, id: int, tenant_id: int) -> Optional[ModelType]:
        """
        Retrieve a record by ID, ensuring it belongs to the specified tenant.

        WHY: Critical for preventing cross-tenant data access. A record of
        another tenant is indistinguishable from a missing record.

        Args:
            id: Primary key value
            tenant_id: Tenant ID that must own the record

        Returns:
            The model instance if found and owned by the tenant, None otherwise

        Raises:
            AttributeError: If the model doesn't have a tenant_id field
        """
        self._require_tenant_column()
        result = await self.session.execute(
            select(self.model).where(
                self.model.id == id,
                self.model.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_all_for_tenant(
        self, tenant_id: int, skip: int = 0, limit: int = 100
    ) -> List[ModelType]:
        """
        Retrieve a page of records owned by a tenant, oldest first.

        Args:
            tenant_id: Tenant ID to filter by
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return

        Returns:
            List of model instances for the tenant
        """
        self._require_tenant_column()
        result = await self.session.execute(
            select(self.model)
            .where(self.model.tenant_id == tenant_id)
            .order_by(self.model.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_tenant(self, tenant_id: int) -> int:
        """Count records owned by a tenant."""
        self._require_tenant_column()
        result = await self.session.execute(
            select(func.count(self.model.id)).where(self.model.tenant_id == tenant_id)
        )
        return result.scalar_one()

    async def delete(self, instance: ModelType) -> None:
        """
        Delete a loaded record.

        WHY: Deleting through the session (not a bulk DELETE) keeps the
        identity map and relationship collections consistent.

        Args:
            instance: Record previously loaded through this session
        """
        await self.session.delete(instance)
        await self.session.flush()
