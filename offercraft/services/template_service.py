"""
Template Service.

WHAT: The tenant's template library: offer templates (whole section and
article trees) and the article catalog.

WHY: Offers are mostly variations of a few standard offers. Templates let
a tenant save a good offer once and start new offers from it; the catalog
keeps standard prices in one place.

HOW:
- Offer template sections are stored as a tagged TemplateContent payload,
  built through the same pricing path as live offers so an invalid tree is
  rejected before it is stored
- "Save as template" snapshots an existing offer's tree
- Catalog entries are soft-deleted; listings show active entries only
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.exceptions import (
    OfferNotFoundError,
    TemplateNotFoundError,
    ValidationError,
)
from offercraft.dao.article_template import ArticleTemplateDAO
from offercraft.dao.offer import OfferDAO
from offercraft.dao.offer_template import OfferTemplateDAO
from offercraft.db.transaction import atomic
from offercraft.models.article_template import ArticleTemplate
from offercraft.models.offer_template import OfferTemplate
from offercraft.schemas.template import (
    ArticleTemplateCreate,
    ArticleTemplateUpdate,
    OfferTemplateCreate,
    OfferTemplateUpdate,
)
from offercraft.schemas.version import TemplateContent
from offercraft.services.offer_service import build_sections
from offercraft.services.version_service import snapshot_sections


logger = logging.getLogger(__name__)


def template_content(sections) -> dict:
    """
    Build the stored payload for a list of section inputs.

    Raises:
        ValidationError: If an article can't be priced
    """
    content = TemplateContent(sections=snapshot_sections(build_sections(sections)))
    return content.model_dump(mode="json")


def _reject_nulls(changes: dict, required: Tuple[str, ...]) -> None:
    for field in required:
        if field in changes and changes[field] is None:
            raise ValidationError(message=f"{field} cannot be empty", field=field)


class TemplateService:
    """Service for offer templates and the article catalog."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.offer_templates = OfferTemplateDAO(session)
        self.article_templates = ArticleTemplateDAO(session)
        self.offer_dao = OfferDAO(session)

    # =========================================================================
    # Offer templates
    # =========================================================================

    async def list_offer_templates(
        self,
        ctx: TenantContext,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[OfferTemplate], List[str]]:
        """
        List the tenant's offer templates.

        Returns:
            Tuple of (matching templates by name, all of the tenant's
            categories for the filter)
        """
        templates = await self.offer_templates.list_for_tenant(
            ctx.tenant_id, category=category, search=search
        )
        categories = await self.offer_templates.get_categories(ctx.tenant_id)
        return templates, categories

    async def get_offer_template(self, ctx: TenantContext, template_id: int) -> OfferTemplate:
        template = await self.offer_templates.get_by_id_and_tenant(template_id, ctx.tenant_id)
        if template is None:
            raise TemplateNotFoundError(template_id=template_id)
        return template

    async def create_offer_template(
        self, ctx: TenantContext, data: OfferTemplateCreate
    ) -> OfferTemplate:
        """
        Create an offer template, optionally from an existing offer.

        WHY: "Save as template" is how most templates are made: a tenant
        polishes one offer and reuses its structure. The offer's terms are
        taken over unless the request gives its own.

        Raises:
            OfferNotFoundError: If from_offer_id isn't an offer of the tenant
            ValidationError: If an article in the given sections can't be priced
        """
        terms = data.terms
        if data.from_offer_id is not None:
            offer = await self.offer_dao.get_with_tree(data.from_offer_id, ctx.tenant_id)
            if offer is None:
                raise OfferNotFoundError(
                    message="Source offer not found", offer_id=data.from_offer_id
                )
            sections = TemplateContent(sections=snapshot_sections(offer.sections)).model_dump(
                mode="json"
            )
            if terms is None:
                terms = offer.terms_and_conditions
        else:
            sections = template_content(data.sections)

        async with atomic(self.session, "create offer template"):
            template = await self.offer_templates.create(
                tenant_id=ctx.tenant_id,
                name=data.name,
                description=data.description,
                category=data.category,
                validity_days=data.validity_days,
                terms=terms,
                sections=sections,
            )

        logger.info(
            "Offer template created",
            extra={
                "template_id": template.id,
                "tenant_id": ctx.tenant_id,
                "from_offer_id": data.from_offer_id,
            },
        )
        return template

    async def update_offer_template(
        self, ctx: TenantContext, template_id: int, data: OfferTemplateUpdate
    ) -> OfferTemplate:
        """
        Update template fields; sections, when given, replace the whole tree.

        Raises:
            TemplateNotFoundError: If the template isn't in the tenant
            ValidationError: If a required field is nulled or an article
                can't be priced
        """
        template = await self.get_offer_template(ctx, template_id)
        changes = data.model_dump(exclude_unset=True, exclude={"sections"})
        _reject_nulls(changes, ("name", "validity_days"))
        if data.sections is not None:
            changes["sections"] = template_content(data.sections)

        async with atomic(self.session, "update offer template"):
            for field, value in changes.items():
                setattr(template, field, value)
            await self.session.flush()
            await self.session.refresh(template)

        return template

    async def delete_offer_template(self, ctx: TenantContext, template_id: int) -> None:
        """
        Delete an offer template.

        Offers created from it are independent copies and stay untouched.

        Raises:
            TemplateNotFoundError: If the template isn't in the tenant
        """
        template = await self.get_offer_template(ctx, template_id)
        async with atomic(self.session, "delete offer template"):
            await self.offer_templates.delete(template)
        logger.info(
            "Offer template deleted",
            extra={"template_id": template_id, "tenant_id": ctx.tenant_id},
        )

    # =========================================================================
    # Article catalog
    # =========================================================================

    async def list_article_templates(
        self,
        ctx: TenantContext,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[ArticleTemplate], List[str]]:
        """List active catalog entries and the categories in use."""
        templates = await self.article_templates.list_active(
            ctx.tenant_id, category=category, search=search
        )
        categories = await self.article_templates.get_categories(ctx.tenant_id)
        return templates, categories

    async def get_article_template(self, ctx: TenantContext, template_id: int) -> ArticleTemplate:
        template = await self.article_templates.get_by_id_and_tenant(template_id, ctx.tenant_id)
        if template is None:
            raise TemplateNotFoundError(template_id=template_id)
        return template

    async def create_article_template(
        self, ctx: TenantContext, data: ArticleTemplateCreate
    ) -> ArticleTemplate:
        async with atomic(self.session, "create article template"):
            return await self.article_templates.create(
                tenant_id=ctx.tenant_id, **data.model_dump()
            )

    async def update_article_template(
        self, ctx: TenantContext, template_id: int, data: ArticleTemplateUpdate
    ) -> ArticleTemplate:
        """
        Update a catalog entry. Setting is_active brings a deleted entry back.

        Raises:
            TemplateNotFoundError: If the entry isn't in the tenant
            ValidationError: If a required field is nulled
        """
        template = await self.get_article_template(ctx, template_id)
        changes = data.model_dump(exclude_unset=True)
        _reject_nulls(changes, ("name", "unit", "unit_price", "vat_rate", "is_active"))

        async with atomic(self.session, "update article template"):
            for field, value in changes.items():
                setattr(template, field, value)
            await self.session.flush()
            await self.session.refresh(template)

        return template

    async def delete_article_template(self, ctx: TenantContext, template_id: int) -> None:
        """
        Remove an entry from the catalog.

        WHY: Soft delete. The entry disappears from listings but can still
        be read by id and reactivated.
        """
        template = await self.get_article_template(ctx, template_id)
        async with atomic(self.session, "delete article template"):
            template.is_active = False
            await self.session.flush()
