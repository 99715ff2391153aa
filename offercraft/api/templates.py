"""
Template library API endpoints.

WHAT: CRUD for offer templates (/templates/offers) and the article
catalog (/templates/articles).

HOW: Tenant scoped through the bearer token. Listings return the
matching templates together with the tenant's categories for filtering.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.deps import get_tenant_context
from offercraft.db.session import get_db
from offercraft.schemas.template import (
    ArticleTemplateCreate,
    ArticleTemplateListResponse,
    ArticleTemplateResponse,
    ArticleTemplateUpdate,
    OfferTemplateCreate,
    OfferTemplateListResponse,
    OfferTemplateResponse,
    OfferTemplateUpdate,
)
from offercraft.services.template_service import TemplateService


router = APIRouter(prefix="/templates", tags=["templates"])


# ============================================================================
# Offer templates
# ============================================================================


@router.get("/offers", response_model=OfferTemplateListResponse, summary="List offer templates")
async def list_offer_templates(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, max_length=255, description="Match name or description"),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferTemplateListResponse:
    templates, categories = await TemplateService(db).list_offer_templates(
        ctx, category=category, search=search
    )
    return OfferTemplateListResponse(
        templates=[OfferTemplateResponse.model_validate(t) for t in templates],
        categories=categories,
    )


@router.post(
    "/offers",
    response_model=OfferTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create offer template",
)
async def create_offer_template(
    data: OfferTemplateCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferTemplateResponse:
    """
    Create a template from the given sections, or save an existing offer
    as a template with from_offer_id.
    """
    template = await TemplateService(db).create_offer_template(ctx, data)
    return OfferTemplateResponse.model_validate(template)


@router.get(
    "/offers/{template_id}", response_model=OfferTemplateResponse, summary="Get offer template"
)
async def get_offer_template(
    template_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferTemplateResponse:
    template = await TemplateService(db).get_offer_template(ctx, template_id)
    return OfferTemplateResponse.model_validate(template)


@router.patch(
    "/offers/{template_id}", response_model=OfferTemplateResponse, summary="Update offer template"
)
async def update_offer_template(
    template_id: int,
    data: OfferTemplateUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferTemplateResponse:
    template = await TemplateService(db).update_offer_template(ctx, template_id, data)
    return OfferTemplateResponse.model_validate(template)


@router.delete(
    "/offers/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete offer template",
)
async def delete_offer_template(
    template_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await TemplateService(db).delete_offer_template(ctx, template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Article catalog
# ============================================================================


@router.get(
    "/articles", response_model=ArticleTemplateListResponse, summary="List article templates"
)
async def list_article_templates(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, max_length=255, description="Match name or description"),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ArticleTemplateListResponse:
    templates, categories = await TemplateService(db).list_article_templates(
        ctx, category=category, search=search
    )
    return ArticleTemplateListResponse(
        templates=[ArticleTemplateResponse.model_validate(t) for t in templates],
        categories=categories,
    )


@router.post(
    "/articles",
    response_model=ArticleTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create article template",
)
async def create_article_template(
    data: ArticleTemplateCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ArticleTemplateResponse:
    template = await TemplateService(db).create_article_template(ctx, data)
    return ArticleTemplateResponse.model_validate(template)


@router.get(
    "/articles/{template_id}",
    response_model=ArticleTemplateResponse,
    summary="Get article template",
)
async def get_article_template(
    template_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ArticleTemplateResponse:
    template = await TemplateService(db).get_article_template(ctx, template_id)
    return ArticleTemplateResponse.model_validate(template)


@router.patch(
    "/articles/{template_id}",
    response_model=ArticleTemplateResponse,
    summary="Update article template",
)
async def update_article_template(
    template_id: int,
    data: ArticleTemplateUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ArticleTemplateResponse:
    template = await TemplateService(db).update_article_template(ctx, template_id, data)
    return ArticleTemplateResponse.model_validate(template)


@router.delete(
    "/articles/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete article template",
)
async def delete_article_template(
    template_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Remove the entry from the catalog; it can be reactivated with PATCH."""
    await TemplateService(db).delete_article_template(ctx, template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
