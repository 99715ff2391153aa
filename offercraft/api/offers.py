"""
Offer management API endpoints.

WHAT: RESTful API for offer CRUD, status workflow, copies and exports.

WHY: Thin HTTP layer over OfferService; every business rule (pricing,
status transitions, tenant scoping) lives in the service.

HOW: FastAPI router with:
- TenantContext from the bearer token on every route
- Pydantic request validation (errors rendered as validation_error)
- Decimal amounts serialized as strings
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.deps import get_tenant_context
from offercraft.db.session import get_db
from offercraft.models.offer import OfferStatus
from offercraft.schemas.offer import (
    ActivityResponse,
    OfferCreate,
    OfferDocument,
    OfferDuplicateRequest,
    OfferFromTemplateRequest,
    OfferListResponse,
    OfferResponse,
    OfferSendRequest,
    OfferSummary,
    OfferUpdate,
    SendOfferResponse,
)
from offercraft.services.offer_service import OfferService


router = APIRouter(prefix="/offers", tags=["offers"])


@router.post(
    "",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create offer",
)
async def create_offer(
    data: OfferCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    """
    Create a DRAFT offer with sections and articles.

    The offer number and all totals are assigned by the server.
    """
    offer = await OfferService(db).create_offer(ctx, data)
    return OfferResponse.model_validate(offer)


@router.get(
    "",
    response_model=OfferListResponse,
    summary="List offers",
)
async def list_offers(
    skip: int = Query(default=0, ge=0, description="Number of items to skip"),
    limit: int = Query(default=50, ge=1, le=100, description="Maximum items to return"),
    status_filter: Optional[OfferStatus] = Query(
        default=None,
        alias="status",
        description="Filter by offer status",
    ),
    search: Optional[str] = Query(default=None, description="Match title or offer number"),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferListResponse:
    """List the tenant's offers, newest first."""
    offers, total = await OfferService(db).list_offers(
        ctx, status=status_filter, search=search, skip=skip, limit=limit
    )
    return OfferListResponse(
        items=[OfferSummary.model_validate(offer) for offer in offers],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post(
    "/from-template",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create offer from template",
)
async def create_from_template(
    data: OfferFromTemplateRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    offer = await OfferService(db).create_from_template(
        ctx,
        template_id=data.template_id,
        client_id=data.client_id,
        title=data.title,
        currency=data.currency,
    )
    return OfferResponse.model_validate(offer)


@router.get("/{offer_id}", response_model=OfferResponse, summary="Get offer")
async def get_offer(
    offer_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    offer = await OfferService(db).get_offer(ctx, offer_id)
    return OfferResponse.model_validate(offer)


@router.patch("/{offer_id}", response_model=OfferResponse, summary="Update offer")
async def update_offer(
    offer_id: int,
    data: OfferUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    """
    Update an offer.

    Passing sections replaces the whole section/article tree; totals are
    recomputed either way. Terminal offers can't be edited (409).
    """
    offer = await OfferService(db).update_offer(ctx, offer_id, data)
    return OfferResponse.model_validate(offer)


@router.post("/{offer_id}/submit", response_model=OfferResponse, summary="Submit for approval")
async def submit_for_approval(
    offer_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    offer = await OfferService(db).submit_for_approval(ctx, offer_id)
    return OfferResponse.model_validate(offer)


@router.post("/{offer_id}/return-to-draft", response_model=OfferResponse, summary="Return to draft")
async def return_to_draft(
    offer_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    offer = await OfferService(db).return_to_draft(ctx, offer_id)
    return OfferResponse.model_validate(offer)


@router.post("/{offer_id}/send", response_model=SendOfferResponse, summary="Send offer")
async def send_offer(
    offer_id: int,
    data: OfferSendRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> SendOfferResponse:
    """
    Send an offer to the client.

    The offer becomes SENT even if the email fails; email_sent reports
    whether the notification went out.
    """
    service = OfferService(db)
    offer, recipient, email_sent = await service.send_offer(
        ctx,
        offer_id,
        recipient=data.recipient,
        subject=data.subject,
        message=data.message,
    )
    return SendOfferResponse(
        offer=OfferResponse.model_validate(offer),
        recipient=recipient,
        share_link=service.share_link(offer),
        email_sent=email_sent,
    )


@router.post(
    "/{offer_id}/duplicate",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate offer",
)
async def duplicate_offer(
    offer_id: int,
    data: OfferDuplicateRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    offer = await OfferService(db).duplicate_offer(
        ctx, offer_id, title=data.title, client_id=data.client_id
    )
    return OfferResponse.model_validate(offer)


@router.get("/{offer_id}/document", response_model=OfferDocument, summary="Export document model")
async def get_document(
    offer_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferDocument:
    """Self-contained document model consumed by PDF/DOCX exporters."""
    return await OfferService(db).get_document(ctx, offer_id)


@router.get("/{offer_id}/activity", response_model=list[ActivityResponse], summary="Offer activity")
async def get_activity(
    offer_id: int,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> list[ActivityResponse]:
    activities = await OfferService(db).get_activity(ctx, offer_id, skip=skip, limit=limit)
    return [ActivityResponse.model_validate(activity) for activity in activities]
