"""
Offer version API endpoints.

WHAT: Version history, manual snapshots and restore for an offer.

HOW: Nested under /offers/{offer_id}/versions; all routes are tenant
scoped through the bearer token.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.deps import get_tenant_context
from offercraft.db.session import get_db
from offercraft.schemas.offer import OfferResponse
from offercraft.schemas.version import (
    VersionCreateRequest,
    VersionDetailResponse,
    VersionListResponse,
    VersionResponse,
)
from offercraft.services.version_service import OfferVersionService


router = APIRouter(prefix="/offers/{offer_id}/versions", tags=["offer-versions"])


@router.get("", response_model=VersionListResponse, summary="List versions")
async def list_versions(
    offer_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> VersionListResponse:
    versions = await OfferVersionService(db).list_snapshots(ctx, offer_id)
    return VersionListResponse(
        items=[VersionResponse.model_validate(v) for v in versions],
        total=len(versions),
    )


@router.post(
    "",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create version",
)
async def create_version(
    offer_id: int,
    data: VersionCreateRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> VersionResponse:
    version = await OfferVersionService(db).create_snapshot(ctx, offer_id, note=data.note)
    return VersionResponse.model_validate(version)


@router.get("/{version_id}", response_model=VersionDetailResponse, summary="Get version")
async def get_version(
    offer_id: int,
    version_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> VersionDetailResponse:
    version = await OfferVersionService(db).get_snapshot(ctx, offer_id, version_id)
    return VersionDetailResponse.model_validate(version)


@router.post("/{version_id}/restore", response_model=OfferResponse, summary="Restore version")
async def restore_version(
    offer_id: int,
    version_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> OfferResponse:
    """
    Restore the offer to a version.

    The current state is saved as a new version first, so a restore can
    itself be undone.
    """
    offer = await OfferVersionService(db).restore_snapshot(ctx, offer_id, version_id)
    return OfferResponse.model_validate(offer)
