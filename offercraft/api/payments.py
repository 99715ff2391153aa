"""
Offer payment schedule API endpoints.

WHAT: Read and edit the payment milestones of an offer.

HOW: Nested under /offers/{offer_id}/payments; all routes are tenant
scoped through the bearer token.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.deps import get_tenant_context
from offercraft.db.session import get_db
from offercraft.schemas.payment import (
    PaymentMilestoneCreate,
    PaymentMilestoneResponse,
    PaymentMilestoneUpdate,
    PaymentScheduleResponse,
)
from offercraft.services.payment_service import PaymentScheduleService


router = APIRouter(prefix="/offers/{offer_id}/payments", tags=["offer-payments"])


@router.get("", response_model=PaymentScheduleResponse, summary="Get payment schedule")
async def get_schedule(
    offer_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> PaymentScheduleResponse:
    return await PaymentScheduleService(db).get_schedule(ctx, offer_id)


@router.post(
    "",
    response_model=PaymentMilestoneResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add payment milestone",
)
async def add_milestone(
    offer_id: int,
    data: PaymentMilestoneCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> PaymentMilestoneResponse:
    return await PaymentScheduleService(db).add_milestone(ctx, offer_id, data)


@router.patch(
    "/{milestone_id}", response_model=PaymentMilestoneResponse, summary="Update milestone"
)
async def update_milestone(
    offer_id: int,
    milestone_id: int,
    data: PaymentMilestoneUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> PaymentMilestoneResponse:
    return await PaymentScheduleService(db).update_milestone(ctx, offer_id, milestone_id, data)


@router.delete(
    "/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete milestone"
)
async def delete_milestone(
    offer_id: int,
    milestone_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await PaymentScheduleService(db).delete_milestone(ctx, offer_id, milestone_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
