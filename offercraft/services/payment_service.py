"""
Payment Schedule Service.

WHAT: Ordered payment milestones of an offer.

WHY: The schedule is part of what the client agrees to, so it must add up:
percentages of one offer never exceed 100, and every milestone resolves to
a concrete amount due against the current offer total.

HOW: Changes take the offer's row lock (the same lock every offer mutation
takes), so the percentage check and the next position are computed from a
schedule nobody else is changing.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.exceptions import PaymentMilestoneNotFoundError, ValidationError
from offercraft.core.money import HUNDRED, apply_percent, quantize
from offercraft.dao.payment import PaymentMilestoneDAO
from offercraft.db.transaction import atomic
from offercraft.models.offer import Offer
from offercraft.models.payment import PaymentMilestone
from offercraft.schemas.payment import (
    PaymentMilestoneCreate,
    PaymentMilestoneResponse,
    PaymentMilestoneUpdate,
    PaymentScheduleResponse,
)
from offercraft.services.offer_service import OfferService


logger = logging.getLogger(__name__)


def amount_due(milestone: PaymentMilestone, offer_total: Decimal) -> Decimal:
    """
    Resolve what a milestone asks the client to pay.

    Example:
        >>> amount_due(PaymentMilestone(percentage=Decimal("30")), Decimal("65.34"))
        Decimal('19.60')
    """
    if milestone.amount is not None:
        return quantize(milestone.amount)
    return apply_percent(offer_total, milestone.percentage, "percentage")


def milestone_response(milestone: PaymentMilestone, offer: Offer) -> PaymentMilestoneResponse:
    return PaymentMilestoneResponse(
        id=milestone.id,
        offer_id=milestone.offer_id,
        name=milestone.name,
        description=milestone.description,
        percentage=milestone.percentage,
        amount=milestone.amount,
        amount_due=amount_due(milestone, offer.total),
        due_date=milestone.due_date,
        status=milestone.status,
        sort_order=milestone.sort_order,
        created_at=milestone.created_at,
    )


class PaymentScheduleService:
    """Service for offer payment schedules."""

    def __init__(self, session: AsyncSession, offer_service: Optional[OfferService] = None):
        self.session = session
        self.milestone_dao = PaymentMilestoneDAO(session)
        self.offers = offer_service or OfferService(session)

    async def _check_percentages(
        self, offer_id: int, percentage: Decimal, exclude_id: Optional[int] = None
    ) -> None:
        scheduled = await self.milestone_dao.percentage_total(offer_id, exclude_id=exclude_id)
        if scheduled + percentage > HUNDRED:
            raise ValidationError(
                message="Payment percentages would exceed 100%",
                field="percentage",
                scheduled=str(scheduled),
                requested=str(percentage),
            )

    async def get_schedule(self, ctx: TenantContext, offer_id: int) -> PaymentScheduleResponse:
        """
        Read an offer's schedule with every amount resolved.

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
        """
        offer = await self.offers.get_offer(ctx, offer_id)
        milestones = await self.milestone_dao.list_for_offer(offer_id, ctx.tenant_id)
        return PaymentScheduleResponse(
            offer_id=offer.id,
            currency=offer.currency,
            offer_total=offer.total,
            scheduled_percentage=sum((m.percentage for m in milestones), Decimal("0")),
            milestones=[milestone_response(m, offer) for m in milestones],
        )

    async def add_milestone(
        self, ctx: TenantContext, offer_id: int, data: PaymentMilestoneCreate
    ) -> PaymentMilestoneResponse:
        """
        Append a milestone to the end of the schedule.

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
            ValidationError: If the percentages would exceed 100
        """
        await self.offers.get_offer(ctx, offer_id)

        async with atomic(self.session, "add payment milestone"):
            offer = await self.offers.lock(offer_id, ctx.tenant_id)
            await self._check_percentages(offer_id, data.percentage)
            milestone = await self.milestone_dao.create(
                tenant_id=ctx.tenant_id,
                offer_id=offer_id,
                sort_order=await self.milestone_dao.max_sort_order(offer_id) + 1,
                **data.model_dump(),
            )

        logger.info(
            "Payment milestone added",
            extra={"offer_id": offer_id, "milestone_id": milestone.id},
        )
        return milestone_response(milestone, offer)

    async def _get_milestone(
        self, ctx: TenantContext, offer_id: int, milestone_id: int
    ) -> PaymentMilestone:
        milestone = await self.milestone_dao.get_for_offer(milestone_id, offer_id, ctx.tenant_id)
        if milestone is None:
            raise PaymentMilestoneNotFoundError(milestone_id=milestone_id, offer_id=offer_id)
        return milestone

    async def update_milestone(
        self,
        ctx: TenantContext,
        offer_id: int,
        milestone_id: int,
        data: PaymentMilestoneUpdate,
    ) -> PaymentMilestoneResponse:
        """
        Update a milestone. Sending amount=null falls back to the percentage.

        Raises:
            OfferNotFoundError / PaymentMilestoneNotFoundError: If not in the tenant
            ValidationError: If the percentages would exceed 100 or a
                required field is nulled
        """
        await self.offers.get_offer(ctx, offer_id)
        changes = data.model_dump(exclude_unset=True)
        for required in ("name", "percentage", "status", "sort_order"):
            if required in changes and changes[required] is None:
                raise ValidationError(message=f"{required} cannot be empty", field=required)

        async with atomic(self.session, "update payment milestone"):
            offer = await self.offers.lock(offer_id, ctx.tenant_id)
            milestone = await self._get_milestone(ctx, offer_id, milestone_id)
            if "percentage" in changes:
                await self._check_percentages(
                    offer_id, changes["percentage"], exclude_id=milestone_id
                )
            for field, value in changes.items():
                setattr(milestone, field, value)
            await self.session.flush()

        return milestone_response(milestone, offer)

    async def delete_milestone(self, ctx: TenantContext, offer_id: int, milestone_id: int) -> None:
        """
        Remove a milestone; later milestones keep their positions.

        Raises:
            OfferNotFoundError / PaymentMilestoneNotFoundError: If not in the tenant
        """
        await self.offers.get_offer(ctx, offer_id)

        async with atomic(self.session, "delete payment milestone"):
            await self.offers.lock(offer_id, ctx.tenant_id)
            milestone = await self._get_milestone(ctx, offer_id, milestone_id)
            await self.milestone_dao.delete(milestone)

        logger.info(
            "Payment milestone deleted",
            extra={"offer_id": offer_id, "milestone_id": milestone_id},
        )
