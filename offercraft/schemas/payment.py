"""
Pydantic schemas for offer payment schedules.

WHAT: Milestone requests and the schedule read model.

WHY: Clients see what is due when; the schedule response therefore carries
the amount due of every milestone, resolved against the current offer total.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from offercraft.core.money import quantize_to
from offercraft.models.payment import PaymentStatus


class PaymentMilestoneCreate(BaseModel):
    """
    Milestone creation request.

    The milestone is appended at the end of the schedule.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    percentage: Decimal = Field(Decimal("0"), ge=0, le=100, description="Share of the offer total")
    amount: Optional[Decimal] = Field(None, ge=0, description="Fixed amount; wins over percentage")
    due_date: Optional[date] = None
    status: PaymentStatus = PaymentStatus.PENDING

    @field_validator("percentage", "amount", mode="after")
    @classmethod
    def _cents(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_to(value, 2) if value is not None else None


class PaymentMilestoneUpdate(BaseModel):
    """Omitted fields are left unchanged; amount may be cleared with null."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    amount: Optional[Decimal] = Field(None, ge=0)
    due_date: Optional[date] = None
    status: Optional[PaymentStatus] = None
    sort_order: Optional[int] = Field(None, ge=1)

    @field_validator("percentage", "amount", mode="after")
    @classmethod
    def _cents(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_to(value, 2) if value is not None else None


class PaymentMilestoneResponse(BaseModel):
    id: int
    offer_id: int
    name: str
    description: Optional[str] = None
    percentage: Decimal
    amount: Optional[Decimal] = None
    amount_due: Decimal
    due_date: Optional[date] = None
    status: PaymentStatus
    sort_order: int
    created_at: datetime


class PaymentScheduleResponse(BaseModel):
    offer_id: int
    currency: str
    offer_total: Decimal
    scheduled_percentage: Decimal
    milestones: List[PaymentMilestoneResponse]
