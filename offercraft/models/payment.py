"""
Payment schedule model.

WHAT: Ordered payment milestones of an offer (deposit, delivery, ...).

WHY: Larger offers are invoiced in parts. The schedule tells the client
up front when which share of the total is due.

HOW: A milestone is either a percentage of the offer total or a fixed
amount; when amount is set it wins. sort_order is assigned by the
service as max + 1 under the offer's row lock.
"""

import enum
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, Integer, Numeric, String, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from offercraft.models.base import Base, TimestampMixin


class PaymentStatus(str, enum.Enum):
    """Milestone billing status."""

    PENDING = "PENDING"
    INVOICED = "INVOICED"
    PAID = "PAID"


class PaymentMilestone(Base, TimestampMixin):
    """
    One milestone of an offer's payment schedule.

    Attributes:
        tenant_id: Owning tenant (same as the offer's)
        offer_id: Offer the milestone belongs to
        name: Milestone name ("Deposit")
        description: Optional details
        percentage: Share of the offer total, 0-100
        amount: Fixed amount overriding the percentage
        due_date: When the payment is due
        status: Billing status
        sort_order: Position in the schedule, starting at 1
    """

    __tablename__ = "payment_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    offer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name="paymentstatus", native_enum=False, length=32),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<PaymentMilestone(id={self.id}, offer_id={self.offer_id}, name={self.name})>"
