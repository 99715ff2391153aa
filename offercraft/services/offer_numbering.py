"""
Offer number allocation.

WHAT: Issues human-readable offer numbers of the form OFR-YYYYMM-NNNN.

WHY: Numbers are printed on offers and referenced by clients, so they must
be unique per tenant and never reused, even when two offers are created
at the same moment.

HOW: One counter row per (tenant, year, month) in offer_number_sequences:
1. UPDATE ... SET last_value = last_value + 1 RETURNING last_value
2. If no row exists yet, INSERT it with last_value = 1 inside a savepoint
3. If that INSERT loses a race (unique violation), roll back the savepoint
   and go back to step 1
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.exceptions import ConflictError
from offercraft.dao.offer_sequence import OfferNumberSequenceDAO


logger = logging.getLogger(__name__)

OFFER_NUMBER_PREFIX = "OFR"
MAX_ALLOCATION_ATTEMPTS = 5


def format_offer_number(year: int, month: int, sequence: int) -> str:
    """
    Format an offer number.

    Example:
        >>> format_offer_number(2026, 3, 3)
        'OFR-202603-0003'
    """
    return f"{OFFER_NUMBER_PREFIX}-{year:04d}{month:02d}-{sequence:04d}"


class OfferNumberAllocator:
    """
    Allocates offer numbers from per-tenant monthly counters.

    The allocation joins the caller's transaction: if the offer creation
    rolls back, the counter increment rolls back with it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.sequence_dao = OfferNumberSequenceDAO(session)

    async def allocate(self, tenant_id: int, on: Optional[date] = None) -> str:
        """
        Allocate the next offer number for a tenant.

        Args:
            tenant_id: Tenant the offer belongs to
            on: Date whose year/month selects the counter (defaults to today)

        Returns:
            Offer number, e.g. OFR-202603-0003

        Raises:
            ConflictError: If the counter row could not be created after
                repeated races
        """
        on = on or date.today()

        for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
            value = await self.sequence_dao.increment(tenant_id, on.year, on.month)
            if value is None:
                try:
                    async with self.session.begin_nested():
                        value = await self.sequence_dao.start(tenant_id, on.year, on.month)
                except IntegrityError:
                    logger.info(
                        "Offer number counter created concurrently, retrying",
                        extra={"tenant_id": tenant_id, "attempt": attempt},
                    )
                    continue
            return format_offer_number(on.year, on.month, value)

        raise ConflictError(
            message="Could not allocate an offer number, please retry",
            tenant_id=tenant_id,
        )
