"""
Offer Version Service.

WHAT: Snapshot store for offers: create, list, get and restore versions.

WHY: Versioning enables:
- Rolling an offer back after an unwanted edit
- An audit trail of what was offered when
- Safe experimentation, since every restore first backs up the current state

HOW:
- Snapshots are tagged pydantic payloads (schemas.version.OfferSnapshot)
- Version numbers are max + 1 under a row lock on the offer, backed by the
  (offer_id, version) unique constraint; a collision is retried a bounded
  number of times
- Restore validates the target payload, backs up, replaces the section
  tree and content scalars, all inside one savepoint
"""

import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.exceptions import (
    ConflictError,
    OfferNotFoundError,
    OfferVersionNotFoundError,
    ValidationError,
)
from offercraft.dao.offer import OfferDAO
from offercraft.dao.offer_version import OfferVersionDAO
from offercraft.db.transaction import atomic
from offercraft.models.activity import OfferActivityType
from offercraft.models.offer import Offer, OfferSection
from offercraft.models.offer_version import OfferVersion
from offercraft.schemas.version import (
    ArticleSnapshot,
    OfferContentSnapshot,
    OfferSnapshot,
    SectionSnapshot,
)
from offercraft.services import offer_state
from offercraft.services.activity_service import OfferActivityService
from offercraft.services.offer_service import OfferService, build_sections
from offercraft.services.pricing import recompute_offer


logger = logging.getLogger(__name__)

MAX_VERSION_ATTEMPTS = 3


def snapshot_sections(sections: Iterable[OfferSection]) -> List[SectionSnapshot]:
    """Capture a section/article tree (persisted or freshly built)."""
    return [
        SectionSnapshot(
            title=section.title,
            description=section.description,
            sort_order=section.sort_order,
            articles=[
                ArticleSnapshot(
                    name=article.name,
                    description=article.description,
                    unit=article.unit,
                    quantity=article.quantity,
                    unit_price=article.unit_price,
                    vat_rate=article.vat_rate,
                    discount_percent=article.discount_percent,
                    discount_fixed=article.discount_fixed,
                    total=article.total,
                    sort_order=article.sort_order,
                )
                for article in section.articles
            ],
        )
        for section in sections
    ]


def snapshot_offer(offer: Offer) -> OfferSnapshot:
    """
    Capture an offer's content as a tagged snapshot.

    Example:
        >>> snapshot_offer(offer).model_dump(mode="json")["kind"]
        'offer_snapshot'
    """
    return OfferSnapshot(
        offer=OfferContentSnapshot(
            title=offer.title,
            currency=offer.currency,
            executive_summary=offer.executive_summary,
            terms_and_conditions=offer.terms_and_conditions,
            subtotal=offer.subtotal,
            discount_total=offer.discount_total,
            vat_total=offer.vat_total,
            total=offer.total,
        ),
        sections=snapshot_sections(offer.sections),
    )


def parse_snapshot(payload: dict, version_id: Optional[int] = None) -> OfferSnapshot:
    """
    Validate a stored payload.

    Raises:
        ValidationError: If the payload isn't a valid offer snapshot
    """
    try:
        return OfferSnapshot.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Version payload is not a valid offer snapshot",
            version_id=version_id,
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        )


class OfferVersionService:
    """
    Service for offer version management.

    All methods take the caller's TenantContext; versions of another
    tenant's offer are reported as not found.
    """

    def __init__(self, session: AsyncSession, offer_service: Optional[OfferService] = None):
        """
        Initialize OfferVersionService.

        Args:
            session: Async database session
            offer_service: Offer service used for loading and lazy expiry
        """
        self.session = session
        self.offer_dao = OfferDAO(session)
        self.version_dao = OfferVersionDAO(session)
        self.activity = OfferActivityService(session)
        self.offers = offer_service or OfferService(session)

    async def _lock_offer(self, ctx: TenantContext, offer_id: int) -> Offer:
        return await self.offers.lock(offer_id, ctx.tenant_id)

    async def _insert_snapshot(
        self, ctx: TenantContext, offer: Offer, note: Optional[str]
    ) -> OfferVersion:
        """
        Insert a snapshot of the (locked) offer with the next version number.

        Raises:
            ConflictError: If the version number kept colliding
        """
        payload = snapshot_offer(offer).model_dump(mode="json")

        for attempt in range(1, MAX_VERSION_ATTEMPTS + 1):
            version_number = await self.version_dao.get_next_version_number(offer.id)
            try:
                async with self.session.begin_nested():
                    version = await self.version_dao.create_version(
                        tenant_id=ctx.tenant_id,
                        offer_id=offer.id,
                        version=version_number,
                        payload=payload,
                        author_id=ctx.user_id,
                        change_note=note,
                    )
            except IntegrityError:
                logger.warning(
                    "Version number collision, retrying",
                    extra={"offer_id": offer.id, "version": version_number, "attempt": attempt},
                )
                continue

            await self.activity.record(
                offer,
                OfferActivityType.VERSION_CREATED,
                f"Version {version.version} created",
                actor_id=ctx.user_id,
                extra_data={"version": version.version, "note": note},
            )
            return version

        raise ConflictError(
            message="Could not assign a version number, please retry",
            offer_id=offer.id,
        )

    async def create_snapshot(
        self, ctx: TenantContext, offer_id: int, note: Optional[str] = None
    ) -> OfferVersion:
        """
        Record a new version of an offer.

        Args:
            ctx: Caller context
            offer_id: Offer to snapshot
            note: Optional change note

        Returns:
            Created OfferVersion

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
            ConflictError: If a version number couldn't be assigned
        """
        async with atomic(self.session, "create offer version"):
            offer = await self._lock_offer(ctx, offer_id)
            version = await self._insert_snapshot(ctx, offer, note)

        logger.info(
            "Offer version created",
            extra={"offer_id": offer_id, "version": version.version},
        )
        return version

    async def list_snapshots(self, ctx: TenantContext, offer_id: int) -> List[OfferVersion]:
        """
        Get the version history of an offer, newest first.

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
        """
        if await self.offer_dao.get_by_id_and_tenant(offer_id, ctx.tenant_id) is None:
            raise OfferNotFoundError(offer_id=offer_id)
        return await self.version_dao.list_for_offer(offer_id, ctx.tenant_id)

    async def get_snapshot(self, ctx: TenantContext, offer_id: int, version_id: int) -> OfferVersion:
        """
        Get one version of an offer.

        Raises:
            OfferVersionNotFoundError: If the version doesn't belong to the
                offer or the offer isn't in the caller's tenant
        """
        version = await self.version_dao.get_for_offer(version_id, offer_id, ctx.tenant_id)
        if version is None:
            raise OfferVersionNotFoundError(offer_id=offer_id, version_id=version_id)
        return version

    async def restore_snapshot(self, ctx: TenantContext, offer_id: int, version_id: int) -> Offer:
        """
        Restore an offer to a previous version.

        WHAT: Replaces the offer's content with the content of version N.

        HOW:
        1. Validate the target payload (nothing is touched if it's malformed)
        2. Snapshot the current state ("Auto-backup before restoring to version N")
        3. Replace the section/article tree and content scalars
        4. Recompute totals and record a RESTORED activity

        All steps share one savepoint; a failure in any of them leaves the
        offer and its history exactly as before.

        Raises:
            OfferNotFoundError / OfferVersionNotFoundError: If not in the tenant
            InvalidTransitionError: If the offer has already been sent
            ValidationError: If the stored payload is malformed
        """
        offer = await self.offers.get_offer(ctx, offer_id)
        offer_state.check_editable(offer)

        target = await self.get_snapshot(ctx, offer_id, version_id)
        snapshot = parse_snapshot(target.payload, version_id=target.id)
        new_sections = build_sections(snapshot.sections)

        async with atomic(self.session, "restore offer version"):
            offer = await self._lock_offer(ctx, offer_id)
            # it may have been sent while the snapshot was parsed
            offer_state.check_editable(offer)
            backup = await self._insert_snapshot(
                ctx, offer, f"Auto-backup before restoring to version {target.version}"
            )

            content = snapshot.offer
            offer.title = content.title
            offer.currency = content.currency
            offer.executive_summary = content.executive_summary
            offer.terms_and_conditions = content.terms_and_conditions

            offer.sections.clear()
            await self.session.flush()
            offer.sections.extend(new_sections)
            recompute_offer(offer)
            await self.session.flush()

            await self.activity.record(
                offer,
                OfferActivityType.RESTORED,
                f"Offer restored to version {target.version}",
                actor_id=ctx.user_id,
                extra_data={
                    "restored_version": target.version,
                    "backup_version": backup.version,
                },
            )

        logger.info(
            "Offer restored",
            extra={"offer_id": offer_id, "version": target.version, "backup_version": backup.version},
        )
        return await self.offer_dao.get_with_tree(offer_id, ctx.tenant_id)
