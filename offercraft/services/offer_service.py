"""
Offer Service.

WHAT: Business logic for the offer lifecycle: create, edit, send, view,
reject, duplicate, build from template, and the export read model.

WHY: The service layer:
1. Is the only place offer status changes (through offer_state)
2. Recomputes totals on every tree change so stored totals are never stale
3. Scopes every lookup by the caller's tenant
4. Records the activity log alongside each change

HOW: Each mutating operation loads and validates first, then mutates
inside one savepoint (db.transaction.atomic), then reloads the offer tree.
Notifications are sent after the status change is flushed and never roll
it back.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.config import settings
from offercraft.core.context import TenantContext
from offercraft.core.money import money_sum, quantize_to
from offercraft.core.exceptions import (
    ClientNotFoundError,
    OfferNotFoundError,
    TemplateNotFoundError,
    ValidationError,
)
from offercraft.dao.client import ClientDAO
from offercraft.dao.offer import OfferDAO
from offercraft.dao.offer_template import OfferTemplateDAO
from offercraft.db.transaction import atomic
from offercraft.models.activity import OfferActivity, OfferActivityType
from offercraft.models.client import Client
from offercraft.models.offer import Article, Offer, OfferSection, OfferStatus
from offercraft.models.tenant import Tenant
from offercraft.schemas.offer import (
    DocumentArticle,
    DocumentClient,
    DocumentSection,
    DocumentTotalsResponse,
    OfferCreate,
    OfferDocument,
    OfferUpdate,
)
from offercraft.schemas.version import TemplateContent
from offercraft.services import offer_state
from offercraft.services.activity_service import OfferActivityService
from offercraft.services.email import EmailService, get_email_service
from offercraft.services.offer_numbering import OfferNumberAllocator
from offercraft.services.pricing import aggregate, calculate_article, recompute_offer


logger = logging.getLogger(__name__)


# ============================================================================
# Tree building
# ============================================================================


def build_article(data: Any, index: int) -> Article:
    """
    Build an Article from any object with article fields.

    Accepts request inputs and snapshot/template entries alike. Inputs are
    rounded to their column scale (quantity 3 dp, amounts and rates 2 dp)
    before pricing, so the stored total is the total of the stored inputs.
    The total is computed here, so invalid pricing fails before anything
    is mutated.

    Raises:
        ValidationError: If pricing inputs are invalid
    """
    sort_order = data.sort_order if data.sort_order is not None else index
    article = Article(
        name=data.name,
        description=data.description,
        unit=data.unit or "pcs",
        quantity=quantize_to(data.quantity, 3, "quantity"),
        unit_price=quantize_to(data.unit_price, 2, "unit_price"),
        vat_rate=quantize_to(data.vat_rate, 2, "vat_rate"),
        discount_percent=quantize_to(data.discount_percent, 2, "discount_percent"),
        discount_fixed=quantize_to(data.discount_fixed, 2, "discount_fixed"),
        sort_order=sort_order,
    )
    article.total = calculate_article(article).total
    return article


def build_sections(sections: Iterable[Any]) -> List[OfferSection]:
    """
    Build a detached section/article tree.

    Missing sort orders default to list position.
    """
    built = []
    for index, data in enumerate(sections):
        sort_order = data.sort_order if data.sort_order is not None else index
        built.append(
            OfferSection(
                title=data.title,
                description=data.description,
                sort_order=sort_order,
                articles=[build_article(article, i) for i, article in enumerate(data.articles)],
            )
        )
    return built


def default_valid_until(days: Optional[int] = None) -> date:
    """Validity deadline for a new offer."""
    return date.today() + timedelta(days=settings.DEFAULT_VALIDITY_DAYS if days is None else days)


class OfferService:
    """
    Service for offer lifecycle operations.

    Every tenant-facing method takes a TenantContext first. mark_viewed,
    reject_offer and get_public_offer serve the unauthenticated share link.
    """

    def __init__(self, session: AsyncSession, email_service: Optional[EmailService] = None):
        """
        Initialize OfferService.

        Args:
            session: Async database session
            email_service: Email service for notifications (process default if omitted)
        """
        self.session = session
        self.offer_dao = OfferDAO(session)
        self.client_dao = ClientDAO(session)
        self.template_dao = OfferTemplateDAO(session)
        self.activity = OfferActivityService(session)
        self.numbering = OfferNumberAllocator(session)
        self._email_service = email_service

    @property
    def email_service(self) -> EmailService:
        if self._email_service is None:
            self._email_service = get_email_service()
        return self._email_service

    # =========================================================================
    # Loading and lazy expiry
    # =========================================================================

    async def expire_if_due(self, offer: Offer, today: Optional[date] = None) -> bool:
        """
        Move an offer to EXPIRED if its validity has passed.

        WHY: Expiry is evaluated when an offer is read (and before sending
        or signing) rather than by a scheduler, so an offer is never shown
        or accepted past its deadline.

        Returns:
            True if the offer was expired by this call
        """
        if offer.is_terminal or not offer.is_past_validity(today):
            return False

        async with atomic(self.session, "expire offer"):
            offer = await self.lock(offer.id, offer.tenant_id)
            if offer.is_terminal:
                return False
            previous = offer_state.apply_transition(offer, OfferStatus.EXPIRED)
            await self.session.flush()
            await self.activity.record_status_change(
                offer,
                previous,
                activity_type=OfferActivityType.EXPIRED,
                message=f"Offer expired (valid until {offer.valid_until.isoformat()})",
            )
        logger.info(
            "Offer expired",
            extra={"offer_id": offer.id, "valid_until": offer.valid_until.isoformat()},
        )
        return True

    async def _load(self, ctx: TenantContext, offer_id: int) -> Offer:
        offer = await self.offer_dao.get_with_tree(offer_id, ctx.tenant_id)
        if offer is None:
            raise OfferNotFoundError(offer_id=offer_id)
        return offer

    async def lock(self, offer_id: int, tenant_id: int) -> Offer:
        """
        Re-read an offer under its row lock.

        WHY: Every mutation of the aggregate (status, tree, signature) takes
        this lock inside its savepoint, so two concurrent edits of one offer
        run one after the other instead of interleaving their deletes and
        inserts. The reload refreshes the already-loaded instance, so checks
        made after locking see the committed state.

        Raises:
            OfferNotFoundError: If the offer disappeared meanwhile
        """
        offer = await self.offer_dao.get_for_update(offer_id, tenant_id)
        if offer is None:
            raise OfferNotFoundError(offer_id=offer_id)
        return offer

    async def load_public(self, share_token: str) -> Offer:
        """Load an offer by its share token, applying lazy expiry."""
        offer = await self.offer_dao.get_by_share_token(share_token)
        if offer is None:
            raise OfferNotFoundError()
        await self.expire_if_due(offer)
        return offer

    async def _get_client(self, ctx: TenantContext, client_id: int) -> Client:
        client = await self.client_dao.get_by_id_and_tenant(client_id, ctx.tenant_id)
        if client is None:
            raise ClientNotFoundError(client_id=client_id)
        return client

    async def _tenant_name(self, tenant_id: int) -> str:
        tenant = await self.session.get(Tenant, tenant_id)
        return tenant.name if tenant else ""

    # =========================================================================
    # Create / read
    # =========================================================================

    async def create_offer(self, ctx: TenantContext, data: OfferCreate) -> Offer:
        """
        Create a DRAFT offer with its section/article tree.

        Raises:
            ClientNotFoundError: If the client isn't in the caller's tenant
            ValidationError: If pricing inputs are invalid
        """
        client = await self._get_client(ctx, data.client_id)
        sections = build_sections(data.sections)

        async with atomic(self.session, "create offer"):
            offer = Offer(
                tenant_id=ctx.tenant_id,
                client_id=client.id,
                created_by_id=ctx.user_id,
                offer_number=await self.numbering.allocate(ctx.tenant_id),
                title=data.title,
                status=OfferStatus.DRAFT,
                currency=(data.currency or settings.DEFAULT_CURRENCY).upper(),
                valid_until=data.valid_until or default_valid_until(),
                executive_summary=data.executive_summary,
                terms_and_conditions=data.terms_and_conditions,
                sections=sections,
            )
            recompute_offer(offer)
            self.session.add(offer)
            await self.session.flush()
            await self.activity.record(
                offer,
                OfferActivityType.CREATED,
                f"Offer {offer.offer_number} created",
                actor_id=ctx.user_id,
            )

        logger.info(
            "Offer created",
            extra={"offer_id": offer.id, "tenant_id": ctx.tenant_id, "offer_number": offer.offer_number},
        )
        return await self._load(ctx, offer.id)

    async def get_offer(self, ctx: TenantContext, offer_id: int) -> Offer:
        """
        Get an offer with its full tree, applying lazy expiry.

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
        """
        offer = await self._load(ctx, offer_id)
        await self.expire_if_due(offer)
        return offer

    async def list_offers(
        self,
        ctx: TenantContext,
        status: Optional[OfferStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Offer], int]:
        """
        List the tenant's offers, newest first.

        Returns:
            Tuple of (offers page, total matching count)
        """
        offers, total = await self.offer_dao.list_for_tenant(
            ctx.tenant_id, status=status, search=search, skip=skip, limit=limit
        )
        for offer in offers:
            await self.expire_if_due(offer)
        return offers, total

    # =========================================================================
    # Edit
    # =========================================================================

    async def update_offer(self, ctx: TenantContext, offer_id: int, data: OfferUpdate) -> Offer:
        """
        Update offer scalars and/or replace its section/article tree.

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
            InvalidTransitionError: If the offer has already been sent
            ClientNotFoundError: If a new client_id isn't in the tenant
        """
        offer = await self.get_offer(ctx, offer_id)
        offer_state.check_editable(offer)

        changes = data.model_dump(exclude_unset=True, exclude={"sections"})
        if changes.get("client_id") is not None:
            await self._get_client(ctx, changes["client_id"])
        if changes.get("currency"):
            changes["currency"] = changes["currency"].upper()
        for required in ("title", "currency", "client_id"):
            if required in changes and changes[required] is None:
                raise ValidationError(message=f"{required} cannot be empty", field=required)

        new_sections = build_sections(data.sections) if data.sections is not None else None

        async with atomic(self.session, "update offer"):
            offer = await self.lock(offer_id, ctx.tenant_id)
            offer_state.check_editable(offer)
            for field, value in changes.items():
                setattr(offer, field, value)
            if new_sections is not None:
                offer.sections.clear()
                await self.session.flush()
                offer.sections.extend(new_sections)
            recompute_offer(offer)
            await self.session.flush()

            updated_fields = sorted(changes)
            if new_sections is not None:
                updated_fields.append("sections")
            await self.activity.record(
                offer,
                OfferActivityType.UPDATED,
                "Offer updated",
                actor_id=ctx.user_id,
                extra_data={"fields": updated_fields},
            )

        return await self._load(ctx, offer_id)

    # =========================================================================
    # Status changes
    # =========================================================================

    async def _change_status(self, ctx: TenantContext, offer_id: int, target: OfferStatus) -> Offer:
        offer = await self.get_offer(ctx, offer_id)
        offer_state.check_transition(offer.status, target)

        async with atomic(self.session, "change offer status"):
            offer = await self.lock(offer_id, ctx.tenant_id)
            previous = offer_state.apply_transition(offer, target)
            await self.session.flush()
            await self.activity.record_status_change(offer, previous, actor_id=ctx.user_id)

        return await self._load(ctx, offer_id)

    async def submit_for_approval(self, ctx: TenantContext, offer_id: int) -> Offer:
        """DRAFT -> PENDING_APPROVAL."""
        return await self._change_status(ctx, offer_id, OfferStatus.PENDING_APPROVAL)

    async def return_to_draft(self, ctx: TenantContext, offer_id: int) -> Offer:
        """PENDING_APPROVAL -> DRAFT."""
        return await self._change_status(ctx, offer_id, OfferStatus.DRAFT)

    def share_link(self, offer: Offer) -> str:
        """Public link the client uses to view and sign the offer."""
        return f"{settings.FRONTEND_URL.rstrip('/')}/shared/offers/{offer.share_token}"

    async def send_offer(
        self,
        ctx: TenantContext,
        offer_id: int,
        recipient: Optional[str] = None,
        subject: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Tuple[Offer, str, bool]:
        """
        Send an offer to the client.

        WHAT: Transitions the offer to SENT, then emails the share link.

        WHY: The status change is the business fact; the email is a
        notification about it. An email failure is logged and reported via
        the returned flag but never undoes the transition.

        Args:
            ctx: Caller context
            offer_id: Offer to send
            recipient: Email address (defaults to the client's email)
            subject: Custom subject template
            message: Custom body template

        Returns:
            Tuple of (offer, recipient, email_sent)

        Raises:
            OfferNotFoundError: If the offer isn't in the caller's tenant
            InvalidTransitionError: If the offer can't be sent from its status
            ValidationError: If no recipient address is available
        """
        offer = await self.get_offer(ctx, offer_id)
        offer_state.check_transition(offer.status, OfferStatus.SENT)

        recipient = recipient or (offer.client.email if offer.client else None)
        if not recipient:
            raise ValidationError(message="No recipient email address", field="recipient")

        async with atomic(self.session, "send offer"):
            offer = await self.lock(offer_id, ctx.tenant_id)
            offer_state.apply_transition(offer, OfferStatus.SENT)
            offer.sent_at = datetime.utcnow()
            await self.session.flush()
            await self.activity.record(
                offer,
                OfferActivityType.SENT,
                f"Offer sent via email to {recipient}",
                actor_id=ctx.user_id,
                extra_data={"recipient": recipient},
            )

        email_sent = await self._notify_sent(offer, recipient, subject, message)
        return await self._load(ctx, offer.id), recipient, email_sent

    async def _notify_sent(
        self,
        offer: Offer,
        recipient: str,
        subject: Optional[str],
        message: Optional[str],
    ) -> bool:
        variables = {
            "offerNumber": offer.offer_number,
            "offerTitle": offer.title,
            "clientName": offer.client.company_name if offer.client else "",
            "companyName": await self._tenant_name(offer.tenant_id),
            "shareLink": self.share_link(offer),
            "total": f"{offer.total:.2f} {offer.currency}",
        }
        try:
            result = await self.email_service.send_offer_email(
                to_email=recipient,
                variables=variables,
                subject_template=subject,
                body_template=message,
                metadata={"offer_id": offer.id, "action": "sent"},
            )
        except Exception as e:
            logger.error(
                f"Failed to send offer email for offer {offer.id} to {recipient}: {e}",
                extra={"offer_id": offer.id},
            )
            return False

        if not result.success:
            logger.warning(
                f"Offer {offer.id} was sent but the email could not be delivered",
                extra={"offer_id": offer.id, "error": result.error},
            )
        return result.success

    async def mark_viewed(self, share_token: str) -> Offer:
        """
        Record that the client opened the share link.

        The first view of a SENT offer moves it to VIEWED. Later views, and
        views of offers that already left SENT, change nothing.

        Raises:
            OfferNotFoundError: If no offer has this share token
            InvalidTransitionError: If the offer was never sent
        """
        offer = await self.load_public(share_token)
        if offer.status != OfferStatus.SENT:
            if offer.status in (OfferStatus.DRAFT, OfferStatus.PENDING_APPROVAL):
                offer_state.check_transition(offer.status, OfferStatus.VIEWED)
            return offer

        async with atomic(self.session, "mark offer viewed"):
            offer = await self.lock(offer.id, offer.tenant_id)
            # a concurrent view may have got here first
            if offer.status != OfferStatus.SENT:
                return offer
            offer_state.apply_transition(offer, OfferStatus.VIEWED)
            offer.viewed_at = datetime.utcnow()
            await self.session.flush()
            await self.activity.record(offer, OfferActivityType.VIEWED, "Offer viewed by client")

        return offer

    async def reject_offer(self, share_token: str, reason: Optional[str] = None) -> Offer:
        """
        Client declines the offer through the share link.

        Raises:
            OfferNotFoundError: If no offer has this share token
            InvalidTransitionError: If the offer isn't SENT or VIEWED
        """
        offer = await self.load_public(share_token)
        offer_state.check_transition(offer.status, OfferStatus.REJECTED)

        async with atomic(self.session, "reject offer"):
            offer = await self.lock(offer.id, offer.tenant_id)
            offer_state.apply_transition(offer, OfferStatus.REJECTED)
            offer.rejected_at = datetime.utcnow()
            offer.rejection_reason = reason
            await self.session.flush()
            await self.activity.record(
                offer,
                OfferActivityType.REJECTED,
                "Offer rejected by client",
                extra_data={"reason": reason} if reason else None,
            )

        return offer

    async def get_public_offer(self, share_token: str) -> Offer:
        """Load an offer for the share link; drafts are not visible."""
        offer = await self.load_public(share_token)
        if offer.status in (OfferStatus.DRAFT, OfferStatus.PENDING_APPROVAL):
            raise OfferNotFoundError()
        return offer

    # =========================================================================
    # Copies
    # =========================================================================

    async def duplicate_offer(
        self,
        ctx: TenantContext,
        offer_id: int,
        title: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> Offer:
        """
        Copy an offer into a new DRAFT with a fresh number.

        Works from any source status; the source itself is not changed apart
        from a DUPLICATED activity.

        Raises:
            OfferNotFoundError: If the source isn't in the caller's tenant
            ClientNotFoundError: If client_id isn't in the tenant
        """
        source = await self.get_offer(ctx, offer_id)
        client = await self._get_client(ctx, client_id or source.client_id)
        sections = build_sections(source.sections)

        async with atomic(self.session, "duplicate offer"):
            copy = Offer(
                tenant_id=ctx.tenant_id,
                client_id=client.id,
                created_by_id=ctx.user_id,
                offer_number=await self.numbering.allocate(ctx.tenant_id),
                title=title or f"{source.title} (Copy)",
                status=OfferStatus.DRAFT,
                currency=source.currency,
                valid_until=default_valid_until(),
                executive_summary=source.executive_summary,
                terms_and_conditions=source.terms_and_conditions,
                sections=sections,
            )
            recompute_offer(copy)
            self.session.add(copy)
            await self.session.flush()

            await self.activity.record(
                source,
                OfferActivityType.DUPLICATED,
                f"Offer duplicated as {copy.offer_number}",
                actor_id=ctx.user_id,
                extra_data={"duplicate_id": copy.id},
            )
            await self.activity.record(
                copy,
                OfferActivityType.CREATED,
                f"Offer created as duplicate of {source.offer_number}",
                actor_id=ctx.user_id,
                extra_data={"original_id": source.id},
            )

        return await self._load(ctx, copy.id)

    async def create_from_template(
        self,
        ctx: TenantContext,
        template_id: int,
        client_id: int,
        title: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Offer:
        """
        Create a DRAFT offer from a tenant template.

        Article totals stored in the template are ignored and recomputed.

        Raises:
            TemplateNotFoundError: If the template isn't in the caller's tenant
            ClientNotFoundError: If the client isn't in the tenant
            ValidationError: If the template content is malformed
        """
        template = await self.template_dao.get_by_id_and_tenant(template_id, ctx.tenant_id)
        if template is None:
            raise TemplateNotFoundError(template_id=template_id)
        client = await self._get_client(ctx, client_id)

        try:
            content = TemplateContent.model_validate(template.sections or {})
        except PydanticValidationError as e:
            raise ValidationError(
                message="Template content is invalid",
                template_id=template_id,
                errors=e.errors(include_url=False, include_context=False, include_input=False),
            )
        sections = build_sections(content.sections)

        async with atomic(self.session, "create offer from template"):
            offer = Offer(
                tenant_id=ctx.tenant_id,
                client_id=client.id,
                created_by_id=ctx.user_id,
                offer_number=await self.numbering.allocate(ctx.tenant_id),
                title=title or template.name,
                status=OfferStatus.DRAFT,
                currency=(currency or settings.DEFAULT_CURRENCY).upper(),
                valid_until=default_valid_until(template.validity_days),
                terms_and_conditions=template.terms,
                sections=sections,
            )
            recompute_offer(offer)
            self.session.add(offer)
            await self.session.flush()
            await self.activity.record(
                offer,
                OfferActivityType.CREATED,
                f"Offer {offer.offer_number} created from template {template.name}",
                actor_id=ctx.user_id,
                extra_data={"template_id": template.id},
            )

        return await self._load(ctx, offer.id)

    # =========================================================================
    # Read models
    # =========================================================================

    async def build_document(self, offer: Offer) -> OfferDocument:
        """
        Build the self-contained export model for an offer.

        Every per-line breakdown and total is computed here so renderers
        only format numbers.
        """
        sections = []
        lines = []
        for section in offer.sections:
            articles = []
            for article in section.articles:
                breakdown = calculate_article(article)
                lines.append(breakdown)
                articles.append(
                    DocumentArticle(
                        name=article.name,
                        description=article.description,
                        unit=article.unit,
                        quantity=article.quantity,
                        unit_price=article.unit_price,
                        vat_rate=article.vat_rate,
                        discount_percent=article.discount_percent,
                        discount_fixed=article.discount_fixed,
                        line_total=breakdown.line_total,
                        discount_amount=breakdown.discount_amount,
                        taxable_amount=breakdown.taxable_amount,
                        vat_amount=breakdown.vat_amount,
                        total=breakdown.total,
                    )
                )
            sections.append(
                DocumentSection(
                    title=section.title,
                    description=section.description,
                    articles=articles,
                    total=money_sum(a.total for a in articles),
                )
            )

        totals = aggregate(lines)
        client = offer.client
        signature = offer.signature
        return OfferDocument(
            offer_id=offer.id,
            offer_number=offer.offer_number,
            title=offer.title,
            status=offer.status,
            currency=offer.currency,
            valid_until=offer.valid_until,
            executive_summary=offer.executive_summary,
            terms_and_conditions=offer.terms_and_conditions,
            company_name=await self._tenant_name(offer.tenant_id),
            client=DocumentClient(
                id=client.id,
                company_name=client.company_name,
                email=client.email,
                vat_number=client.vat_number,
                phone=client.phone,
            ),
            sections=sections,
            totals=DocumentTotalsResponse(
                subtotal=totals.subtotal,
                discount_total=totals.discount_total,
                vat_total=totals.vat_total,
                total=totals.total,
            ),
            signed=signature is not None,
            signer_name=signature.signer_name if signature else None,
            signed_at=signature.signed_at if signature else None,
        )

    async def get_document(self, ctx: TenantContext, offer_id: int) -> OfferDocument:
        """Get the export read model of a tenant's offer."""
        offer = await self.get_offer(ctx, offer_id)
        return await self.build_document(offer)

    async def get_activity(
        self, ctx: TenantContext, offer_id: int, skip: int = 0, limit: int = 100
    ) -> List[OfferActivity]:
        """Get an offer's activity log, newest first."""
        await self._load(ctx, offer_id)
        return await self.activity.list_for_offer(offer_id, ctx.tenant_id, skip=skip, limit=limit)
