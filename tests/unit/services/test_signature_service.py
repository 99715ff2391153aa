"""
Signature Service Tests.

WHY: A signature turns an offer into an accepted contract. These tests
pin that an offer is signed at most once, only while it is open, and that
signing moves it to ACCEPTED in the same step.
"""

import pytest
from datetime import date, timedelta

from offercraft.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    OfferNotFoundError,
    ValidationError,
)
from offercraft.dao.signature import SignatureDAO
from offercraft.models.activity import OfferActivityType
from offercraft.models.offer import OfferStatus
from offercraft.models.signature import Signature
from offercraft.services.offer_service import OfferService
from offercraft.services.signature_service import SignatureService

from tests.factories import OfferFactory


SIGNATURE_PNG = "data:image/png;base64,iVBORw0KGgo="


async def _sign(service: SignatureService, share_token: str, name: str = "Jane Buyer"):
    return await service.create_signature(
        share_token,
        signer_name=name,
        signer_email="jane@globex.example.com",
        signature_data=SIGNATURE_PNG,
        ip_address="203.0.113.7",
        user_agent="Mozilla/5.0",
    )


@pytest.mark.asyncio
class TestCreateSignature:
    """Tests for create_signature."""

    @pytest.mark.parametrize("status", [OfferStatus.SENT, OfferStatus.VIEWED])
    async def test_sign_accepts_offer(self, db_session, ctx, test_tenant, test_customer, status):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer, status=status)

        signature = await _sign(SignatureService(db_session), offer.share_token)

        assert signature.offer_id == offer.id
        assert signature.ip_address == "203.0.113.7"
        assert signature.user_agent == "Mozilla/5.0"

        accepted = await OfferService(db_session).get_offer(ctx, offer.id)
        assert accepted.status == OfferStatus.ACCEPTED
        assert accepted.accepted_at == signature.signed_at

        activity = await OfferService(db_session).get_activity(ctx, offer.id)
        assert activity[0].type == OfferActivityType.SIGNED
        assert activity[0].extra_data["from_status"] == status.value
        assert activity[0].extra_data["to_status"] == "ACCEPTED"

    async def test_second_signature_conflicts(self, db_session, test_tenant, test_customer):
        offer = await OfferFactory.create(
            db_session, test_tenant, test_customer, status=OfferStatus.SENT
        )
        service = SignatureService(db_session)
        first = await _sign(service, offer.share_token, name="Jane Buyer")

        with pytest.raises(ConflictError):
            await _sign(service, offer.share_token, name="Someone Else")

        stored = await SignatureDAO(db_session).get_for_offer(offer.id)
        assert stored.id == first.id
        assert stored.signer_name == "Jane Buyer"

    async def test_signature_landing_during_validation_conflicts(
        self, db_session, test_tenant, test_customer, monkeypatch
    ):
        """
        Another signer finishing between the first check and the insert.

        WHY: The first check reads an unlocked snapshot; the check repeated
        under the row lock must see the committed signature and refuse.
        """
        offer = await OfferFactory.create(
            db_session, test_tenant, test_customer, status=OfferStatus.SENT
        )
        offer_id = offer.id
        service = SignatureService(db_session)
        load_public = service.offers.load_public

        async def load_then_other_signer(share_token):
            loaded = await load_public(share_token)
            db_session.add(
                Signature(
                    offer_id=offer_id,
                    signer_name="First Signer",
                    signer_email="first@globex.example.com",
                    signature_data=SIGNATURE_PNG,
                )
            )
            await db_session.flush()
            return loaded

        monkeypatch.setattr(service.offers, "load_public", load_then_other_signer)

        with pytest.raises(ConflictError):
            await _sign(service, offer.share_token)

        stored = await SignatureDAO(db_session).get_for_offer(offer_id)
        assert stored.signer_name == "First Signer"

    async def test_draft_cannot_be_signed(self, db_session, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)

        with pytest.raises(InvalidTransitionError):
            await _sign(SignatureService(db_session), offer.share_token)

        assert await SignatureDAO(db_session).get_for_offer(offer.id) is None

    async def test_expired_offer_cannot_be_signed(self, db_session, test_tenant, test_customer):
        offer = await OfferFactory.create(
            db_session,
            test_tenant,
            test_customer,
            status=OfferStatus.SENT,
            valid_until=date.today() - timedelta(days=1),
        )

        with pytest.raises(InvalidTransitionError) as exc_info:
            await _sign(SignatureService(db_session), offer.share_token)

        assert exc_info.value.context["current_state"] == "EXPIRED"

    @pytest.mark.parametrize("field", ["signer_name", "signer_email", "signature_data"])
    async def test_blank_fields_rejected(self, db_session, test_tenant, test_customer, field):
        offer = await OfferFactory.create(
            db_session, test_tenant, test_customer, status=OfferStatus.SENT
        )
        data = {
            "signer_name": "Jane",
            "signer_email": "jane@globex.example.com",
            "signature_data": SIGNATURE_PNG,
        }
        data[field] = "   "

        with pytest.raises(ValidationError) as exc_info:
            await SignatureService(db_session).create_signature(offer.share_token, **data)

        assert exc_info.value.message == "Missing required signature data"

    async def test_unknown_offer(self, db_session):
        with pytest.raises(OfferNotFoundError):
            await _sign(SignatureService(db_session), "no-such-share-token")


@pytest.mark.asyncio
class TestSignatureStatus:
    """Tests for get_signature_status."""

    async def test_unsigned(self, db_session, test_tenant, test_customer):
        offer = await OfferFactory.create(
            db_session, test_tenant, test_customer, status=OfferStatus.SENT
        )

        result = await SignatureService(db_session).get_signature_status(offer.share_token)

        assert result.signed is False
        assert result.status == OfferStatus.SENT
        assert result.offer_number == offer.offer_number

    async def test_signed(self, db_session, test_tenant, test_customer):
        offer = await OfferFactory.create(
            db_session, test_tenant, test_customer, status=OfferStatus.SENT
        )
        service = SignatureService(db_session)
        await _sign(service, offer.share_token)

        result = await service.get_signature_status(offer.share_token)

        assert result.signed is True
        assert result.status == OfferStatus.ACCEPTED
        assert result.signer_name == "Jane Buyer"

    async def test_draft_hidden(self, db_session, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)

        with pytest.raises(OfferNotFoundError):
            await SignatureService(db_session).get_signature_status(offer.share_token)
