"""
Offer Version Service Tests.

WHAT: Tests for snapshot creation, listing and restore.

WHY: Restore deletes and rebuilds an offer's whole section tree. These
tests pin the guarantees that make that safe:
- Version numbers are contiguous per offer
- Restoring N and snapshotting again reproduces N's payload exactly
- Every restore is preceded by an auto-backup
- A failing or refused restore changes nothing
"""

import pytest
from decimal import Decimal
from sqlalchemy import update

from offercraft.core.exceptions import (
    InvalidTransitionError,
    OfferNotFoundError,
    OfferVersionNotFoundError,
    ValidationError,
)
from offercraft.dao.offer_version import OfferVersionDAO
from offercraft.models.activity import OfferActivityType
from offercraft.models.offer import Offer, OfferStatus
from offercraft.schemas.offer import OfferUpdate
from offercraft.schemas.version import OfferSnapshot
from offercraft.services.offer_service import OfferService
from offercraft.services.version_service import OfferVersionService, parse_snapshot, snapshot_offer

from tests.factories import OfferFactory, worked_example_article


async def _change_content(db_session, ctx, offer_id: int):
    return await OfferService(db_session).update_offer(
        ctx,
        offer_id,
        OfferUpdate.model_validate(
            {
                "title": "Rewritten",
                "executive_summary": "New pitch",
                "sections": [
                    {
                        "title": "Hosting",
                        "articles": [
                            {"name": "Server", "quantity": "12", "unit_price": "49.90", "vat_rate": "21"}
                        ],
                    }
                ],
            }
        ),
    )


@pytest.fixture
def offer_sections():
    return [
        {
            "title": "Design",
            "articles": [
                {"name": "Wireframes", "quantity": "2", "unit_price": "150.00"},
                {"name": "Mockups", "quantity": "1.5", "unit_price": "99.99", "vat_rate": "21"},
            ],
        },
        {"title": "Development", "articles": [worked_example_article()]},
    ]


@pytest.mark.asyncio
class TestSnapshotPayload:
    """Tests for snapshot_offer / parse_snapshot."""

    async def test_payload_shape(self, db_session, test_tenant, test_customer, offer_sections):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer, sections=offer_sections)

        payload = snapshot_offer(offer).model_dump(mode="json")

        assert payload["kind"] == "offer_snapshot"
        assert payload["schema_version"] == 1
        assert payload["offer"]["title"] == "Website Redesign"
        assert "status" not in payload["offer"]
        assert "valid_until" not in payload["offer"]
        assert [s["title"] for s in payload["sections"]] == ["Design", "Development"]
        assert payload["sections"][0]["articles"][1]["quantity"] == "1.500"
        assert payload["sections"][1]["articles"][0]["total"] == "65.34"

    def test_parse_rejects_foreign_payload(self):
        with pytest.raises(ValidationError):
            parse_snapshot({"kind": "offer_template", "sections": []}, version_id=1)

    def test_parse_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            parse_snapshot(
                {
                    "kind": "offer_snapshot",
                    "schema_version": 1,
                    "offer": {
                        "title": "x",
                        "currency": "EUR",
                        "subtotal": "0",
                        "discount_total": "0",
                        "vat_total": "0",
                        "total": "0",
                    },
                    "sections": [],
                    "status": "ACCEPTED",
                }
            )

    def test_parse_accepts_valid_payload(self):
        snapshot = parse_snapshot(
            {
                "kind": "offer_snapshot",
                "schema_version": 1,
                "offer": {
                    "title": "x",
                    "currency": "EUR",
                    "subtotal": "1",
                    "discount_total": "0",
                    "vat_total": "0",
                    "total": "1",
                },
                "sections": [],
            }
        )
        assert isinstance(snapshot, OfferSnapshot)
        assert snapshot.offer.total == Decimal("1.00")


@pytest.mark.asyncio
class TestCreateAndList:
    """Tests for create_snapshot, list_snapshots and get_snapshot."""

    async def test_versions_are_contiguous(self, db_session, ctx, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        service = OfferVersionService(db_session)

        created = [await service.create_snapshot(ctx, offer.id, note=f"v{i}") for i in range(1, 4)]

        assert [v.version for v in created] == [1, 2, 3]
        listed = await service.list_snapshots(ctx, offer.id)
        assert [v.version for v in listed] == [3, 2, 1]
        assert listed[0].change_note == "v3"
        assert listed[0].author_id == ctx.user_id

    async def test_numbering_is_per_offer(self, db_session, ctx, test_tenant, test_customer):
        first = await OfferFactory.create(db_session, test_tenant, test_customer)
        second = await OfferFactory.create(db_session, test_tenant, test_customer)
        service = OfferVersionService(db_session)

        await service.create_snapshot(ctx, first.id)
        await service.create_snapshot(ctx, first.id)
        version = await service.create_snapshot(ctx, second.id)

        assert version.version == 1

    async def test_snapshot_records_activity(self, db_session, ctx, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)

        await OfferVersionService(db_session).create_snapshot(ctx, offer.id, note="Before call")

        activity = await OfferService(db_session).get_activity(ctx, offer.id)
        assert activity[0].type == OfferActivityType.VERSION_CREATED
        assert activity[0].extra_data == {"version": 1, "note": "Before call"}

    async def test_other_tenant_cannot_list(self, db_session, ctx, other_ctx, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        service = OfferVersionService(db_session)
        await service.create_snapshot(ctx, offer.id)

        with pytest.raises(OfferNotFoundError):
            await service.list_snapshots(other_ctx, offer.id)
        with pytest.raises(OfferNotFoundError):
            await service.create_snapshot(other_ctx, offer.id)

    async def test_version_of_other_offer(self, db_session, ctx, test_tenant, test_customer):
        first = await OfferFactory.create(db_session, test_tenant, test_customer)
        second = await OfferFactory.create(db_session, test_tenant, test_customer)
        service = OfferVersionService(db_session)
        version = await service.create_snapshot(ctx, first.id)

        with pytest.raises(OfferVersionNotFoundError):
            await service.get_snapshot(ctx, second.id, version.id)


@pytest.mark.asyncio
class TestRestore:
    """Tests for restore_snapshot."""

    async def test_restore_round_trip(
        self, db_session, ctx, test_tenant, test_customer, offer_sections
    ):
        """
        Test restore N then snapshot reproduces N.

        WHY: This is the property users rely on when they roll back.
        """
        offer = await OfferFactory.create(db_session, test_tenant, test_customer, sections=offer_sections)
        service = OfferVersionService(db_session)
        original = await service.create_snapshot(ctx, offer.id, note="Original")

        await _change_content(db_session, ctx, offer.id)
        restored = await service.restore_snapshot(ctx, offer.id, original.id)

        assert restored.title == "Website Redesign"
        assert restored.executive_summary is None
        assert [s.title for s in restored.sections] == ["Design", "Development"]
        assert [a.name for a in restored.articles] == ["Wireframes", "Mockups", "Consulting hour"]

        again = await service.create_snapshot(ctx, offer.id)
        assert again.payload == original.payload

    async def test_restore_creates_backup(self, db_session, ctx, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        service = OfferVersionService(db_session)
        original = await service.create_snapshot(ctx, offer.id)
        await _change_content(db_session, ctx, offer.id)

        await service.restore_snapshot(ctx, offer.id, original.id)

        versions = await service.list_snapshots(ctx, offer.id)
        assert [v.version for v in versions] == [2, 1]
        backup = versions[0]
        assert backup.change_note == "Auto-backup before restoring to version 1"
        assert backup.payload["offer"]["title"] == "Rewritten"

        activity = await OfferService(db_session).get_activity(ctx, offer.id)
        assert activity[0].type == OfferActivityType.RESTORED
        assert activity[0].extra_data == {"restored_version": 1, "backup_version": 2}

    async def test_restore_recomputes_totals(self, db_session, ctx, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        service = OfferVersionService(db_session)
        original = await service.create_snapshot(ctx, offer.id)
        await _change_content(db_session, ctx, offer.id)

        restored = await service.restore_snapshot(ctx, offer.id, original.id)

        assert restored.total == Decimal("65.34")
        assert restored.total == sum(a.total for a in restored.articles)

    @pytest.mark.parametrize("status", [OfferStatus.SENT, OfferStatus.ACCEPTED])
    async def test_restore_sent_offer_refused(
        self, db_session, ctx, test_tenant, test_customer, status
    ):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        offer_id = offer.id
        service = OfferVersionService(db_session)
        original = await service.create_snapshot(ctx, offer_id)
        original_id = original.id
        offer.status = status
        await db_session.flush()

        with pytest.raises(InvalidTransitionError):
            await service.restore_snapshot(ctx, offer_id, original_id)

        assert len(await service.list_snapshots(ctx, offer_id)) == 1

    async def test_offer_sent_during_restore_refused(
        self, db_session, ctx, test_tenant, test_customer, monkeypatch
    ):
        """
        Test that editability is checked again once the row is locked.

        WHY: The offer can be sent between the first check and the lock;
        restoring then would change content the client already received.
        """
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        offer_id = offer.id
        service = OfferVersionService(db_session)
        original = await service.create_snapshot(ctx, offer_id)
        original_id = original.id
        get_snapshot = service.get_snapshot

        async def get_snapshot_then_send(*args, **kwargs):
            found = await get_snapshot(*args, **kwargs)
            await db_session.execute(
                update(Offer).where(Offer.id == offer_id).values(status=OfferStatus.SENT)
            )
            return found

        monkeypatch.setattr(service, "get_snapshot", get_snapshot_then_send)

        with pytest.raises(InvalidTransitionError):
            await service.restore_snapshot(ctx, offer_id, original_id)

        assert len(await service.list_snapshots(ctx, offer_id)) == 1

    async def test_malformed_payload_leaves_offer_untouched(
        self, db_session, ctx, test_tenant, test_customer
    ):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        offer_id = offer.id
        broken = await OfferVersionDAO(db_session).create_version(
            tenant_id=test_tenant.id,
            offer_id=offer_id,
            version=1,
            payload={"kind": "offer_snapshot", "schema_version": 1, "sections": "nope"},
            author_id=None,
        )
        service = OfferVersionService(db_session)

        with pytest.raises(ValidationError):
            await service.restore_snapshot(ctx, offer_id, broken.id)

        current = await OfferService(db_session).get_offer(ctx, offer_id)
        assert [a.name for a in current.articles] == ["Consulting hour"]
        assert len(await service.list_snapshots(ctx, offer_id)) == 1

    async def test_failure_mid_restore_rolls_back(
        self, db_session, ctx, test_tenant, test_customer, monkeypatch
    ):
        """
        Test that a failure after the tree was replaced undoes everything.

        WHY: The backup, the deleted sections and the new sections share
        one savepoint; a half-restored offer must never be visible. The
        rollback expires the offer, so only ids captured beforehand are used.
        """
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        offer_id = offer.id
        service = OfferVersionService(db_session)
        original = await service.create_snapshot(ctx, offer_id)
        original_id = original.id
        await _change_content(db_session, ctx, offer_id)

        record = service.activity.record

        async def failing_record(offer, activity_type, *args, **kwargs):
            if activity_type == OfferActivityType.RESTORED:
                raise RuntimeError("activity store unavailable")
            return await record(offer, activity_type, *args, **kwargs)

        monkeypatch.setattr(service.activity, "record", failing_record)

        with pytest.raises(RuntimeError):
            await service.restore_snapshot(ctx, offer_id, original_id)

        current = await OfferService(db_session).get_offer(ctx, offer_id)
        assert current.title == "Rewritten"
        assert [a.name for a in current.articles] == ["Server"]
        assert [v.version for v in await service.list_snapshots(ctx, offer_id)] == [1]

    async def test_restore_unknown_version(self, db_session, ctx, test_tenant, test_customer):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)

        with pytest.raises(OfferVersionNotFoundError):
            await OfferVersionService(db_session).restore_snapshot(ctx, offer.id, 424242)
