"""
Tests for tenant-scoping enforcement.

WHY: Tenant scoping is CRITICAL for multi-tenant security (OWASP A01: Broken
Access Control). Every read path a service uses must refuse another
tenant's rows, so a guessed ID never leaks an offer, client or version.
"""

import pytest
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.dao.base import BaseDAO
from offercraft.dao.client import ClientDAO
from offercraft.dao.offer import OfferDAO
from offercraft.dao.offer_version import OfferVersionDAO
from offercraft.models.offer import OfferStatus
from offercraft.models.tenant import Tenant

from tests.factories import ClientFactory, OfferFactory


@pytest.mark.asyncio
class TestTenantScopingEnforcement:
    """Test multi-tenancy scoping in the DAOs."""

    async def test_get_by_id_and_tenant(
        self, db_session: AsyncSession, test_tenant, other_tenant, test_customer
    ):
        """Test that a client is only visible to its own tenant."""
        dao = ClientDAO(db_session)

        assert (await dao.get_by_id_and_tenant(test_customer.id, test_tenant.id)).id == test_customer.id
        assert await dao.get_by_id_and_tenant(test_customer.id, other_tenant.id) is None

    async def test_client_list_is_scoped(
        self, db_session: AsyncSession, test_tenant, other_tenant, test_customer
    ):
        await ClientFactory.create(db_session, tenant=other_tenant, company_name="Initech")
        await ClientFactory.create(db_session, tenant=test_tenant, company_name="Aperture")
        dao = ClientDAO(db_session)

        names = [c.company_name for c in await dao.list_for_tenant(test_tenant.id)]

        assert names == ["Aperture", "Globex GmbH"]
        assert await dao.count_for_tenant(other_tenant.id) == 1

    async def test_offer_reads_are_scoped(
        self, db_session: AsyncSession, test_tenant, other_tenant, test_customer
    ):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        dao = OfferDAO(db_session)

        assert await dao.get_with_tree(offer.id, other_tenant.id) is None
        assert await dao.get_for_update(offer.id, other_tenant.id) is None
        assert (await dao.get_with_tree(offer.id, test_tenant.id)).id == offer.id

        offers, total = await dao.list_for_tenant(other_tenant.id)
        assert offers == []
        assert total == 0

    async def test_offer_list_filters(
        self, db_session: AsyncSession, test_tenant, test_customer
    ):
        draft = await OfferFactory.create(db_session, test_tenant, test_customer, title="Brand Refresh")
        await OfferFactory.create(
            db_session, test_tenant, test_customer, title="Hosting", status=OfferStatus.SENT
        )
        dao = OfferDAO(db_session)

        offers, total = await dao.list_for_tenant(test_tenant.id, status=OfferStatus.DRAFT)
        assert total == 1
        assert offers[0].id == draft.id

        offers, total = await dao.list_for_tenant(test_tenant.id, search="brand")
        assert [o.title for o in offers] == ["Brand Refresh"]

        offers, total = await dao.list_for_tenant(test_tenant.id, search=draft.offer_number)
        assert total == 1

    async def test_public_lookup_ignores_tenant(
        self, db_session: AsyncSession, test_tenant, test_customer
    ):
        """Share links carry only the share token."""
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        dao = OfferDAO(db_session)

        assert (await dao.get_by_share_token(offer.share_token)).id == offer.id
        assert await dao.get_by_share_token(str(offer.id)) is None

    async def test_versions_are_scoped(
        self, db_session: AsyncSession, test_tenant, other_tenant, test_customer
    ):
        offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        other_offer = await OfferFactory.create(db_session, test_tenant, test_customer)
        dao = OfferVersionDAO(db_session)
        version = await dao.create_version(
            tenant_id=test_tenant.id,
            offer_id=offer.id,
            version=1,
            payload={"kind": "offer_snapshot"},
            author_id=None,
        )

        assert (await dao.get_for_offer(version.id, offer.id, test_tenant.id)).id == version.id
        assert await dao.get_for_offer(version.id, offer.id, other_tenant.id) is None
        assert await dao.get_for_offer(version.id, other_offer.id, test_tenant.id) is None
        assert await dao.list_for_offer(offer.id, other_tenant.id) == []
        assert await dao.get_next_version_number(offer.id) == 2
        assert await dao.get_next_version_number(other_offer.id) == 1

    async def test_unscoped_model_refuses_tenant_queries(self, db_session: AsyncSession, test_tenant):
        """Tenants themselves have no tenant_id; asking for one is a bug."""
        with pytest.raises(AttributeError):
            await BaseDAO(Tenant, db_session).get_by_id_and_tenant(test_tenant.id, test_tenant.id)

    @pytest.mark.parametrize("collection", ["users", "clients", "offers"])
    async def test_tenant_collections_refuse_lazy_load(
        self, db_session: AsyncSession, test_tenant, test_customer, collection
    ):
        """
        A tenant's rows are only reachable through scoped DAO queries.

        WHY: Walking tenant.offers would load every offer of the tenant
        unfiltered; an unloaded collection raising makes that a loud bug
        instead of an empty list.
        """
        await OfferFactory.create(db_session, test_tenant, test_customer)
        tenant = await db_session.get(Tenant, test_tenant.id)

        with pytest.raises(InvalidRequestError):
            getattr(tenant, collection)
