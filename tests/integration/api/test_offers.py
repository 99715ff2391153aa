"""
Integration tests for the offer API.

WHAT: Tests for offer CRUD, the send/view/sign lifecycle, versions and
clients via the HTTP API.

WHY: These tests pin the HTTP contract:
1. Money is returned as exact decimal strings
2. Tenant scoping turns other tenants' offers into 404s (OWASP A01)
3. Errors share one JSON shape with a machine-readable kind
4. The public share link works without logging in and never shows drafts

HOW: Uses pytest-asyncio with AsyncClient for HTTP testing.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import ClientFactory, OfferTemplateFactory, worked_example_article


SIGNATURE = {
    "signer_name": "Jane Buyer",
    "signer_email": "jane@globex.example.com",
    "signature_data": "data:image/png;base64,iVBORw0KGgo=",
}


def _offer_body(client_id: int, **overrides) -> dict:
    body = {
        "client_id": client_id,
        "title": "Website Redesign",
        "sections": [
            {"title": "Development", "articles": [worked_example_article()]},
        ],
    }
    body.update(overrides)
    return body


async def _create_offer(client: AsyncClient, headers: dict, client_id: int, **overrides) -> dict:
    response = await client.post("/api/offers", headers=headers, json=_offer_body(client_id, **overrides))
    assert response.status_code == 201
    return response.json()


async def _send_offer(client: AsyncClient, headers: dict, offer_id: int) -> dict:
    response = await client.post(f"/api/offers/{offer_id}/send", headers=headers, json={})
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
class TestOfferCreate:
    """Integration tests for offer creation."""

    async def test_create_offer(self, client: AsyncClient, auth_headers, test_customer):
        """
        Test creating an offer.

        WHY: Totals are computed server-side and serialized exactly.
        """
        response = await client.post(
            "/api/offers", headers=auth_headers, json=_offer_body(test_customer.id)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "DRAFT"
        assert data["offer_number"].startswith("OFR-")
        assert data["subtotal"] == "60.00"
        assert data["discount_total"] == "6.00"
        assert data["vat_total"] == "11.34"
        assert data["total"] == "65.34"
        article = data["sections"][0]["articles"][0]
        assert article["quantity"] == "3.000"
        assert article["total"] == "65.34"

    async def test_create_requires_token(self, client: AsyncClient, test_customer):
        response = await client.post("/api/offers", json=_offer_body(test_customer.id))

        assert response.status_code == 401
        assert response.json()["kind"] == "authentication_error"

    async def test_create_rejects_invalid_token(self, client: AsyncClient, test_customer):
        response = await client.post(
            "/api/offers",
            headers={"Authorization": "Bearer not-a-token"},
            json=_offer_body(test_customer.id),
        )

        assert response.status_code == 401

    async def test_invalid_body(self, client: AsyncClient, auth_headers, test_customer):
        """Test that a negative price fails request validation."""
        body = _offer_body(test_customer.id)
        body["sections"][0]["articles"][0]["unit_price"] = "-5"

        response = await client.post("/api/offers", headers=auth_headers, json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "validation_error"
        assert any(e["field"].endswith("unit_price") for e in data["details"]["errors"])

    async def test_foreign_client_rejected(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers, other_tenant
    ):
        """Test that an offer can't be addressed to another tenant's client."""
        foreign = await ClientFactory.create(db_session, tenant=other_tenant, company_name="Initech")

        response = await client.post("/api/offers", headers=auth_headers, json=_offer_body(foreign.id))

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_create_from_template(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers, test_tenant, test_customer
    ):
        template = await OfferTemplateFactory.create(db_session, tenant=test_tenant)

        response = await client.post(
            "/api/offers/from-template",
            headers=auth_headers,
            json={"template_id": template.id, "client_id": test_customer.id},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Standard Retainer"
        assert data["total"] == "968.00"
        assert data["terms_and_conditions"] == "Payment within 30 days."


@pytest.mark.asyncio
class TestOfferReadAndUpdate:
    """Integration tests for reading, listing and editing offers."""

    async def test_get_and_list(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)
        await _create_offer(client, auth_headers, test_customer.id, title="Hosting Plan")

        response = await client.get(f"/api/offers/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["offer_number"] == created["offer_number"]

        response = await client.get("/api/offers", headers=auth_headers, params={"search": "hosting"})
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Hosting Plan"

        response = await client.get("/api/offers", headers=auth_headers, params={"status": "DRAFT"})
        assert response.json()["total"] == 2

    async def test_other_tenant_gets_404(
        self, client: AsyncClient, auth_headers, other_auth_headers, test_customer
    ):
        """
        Test cross-tenant access.

        WHY: Another tenant's offer must be indistinguishable from a
        missing one.
        """
        created = await _create_offer(client, auth_headers, test_customer.id)

        for method, path in (
            ("GET", f"/api/offers/{created['id']}"),
            ("GET", f"/api/offers/{created['id']}/versions"),
            ("GET", f"/api/offers/{created['id']}/document"),
        ):
            response = await client.request(method, path, headers=other_auth_headers)
            assert response.status_code == 404

        response = await client.patch(
            f"/api/offers/{created['id']}", headers=other_auth_headers, json={"title": "Mine now"}
        )
        assert response.status_code == 404

        listing = await client.get("/api/offers", headers=other_auth_headers)
        assert listing.json()["total"] == 0

    async def test_update_recomputes(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)

        response = await client.patch(
            f"/api/offers/{created['id']}",
            headers=auth_headers,
            json={
                "sections": [
                    {
                        "title": "Hosting",
                        "articles": [{"name": "Server", "quantity": "2", "unit_price": "10.00"}],
                    }
                ]
            },
        )

        assert response.status_code == 200
        assert response.json()["total"] == "20.00"

    async def test_sent_offer_is_locked(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)
        await _send_offer(client, auth_headers, created["id"])

        response = await client.patch(
            f"/api/offers/{created['id']}", headers=auth_headers, json={"title": "Late change"}
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "invalid_transition"

    async def test_approval_round_trip(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)

        response = await client.post(f"/api/offers/{created['id']}/submit", headers=auth_headers)
        assert response.json()["status"] == "PENDING_APPROVAL"

        response = await client.post(f"/api/offers/{created['id']}/return-to-draft", headers=auth_headers)
        assert response.json()["status"] == "DRAFT"

    async def test_duplicate(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)

        response = await client.post(
            f"/api/offers/{created['id']}/duplicate", headers=auth_headers, json={}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] != created["id"]
        assert data["offer_number"] != created["offer_number"]
        assert data["status"] == "DRAFT"
        assert data["total"] == created["total"]


@pytest.mark.asyncio
class TestOfferLifecycle:
    """Integration tests for send, public view and signing."""

    async def test_send_view_sign(self, client: AsyncClient, auth_headers, test_customer, mock_email):
        created = await _create_offer(client, auth_headers, test_customer.id)
        offer_id = created["id"]
        token = created["share_token"]

        sent = await _send_offer(client, auth_headers, offer_id)
        assert sent["offer"]["status"] == "SENT"
        assert sent["recipient"] == "buyer@globex.example.com"
        assert sent["email_sent"] is True
        assert sent["share_link"].endswith(f"/shared/offers/{token}")
        assert len(mock_email.sent_emails) == 1

        response = await client.get(f"/api/public/offers/{token}")
        assert response.status_code == 200
        document = response.json()
        assert document["status"] == "VIEWED"
        assert document["totals"]["total"] == "65.34"

        response = await client.get(f"/api/public/offers/{token}/signature")
        assert response.json()["signed"] is False

        response = await client.post(
            f"/api/public/offers/{token}/signature",
            json=SIGNATURE,
            headers={"X-Forwarded-For": "203.0.113.7", "User-Agent": "pytest"},
        )
        assert response.status_code == 201
        assert response.json()["signer_name"] == "Jane Buyer"

        response = await client.get(f"/api/offers/{offer_id}", headers=auth_headers)
        assert response.json()["status"] == "ACCEPTED"

        response = await client.post(f"/api/public/offers/{token}/signature", json=SIGNATURE)
        assert response.status_code == 409
        assert response.json()["kind"] == "conflict"

        response = await client.get(f"/api/offers/{offer_id}/activity", headers=auth_headers)
        types = [a["type"] for a in response.json()]
        assert types[0] == "SIGNED"
        assert "SENT" in types
        assert "VIEWED" in types

    async def test_public_reject(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)
        await _send_offer(client, auth_headers, created["id"])
        public_url = f"/api/public/offers/{created['share_token']}"

        response = await client.post(f"{public_url}/reject", json={"reason": "Over budget"})

        assert response.status_code == 200
        assert response.json()["status"] == "REJECTED"

        response = await client.post(f"{public_url}/signature", json=SIGNATURE)
        assert response.status_code == 409

    async def test_draft_not_public(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)
        public_url = f"/api/public/offers/{created['share_token']}"

        response = await client.get(f"{public_url}/signature")
        assert response.status_code == 404

        response = await client.post(f"{public_url}/signature", json=SIGNATURE)
        assert response.status_code == 409

    async def test_offer_id_is_not_a_share_link(
        self, client: AsyncClient, auth_headers, test_customer
    ):
        """Sequential IDs are guessable; only the share token opens the offer."""
        created = await _create_offer(client, auth_headers, test_customer.id)
        await _send_offer(client, auth_headers, created["id"])

        response = await client.get(f"/api/public/offers/{created['id']}")
        assert response.status_code == 404

        response = await client.post(f"/api/public/offers/{created['id']}/signature", json=SIGNATURE)
        assert response.status_code == 404

        response = await client.get(f"/api/offers/{created['id']}", headers=auth_headers)
        assert response.json()["status"] == "SENT"

    async def test_sign_requires_fields(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)
        await _send_offer(client, auth_headers, created["id"])

        response = await client.post(
            f"/api/public/offers/{created['share_token']}/signature",
            json={"signer_name": "Jane", "signer_email": "jane@globex.example.com"},
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestVersionsApi:
    """Integration tests for version endpoints."""

    async def test_snapshot_and_restore(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)
        base = f"/api/offers/{created['id']}/versions"

        response = await client.post(base, headers=auth_headers, json={"note": "First draft"})
        assert response.status_code == 201
        first = response.json()
        assert first["version"] == 1

        await client.patch(
            f"/api/offers/{created['id']}",
            headers=auth_headers,
            json={"title": "Rewritten", "sections": []},
        )

        response = await client.get(f"{base}/{first['id']}", headers=auth_headers)
        assert response.json()["payload"]["offer"]["title"] == "Website Redesign"

        response = await client.post(f"{base}/{first['id']}/restore", headers=auth_headers)
        assert response.status_code == 200
        restored = response.json()
        assert restored["title"] == "Website Redesign"
        assert restored["total"] == "65.34"

        response = await client.get(base, headers=auth_headers)
        data = response.json()
        assert data["total"] == 2
        assert data["items"][0]["change_note"] == "Auto-backup before restoring to version 1"

    async def test_unknown_version(self, client: AsyncClient, auth_headers, test_customer):
        created = await _create_offer(client, auth_headers, test_customer.id)

        response = await client.get(f"/api/offers/{created['id']}/versions/9999", headers=auth_headers)

        assert response.status_code == 404


@pytest.mark.asyncio
class TestClientsApi:
    """Integration tests for client endpoints."""

    async def test_create_and_list(self, client: AsyncClient, auth_headers, other_auth_headers):
        response = await client.post(
            "/api/clients",
            headers=auth_headers,
            json={"company_name": "Umbrella Corp", "email": "procurement@umbrella.example.com"},
        )

        assert response.status_code == 201
        assert response.json()["status"] == "LEAD"

        response = await client.get("/api/clients", headers=auth_headers)
        assert [c["company_name"] for c in response.json()] == ["Umbrella Corp"]

        response = await client.get("/api/clients", headers=other_auth_headers)
        assert response.json() == []

    async def test_invalid_email(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/clients", headers=auth_headers, json={"company_name": "X", "email": "not-an-email"}
        )

        assert response.status_code == 400
