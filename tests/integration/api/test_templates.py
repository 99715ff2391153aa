"""
Integration tests for the template library and payment schedule APIs.

WHY: Templates and schedules are tenant data like offers; another tenant's
ids must come back as 404, and money must serialize as exact strings.
"""

import pytest
from httpx import AsyncClient

from tests.factories import ArticleTemplateFactory, worked_example_article


async def _create_offer(client: AsyncClient, headers: dict, client_id: int) -> dict:
    response = await client.post(
        "/api/offers",
        headers=headers,
        json={
            "client_id": client_id,
            "title": "Website Redesign",
            "terms_and_conditions": "Net 14",
            "sections": [{"title": "Development", "articles": [worked_example_article()]}],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
class TestOfferTemplateAPI:
    """Integration tests for /templates/offers."""

    async def test_save_offer_as_template_and_reuse(
        self, client: AsyncClient, auth_headers, test_customer
    ):
        """
        Test the save-as-template round trip.

        WHY: An offer started from a saved template prices like the source.
        """
        offer = await _create_offer(client, auth_headers, test_customer.id)

        response = await client.post(
            "/api/templates/offers",
            headers=auth_headers,
            json={"name": "Website", "category": "Web", "from_offer_id": offer["id"]},
        )
        assert response.status_code == 201
        template = response.json()
        assert template["terms"] == "Net 14"
        assert template["sections"]["kind"] == "offer_template"

        response = await client.post(
            "/api/offers/from-template",
            headers=auth_headers,
            json={"template_id": template["id"], "client_id": test_customer.id},
        )
        assert response.status_code == 201
        assert response.json()["total"] == "65.34"

        response = await client.get("/api/templates/offers?category=Web", headers=auth_headers)
        assert response.status_code == 200
        listing = response.json()
        assert [t["id"] for t in listing["templates"]] == [template["id"]]
        assert listing["categories"] == ["Web"]

    async def test_update_and_delete(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/templates/offers",
            headers=auth_headers,
            json={"name": "Retainer", "sections": []},
        )
        template_id = response.json()["id"]

        response = await client.patch(
            f"/api/templates/offers/{template_id}",
            headers=auth_headers,
            json={"validity_days": 60},
        )
        assert response.status_code == 200
        assert response.json()["validity_days"] == 60

        response = await client.delete(f"/api/templates/offers/{template_id}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/templates/offers/{template_id}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_other_tenant_gets_404(
        self, client: AsyncClient, auth_headers, other_auth_headers, test_customer
    ):
        offer = await _create_offer(client, auth_headers, test_customer.id)
        response = await client.post(
            "/api/templates/offers",
            headers=auth_headers,
            json={"name": "Website", "sections": []},
        )
        template_id = response.json()["id"]

        response = await client.get(
            f"/api/templates/offers/{template_id}", headers=other_auth_headers
        )
        assert response.status_code == 404

        response = await client.post(
            "/api/templates/offers",
            headers=other_auth_headers,
            json={"name": "Stolen", "from_offer_id": offer["id"]},
        )
        assert response.status_code == 404


@pytest.mark.asyncio
class TestArticleCatalogAPI:
    """Integration tests for /templates/articles."""

    async def test_create_list_delete(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/templates/articles",
            headers=auth_headers,
            json={"name": "Hosting", "category": "Ops", "unit": "month", "unit_price": "19.9"},
        )
        assert response.status_code == 201
        entry = response.json()
        assert entry["unit_price"] == "19.90"

        response = await client.delete(f"/api/templates/articles/{entry['id']}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get("/api/templates/articles", headers=auth_headers)
        assert response.json()["templates"] == []

        response = await client.get(f"/api/templates/articles/{entry['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False

    async def test_other_tenant_gets_404(self, client: AsyncClient, db_session, other_auth_headers, test_tenant):
        entry = await ArticleTemplateFactory.create(db_session, test_tenant)

        response = await client.patch(
            f"/api/templates/articles/{entry.id}",
            headers=other_auth_headers,
            json={"unit_price": "1.00"},
        )
        assert response.status_code == 404


@pytest.mark.asyncio
class TestPaymentScheduleAPI:
    """Integration tests for /offers/{offer_id}/payments."""

    async def test_schedule_lifecycle(self, client: AsyncClient, auth_headers, test_customer):
        offer = await _create_offer(client, auth_headers, test_customer.id)
        url = f"/api/offers/{offer['id']}/payments"

        response = await client.post(url, headers=auth_headers, json={"name": "Deposit", "percentage": "30"})
        assert response.status_code == 201
        deposit = response.json()
        assert deposit["amount_due"] == "19.60"
        assert deposit["sort_order"] == 1

        response = await client.post(url, headers=auth_headers, json={"name": "Final", "percentage": "80"})
        assert response.status_code == 400
        assert response.json()["kind"] == "validation_error"

        response = await client.patch(
            f"{url}/{deposit['id']}", headers=auth_headers, json={"status": "INVOICED"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "INVOICED"

        response = await client.get(url, headers=auth_headers)
        schedule = response.json()
        assert schedule["offer_total"] == "65.34"
        assert schedule["scheduled_percentage"] == "30.00"
        assert [m["name"] for m in schedule["milestones"]] == ["Deposit"]

        response = await client.delete(f"{url}/{deposit['id']}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.delete(f"{url}/{deposit['id']}", headers=auth_headers)
        assert response.status_code == 404

    async def test_other_tenant_gets_404(
        self, client: AsyncClient, auth_headers, other_auth_headers, test_customer
    ):
        offer = await _create_offer(client, auth_headers, test_customer.id)

        response = await client.get(
            f"/api/offers/{offer['id']}/payments", headers=other_auth_headers
        )
        assert response.status_code == 404
