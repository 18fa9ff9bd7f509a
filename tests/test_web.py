"""
Stockroom — Inventory Web Page Tests
======================================

What:  Server-rendered inventory pages (SERVICE=web) against a real SQLite schema.

What we test:
    ✅ Home redirects to the list page
    ✅ List page renders stored items
    ✅ Blank name → 400 with the form re-rendered and nothing stored
    ✅ Valid form → 303 redirect back to the list (Post/Redirect/Get)
    ✅ Outside development, pages and the HTML error page carry HSTS
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from stockroom.config import settings
from stockroom.main import create_app


class TestInventoryPages:

    @pytest.mark.asyncio
    async def test_home_redirects_to_inventory(self, web_client):
        response = await web_client.get("/")

        assert response.status_code in (302, 307)
        assert response.headers["location"] == "/inventory"

    @pytest.mark.asyncio
    async def test_empty_inventory_page(self, web_client):
        response = await web_client.get("/inventory")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "No items yet." in response.text
        assert "/static/site.css" in response.text

    @pytest.mark.asyncio
    async def test_add_item_redirects_and_lists_it(self, web_client):
        response = await web_client.post(
            "/inventory/add",
            data={"name": "Hex Bolt", "quantity": "12", "price": "0.35"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/inventory"

        page = await web_client.get("/inventory")
        assert "Hex Bolt" in page.text
        assert "0.35" in page.text

    @pytest.mark.asyncio
    async def test_blank_name_rerenders_form_with_400(self, web_client):
        response = await web_client.post(
            "/inventory/add",
            data={"name": "  ", "quantity": "1", "price": "1"},
        )

        assert response.status_code == 400
        assert "Item name is required." in response.text
        assert "No items yet." in response.text

    @pytest.mark.asyncio
    async def test_non_numeric_quantity_rerenders_form(self, web_client):
        response = await web_client.post(
            "/inventory/add",
            data={"name": "Washer", "quantity": "lots", "price": "1"},
        )

        assert response.status_code == 400
        # The submitted value is kept in the form
        assert 'value="Washer"' in response.text

    @pytest.mark.asyncio
    async def test_static_stylesheet_served(self, web_client):
        response = await web_client.get("/static/site.css")
        assert response.status_code == 200


class TestProductionPages:

    @pytest.mark.asyncio
    async def test_pages_carry_hsts(self, db_tables):
        with patch.object(settings, "environment", "production"):
            app = create_app("web")

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/inventory")

        assert response.status_code == 200
        assert response.headers["strict-transport-security"] == "max-age=31536000"

    @pytest.mark.asyncio
    async def test_error_page_carries_hsts(self, db_tables):
        with patch.object(settings, "environment", "production"):
            app = create_app("web")

        failing = AsyncMock(side_effect=RuntimeError("template exploded"))
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with patch("stockroom.routes.web.inventory_service.list_items", failing):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/inventory")

        assert response.status_code == 500
        assert response.headers["strict-transport-security"] == "max-age=31536000"
        assert "Something went wrong." in response.text
        assert "template exploded" not in response.text
