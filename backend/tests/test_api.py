"""HTTP-level tests for the v1 API using httpx.ASGITransport."""

import json
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio
from jsonschema import validate

from tisorah_admin.config import settings
from tisorah_admin.dependencies import get_current_admin, get_db, get_storage
from tisorah_admin.main import app
from tisorah_admin.services.auth_service import create_access_token, hash_password

SUCCESS_SCHEMA = {
    "type": "object",
    "required": ["status", "data"],
    "properties": {
        "status": {"const": "success"},
        "meta": {
            "type": ["object", "null"],
            "properties": {
                "page": {"type": "integer"},
                "limit": {"type": "integer"},
                "total": {"type": "integer"},
                "total_pages": {"type": "integer"},
                "has_more": {"type": "boolean"},
            },
        },
    },
}

ERROR_SCHEMA = {
    "type": "object",
    "required": ["status", "error"],
    "properties": {
        "status": {"const": "error"},
        "error": {
            "type": "object",
            "required": ["code", "message"],
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "field": {"type": ["string", "null"]},
            },
        },
    },
}


# ============================================================================
# FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def client(session_factory, mock_storage):
    """API client with the test database, mocked storage and auth bypassed."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: mock_storage
    app.dependency_overrides[get_current_admin] = lambda: settings.ADMIN_USERNAME

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anon_client(session_factory):
    """API client without the auth override."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def product_data(categories: dict, **overrides) -> str:
    data = {
        "name": "Corporate Hamper",
        "description": "Chocolates and cards",
        "price_min": "1000",
        "price_max": "1500",
        "moq": 20,
        "main_category": str(categories["gourmet"].id),
        "primary_category": str(categories["chocolates"].id),
    }
    data.update(overrides)
    return json.dumps(data)


# ============================================================================
# TESTS: AUTH
# ============================================================================

class TestAuthEndpoints:
    """Tests for login and route protection."""

    async def test_protected_route_requires_token(self, anon_client):
        response = await anon_client.get("/api/v1/products")

        assert response.status_code == 401

    async def test_token_grants_access(self, anon_client, sample_categories):
        token = create_access_token(settings.ADMIN_USERNAME)

        response = await anon_client.get(
            "/api/v1/categories", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert len(response.json()["data"]) == 6

    async def test_login(self, anon_client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", hash_password("s3cret"))

        ok = await anon_client.post(
            "/api/v1/auth/login", json={"username": settings.ADMIN_USERNAME, "password": "s3cret"}
        )
        bad = await anon_client.post(
            "/api/v1/auth/login", json={"username": settings.ADMIN_USERNAME, "password": "nope"}
        )

        assert ok.status_code == 200
        validate(instance=ok.json(), schema=SUCCESS_SCHEMA)
        assert ok.json()["data"]["token_type"] == "bearer"
        assert bad.status_code == 401

    async def test_health_is_public(self, anon_client):
        response = await anon_client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["database"] == "ok"


# ============================================================================
# TESTS: PRODUCTS
# ============================================================================

class TestProductEndpoints:
    """Tests for the product endpoints."""

    async def test_list_products_paginates(self, client, catalog_products):
        response = await client.get("/api/v1/products", params={"limit": 2, "sort_by": "price", "sort_order": "asc"})

        body = response.json()
        assert response.status_code == 200
        validate(instance=body, schema=SUCCESS_SCHEMA)
        assert [p["name"] for p in body["data"]] == ["Almond Box", "Earl Grey Tin"]
        assert body["meta"]["total"] == 5
        assert body["meta"]["total_pages"] == 3
        assert body["meta"]["has_more"] is True

        last = await client.get("/api/v1/products", params={"limit": 2, "page": 3})
        assert last.json()["meta"]["has_more"] is False

    async def test_list_products_search_and_category(self, client, catalog_products, sample_categories):
        response = await client.get(
            "/api/v1/products",
            params={"search": "chocolate", "category": str(sample_categories["gourmet"].id)},
        )

        names = {p["name"] for p in response.json()["data"]}
        assert names == {"Cocoa Truffles", "Earl Grey Tin"}

    async def test_list_products_rejects_unknown_sort(self, client):
        response = await client.get("/api/v1/products", params={"sort_by": "rating"})

        assert response.status_code == 422

    async def test_get_product(self, client, sample_product):
        response = await client.get(f"/api/v1/products/{sample_product.id}")

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["name"] == "Truffle Hamper"
        assert data["primary_category_data"]["slug"] == "chocolates"

    async def test_get_missing_product_is_404(self, client):
        response = await client.get(f"/api/v1/products/{uuid4()}")

        assert response.status_code == 404
        validate(instance=response.json(), schema=ERROR_SCHEMA)
        assert response.json()["error"]["code"] == "not_found"

    async def test_create_product_with_images(self, client, sample_categories, mock_storage):
        response = await client.post(
            "/api/v1/products",
            data={"data": product_data(sample_categories), "display_index": "1"},
            files=[
                ("images", ("front.jpg", b"front-bytes", "image/jpeg")),
                ("images", ("back.jpg", b"back-bytes", "image/jpeg")),
            ],
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["images"][0].endswith("/front.jpg")
        assert data["display_image"].endswith("/back.jpg")
        assert data["hover_image"] is None
        assert data["price"] == "1000.00" or float(data["price"]) == 1000.0
        assert data["main_category_data"]["slug"] == "gourmet"
        mock_storage.upload_many.assert_awaited_once()

    async def test_create_product_validation_error(self, client, sample_categories, mock_storage):
        response = await client.post(
            "/api/v1/products",
            data={"data": product_data(sample_categories, main_category=None)},
            files=[("images", ("front.jpg", b"front-bytes", "image/jpeg"))],
        )

        assert response.status_code == 422
        validate(instance=response.json(), schema=ERROR_SCHEMA)
        assert response.json()["error"]["field"] == "main_category"
        mock_storage.upload_many.assert_not_awaited()

    async def test_create_product_role_conflict(self, client, sample_categories):
        response = await client.post(
            "/api/v1/products",
            data={"data": product_data(sample_categories), "display_index": "0", "hover_index": "0"},
            files=[("images", ("front.jpg", b"front-bytes", "image/jpeg"))],
        )

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "same image cannot be used for both roles"

    async def test_create_product_role_index_out_of_range(self, client, sample_categories, mock_storage):
        response = await client.post(
            "/api/v1/products",
            data={"data": product_data(sample_categories), "display_index": "3"},
            files=[("images", ("front.jpg", b"front-bytes", "image/jpeg"))],
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "images"
        mock_storage.upload_many.assert_not_awaited()

    async def test_create_product_bad_json(self, client):
        response = await client.post("/api/v1/products", data={"data": "{not json"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    async def test_update_product_cascades_categories(self, client, sample_product, sample_categories):
        response = await client.patch(
            f"/api/v1/products/{sample_product.id}",
            json={"main_category": str(sample_categories["tech"].id), "moq": 5},
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["main_category"] == str(sample_categories["tech"].id)
        assert data["primary_category"] is None
        assert data["secondary_category"] is None
        assert data["moq"] == 5
        assert data["name"] == "Truffle Hamper"

    async def test_delete_product(self, client, sample_product):
        response = await client.delete(f"/api/v1/products/{sample_product.id}")
        again = await client.get(f"/api/v1/products/{sample_product.id}")

        assert response.status_code == 200
        assert again.status_code == 404

    async def test_gallery_endpoints(self, client, sample_product, mock_storage):
        added = await client.post(
            f"/api/v1/products/{sample_product.id}/images",
            files=[("images", ("extra.jpg", b"extra", "image/jpeg"))],
        )
        assert added.status_code == 200
        images = added.json()["data"]["images"]
        assert len(images) == 4

        roles = await client.put(
            f"/api/v1/products/{sample_product.id}/image-roles",
            json={"display_index": 3, "hover_index": 0},
        )
        assert roles.json()["data"]["display_image"] == images[3]
        assert roles.json()["data"]["hover_image"] == images[0]

        removed = await client.delete(
            f"/api/v1/products/{sample_product.id}/images", params={"url": images[3]}
        )
        assert removed.status_code == 200
        assert removed.json()["data"]["display_image"] is None
        mock_storage.delete.assert_awaited_once_with(images[3])

    async def test_image_role_out_of_range(self, client, sample_product):
        response = await client.put(
            f"/api/v1/products/{sample_product.id}/image-roles",
            json={"display_index": 9, "hover_index": None},
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "image_roles"


# ============================================================================
# TESTS: CATEGORIES, QUOTES, DASHBOARD
# ============================================================================

class TestCatalogSupportEndpoints:
    """Tests for category options, quotes and dashboard stats."""

    async def test_category_options(self, client, sample_categories):
        response = await client.get(
            "/api/v1/categories/options", params={"main": str(sample_categories["tech"].id)}
        )

        data = response.json()["data"]
        assert [o["name"] for o in data["main"]] == ["Gourmet", "Tech"]
        assert [o["name"] for o in data["primary"]] == ["Gadgets"]
        assert data["secondary"] == []
        assert data["category_type"] == "non_edible"
        assert list(data["main_groups"]) == ["Edible Gifts", "Non-Edible Gifts"]

    async def test_quote_detail_and_status(self, client, sample_quotes):
        quote_id = sample_quotes[0].id

        detail = await client.get(f"/api/v1/quotes/{quote_id}")
        products = detail.json()["data"]["products"]
        assert [(p["product"]["name"], p["quantity"]) for p in products] == [
            ("Almond Box", None),
            ("Cocoa Truffles", 25),
        ]

        updated = await client.patch(f"/api/v1/quotes/{quote_id}/status", json={"status": "approved"})
        assert updated.json()["data"]["status"] == "approved"

        invalid = await client.patch(f"/api/v1/quotes/{quote_id}/status", json={"status": "lost"})
        assert invalid.status_code == 422

    async def test_list_quotes_filter(self, client, sample_quotes):
        response = await client.get("/api/v1/quotes", params={"status": "pending"})

        assert [q["name"] for q in response.json()["data"]] == ["Asha"]

    async def test_recent_quotes(self, client, sample_quotes):
        response = await client.get("/api/v1/quotes", params={"limit": 2})

        assert [q["name"] for q in response.json()["data"]] == ["Dana", "Chen"]

    async def test_top_products(self, client, catalog_products):
        response = await client.patch(f"/api/v1/products/{catalog_products[1].id}", json={"featured": True})
        assert response.status_code == 200

        top = await client.get("/api/v1/dashboard/top-products", params={"limit": 2})

        assert top.status_code == 200
        validate(instance=top.json(), schema=SUCCESS_SCHEMA)
        assert [p["name"] for p in top.json()["data"]] == ["Bluetooth Speaker", "Earl Grey Tin"]

    async def test_dashboard_stats(self, client, sample_quotes):
        response = await client.get("/api/v1/dashboard/stats")

        assert response.json()["data"] == {
            "total_products": 5,
            "total_categories": 6,
            "total_quotes": 4,
            "pending_quotes": 3,
        }
