import asyncio

import httpx
import pytest
import respx

from storecatalog.api import main
from storecatalog.api.main import app, get_manager, lifespan
from storecatalog.ingest import load_collections
from storecatalog.logic.manager import CatalogManager
from conftest import API_URL, load_fixture


@pytest.fixture()
def manager(api_client):
    manager = CatalogManager(api_client, reload_delay=0.01)
    app.dependency_overrides[get_manager] = lambda: manager
    yield manager
    app.dependency_overrides.clear()


def api() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://explorer.test")


def test_collections_registry():
    collections = load_collections()
    assert set(collections) == {"brands", "categories", "products"}
    assert collections["products"].endpoint == "/products"
    assert collections["products"].params == {"includeBrand": "true", "includeCategories": "true"}
    assert collections["brands"].params == {}


@pytest.mark.asyncio
async def test_reload_then_read_catalog(manager):
    async with respx.mock(base_url=API_URL) as router:
        router.get("/brands").mock(return_value=httpx.Response(200, json=load_fixture("core/brands.json")))
        router.get("/categories").mock(return_value=httpx.Response(200, json=load_fixture("core/categories.json")))
        router.get("/products").mock(return_value=httpx.Response(200, json=load_fixture("core/products.json")))
        async with api() as client:
            reload = await client.post("/catalog/reload")
            catalog = await client.get("/catalog")
    assert reload.json() == {"status": "ok"}
    body = catalog.json()
    assert body["loading"] is False
    assert [b["id"] for b in body["brands"]] == ["b1", "b2"]
    assert body["brands"][0]["parent_category_id"] == "c1"
    assert {p["id"]: p["brand_id"] for p in body["products"]} == {"p1": "b1", "p2": "b2", "p3": None}


@pytest.mark.asyncio
async def test_failed_reload_is_bad_gateway(manager):
    async with respx.mock(base_url=API_URL, assert_all_called=False) as router:
        router.get("/brands").mock(return_value=httpx.Response(500, json={"message": "down"}))
        router.get("/categories").mock(return_value=httpx.Response(200, json=[]))
        router.get("/products").mock(return_value=httpx.Response(200, json=[]))
        async with api() as client:
            response = await client.post("/catalog/reload")
        await asyncio.sleep(0.01)
    assert response.status_code == 502


@pytest.mark.asyncio
async def test_create_category_route(manager):
    async with respx.mock(base_url=API_URL) as router:
        router.post("/categories").mock(return_value=httpx.Response(201, json={"id": "c7", "name": "Consoles"}))
        async with api() as client:
            response = await client.post("/catalog/categories", json={"name": "Consoles", "parentId": "c1"})
    assert response.status_code == 201
    assert response.json() == {"id": "c7", "name": "Consoles", "name_ar": "Consoles", "parent_id": "c1"}
    assert [c.id for c in manager.categories] == ["c7"]


@pytest.mark.asyncio
async def test_create_product_without_id_is_bad_gateway(manager):
    async with respx.mock(base_url=API_URL) as router:
        router.post("/products").mock(return_value=httpx.Response(201, json={"name": "Nameless"}))
        async with api() as client:
            response = await client.post("/catalog/products", json={"name": "Nameless", "price": 5})
    assert response.status_code == 502
    assert "no id" in response.json()["detail"]


@pytest.mark.asyncio
async def test_import_finished_schedules_reload(manager):
    manager.store.reload_delay = 5
    async with api() as client:
        response = await client.post("/catalog/imports/products")
        unknown = await client.post("/catalog/imports/suppliers")
    assert response.status_code == 202
    assert manager.store.reload_pending
    assert unknown.status_code == 404
    manager.store.cancel_pending_reload()


@pytest.mark.asyncio
async def test_lifespan_closes_manager_on_shutdown(manager, api_client, monkeypatch):
    monkeypatch.setattr(main, "_manager", manager)
    async with lifespan(app):
        assert not api_client._session.is_closed
    assert api_client._session.is_closed
