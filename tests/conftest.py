import json
from pathlib import Path

import pytest

from storecatalog.ingest.client import CatalogApiClient
from storecatalog.ingest.models import Brand
from storecatalog.utils import retry

API_URL = "http://core.test/api"
FIXTURES = Path(__file__).parent / "fixtures" / "http"


def load_fixture(path: str):
    return json.loads((FIXTURES / path).read_text(encoding="utf-8"))


def page_items(start: int, count: int) -> list[dict]:
    return [{"id": f"p{idx}", "name": f"Product {idx}", "price": idx} for idx in range(start, start + count)]


@pytest.fixture()
def api_client():
    return CatalogApiClient(API_URL, token="secret-token", tenant_domain="shop.test")


@pytest.fixture()
def sleeps(monkeypatch):
    """Record back-off delays instead of waiting them out."""
    delays: list[float] = []

    async def fake_sleep(delay, *args, **kwargs):
        delays.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    return delays


@pytest.fixture()
def known_brands() -> list[Brand]:
    return [
        Brand(id="b1", name="PlayStation", name_ar="بلايستيشن", code="PS-01"),
        Brand(id="b2", name="Xbox", name_ar="اكس بوكس", code="XB", legacy_id="legacy-xbox"),
        Brand(id="b3", name="PS", name_ar="PS"),
    ]
