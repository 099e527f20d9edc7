"""Catalog reconciliation and the operations exposed to the explorer tree."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any, Iterable, Mapping

from storecatalog.ingest import CollectionSpec, load_collections
from storecatalog.ingest.client import ApiError, CatalogApiClient, create_client_from_env
from storecatalog.ingest.models import Brand, Category, Product
from storecatalog.ingest.pagination import PAGE_SIZE, CollectionFetcher
from storecatalog.logic.normalize import (
    normalize_brand,
    normalize_category,
    normalize_many,
    normalize_product,
    to_float,
    to_int,
)
from storecatalog.logic.refs import coerce_id
from storecatalog.logic.store import RELOAD_DELAY, CatalogStore

logger = logging.getLogger(__name__)


class EntityCreationError(ApiError):
    """A create call succeeded but returned nothing with a usable id."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(None, message, data)


def created_record(response: Any, key: str) -> Mapping[str, Any]:
    """The created entity, whether returned bare or under ``key``/``data``."""
    if not isinstance(response, Mapping):
        return {}
    for envelope in (key, "data"):
        nested = response.get(envelope)
        if isinstance(nested, Mapping) and coerce_id(nested):
            return nested
    return response


def product_payload(data: Mapping[str, Any]) -> dict[str, Any]:
    payload = dict(data)
    price = to_float(data.get("price"))
    payload["price"] = price if price is not None else 0
    category_id = payload.pop("categoryId", None)
    if "categoryIds" not in payload:
        payload["categoryIds"] = [category_id] if category_id else []
    payload.setdefault("isAvailable", True)
    payload.setdefault("isPublished", True)
    if not payload.get("variants"):
        variant: dict[str, Any] = {
            "name": "Default",
            "price": payload["price"],
            "inventoryQuantity": to_int(data.get("stock")) or 0,
        }
        cost = to_float(data.get("cost"))
        if cost is not None:
            variant["cost"] = cost
        payload["variants"] = [variant]
    return payload


class CatalogManager:
    def __init__(
        self,
        client: CatalogApiClient,
        *,
        store: CatalogStore | None = None,
        fetcher: CollectionFetcher | None = None,
        collections: Mapping[str, CollectionSpec] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
        reload_delay: float = RELOAD_DELAY,
    ) -> None:
        self.client = client
        self.fetcher = fetcher or CollectionFetcher(client)
        self.collections = dict(collections or load_collections())
        self.store = store or CatalogStore(reload_delay=reload_delay)
        if self.store.reload is None:
            self.store.reload = self.load_all
        self.on_error = on_error
        self.loading = False
        self.last_error: Exception | None = None
        self._in_flight = False

    @property
    def brands(self) -> tuple[Brand, ...]:
        return self.store.brands

    @property
    def categories(self) -> tuple[Category, ...]:
        return self.store.categories

    @property
    def products(self) -> tuple[Product, ...]:
        return self.store.products

    async def close(self) -> None:
        task = self.store.cancel_pending_reload()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        await self.client.close()

    async def _fetch(self, kind: str, extra: Mapping[str, Any] | None = None) -> list[Any]:
        spec = self.collections[kind]
        params = {**spec.params, **(extra or {})}
        return await self.fetcher.fetch_all(spec.endpoint, params)

    async def reconcile(self) -> tuple[list[Brand], list[Category], list[Product]]:
        """Fetch the three collections concurrently and normalize them."""
        raw_brands, raw_categories, raw_products = await asyncio.gather(
            self._fetch("brands"),
            self._fetch("categories"),
            self._fetch("products"),
        )
        brands = normalize_many("brands", raw_brands)
        categories = normalize_many("categories", raw_categories)
        products = normalize_many("products", raw_products, brands)
        return brands, categories, products

    async def load_all(self, show_loading: bool = True) -> bool:
        """Rebuild the store from the API.

        Returns False when skipped because a load is already running, or when
        the pass failed; a failure is logged, passed to ``on_error`` and leaves
        the store untouched.
        """
        if self._in_flight:
            logger.warning("Catalog load already in progress; skipping")
            return False
        self._in_flight = True
        self.last_error = None
        if show_loading:
            self.loading = True
        try:
            brands, categories, products = await self.reconcile()
        except Exception as exc:
            logger.exception("Catalog reconciliation failed")
            self.last_error = exc
            if self.on_error:
                self.on_error(exc)
            return False
        finally:
            self._in_flight = False
            if show_loading:
                self.loading = False
        self.store.replace_all(brands, categories, products)
        return True

    async def load_products_by_category(self, category_id: str) -> list[Product]:
        raw = await self._fetch("products", {"categoryId": category_id})
        return normalize_many("products", raw, self.store.brands)

    async def load_products_by_brand(self, brand_id: str) -> list[Product]:
        raw = await self._fetch("products", {"brandId": brand_id})
        return normalize_many("products", raw, self.store.brands)

    def _merge_created(
        self,
        response: Any,
        key: str,
        request: Mapping[str, Any],
        fallback_fields: Iterable[str],
    ) -> dict[str, Any]:
        record = created_record(response, key)
        if coerce_id(record) is None:
            raise EntityCreationError(f"Created {key} response has no id", response)
        merged = dict(record)
        for name in fallback_fields:
            if merged.get(name) is None and request.get(name) is not None:
                merged[name] = request[name]
        return merged

    async def on_create_brand(self, data: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> Brand:
        response = await self.client.create_brand(data)
        raw = self._merge_created(
            response, "brand", data, ("name", "nameAr", "code", "logo", "parentCategoryId")
        )
        brand = normalize_brand(raw)
        if brand is None:
            raise EntityCreationError("Created brand response has no id", response)
        if self.store.append_brand(brand):
            logger.info("Added brand %s (%s)", brand.name, brand.id)
        return brand

    async def on_create_category(
        self, data: Mapping[str, Any], options: Mapping[str, Any] | None = None
    ) -> Category:
        upsert = bool((options or {}).get("upsert"))
        response = await self.client.create_category(data, upsert=upsert)
        raw = self._merge_created(response, "category", data, ("name", "nameAr", "parentId"))
        category = normalize_category(raw)
        if category is None:
            raise EntityCreationError("Created category response has no id", response)
        if self.store.append_category(category):
            logger.info("Added category %s (%s)", category.name, category.id)
        return category

    async def on_create_product(
        self, data: Mapping[str, Any], options: Mapping[str, Any] | None = None
    ) -> Product:
        upsert = bool((options or {}).get("upsert"))
        payload = product_payload(data)
        response = await self.client.create_product(payload, upsert=upsert)
        raw = self._merge_created(
            response,
            "product",
            payload,
            ("name", "nameAr", "brandId", "categoryIds", "price", "isAvailable", "isPublished", "variants"),
        )
        product = normalize_product(raw, self.store.brands)
        if product is None:
            raise EntityCreationError("Created product response has no id", response)
        if self.store.append_product(product):
            logger.info("Added product %s (%s)", product.name, product.id)
        return product

    def on_categories_update(self) -> asyncio.Task:
        return self.store.schedule_full_reload()

    def on_brands_update(self) -> asyncio.Task:
        return self.store.schedule_full_reload()

    def on_products_update(self) -> asyncio.Task:
        return self.store.schedule_full_reload()


def create_manager_from_env(**kwargs: Any) -> CatalogManager:
    """Create a manager whose client and page size come from CATALOG_* variables."""
    client = create_client_from_env()
    page_size = int(os.environ.get("CATALOG_PAGE_SIZE", PAGE_SIZE))
    return CatalogManager(client, fetcher=CollectionFetcher(client, page_size=page_size), **kwargs)
