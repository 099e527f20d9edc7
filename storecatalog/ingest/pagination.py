"""Paginated collection fetching.

The core API does not use one envelope shape per endpoint: a page may be a
bare list, ``{"data": [...]}``, ``{"products": [...]}`` and so on. Items are
pulled out by a chain of extractor strategies, tried in order, the first one
returning a list wins.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from typing import Any, Mapping

import httpx

from storecatalog.ingest.client import ApiError, CatalogApiClient
from storecatalog.utils.retry import retry_on_rate_limit

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PAGE_BATCH_SIZE = 5
COLLECTION_KEYS = ("products", "categories", "brands")

Extractor = Callable[[Any], list[Any] | None]


def _bare_list(payload: Any) -> list[Any] | None:
    return payload if isinstance(payload, list) else None


def _data_field(payload: Any) -> list[Any] | None:
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return None


def _collection_field(payload: Any) -> list[Any] | None:
    if not isinstance(payload, dict):
        return None
    for key in COLLECTION_KEYS:
        if isinstance(payload.get(key), list):
            return payload[key]
    return None


def _first_list_field(payload: Any) -> list[Any] | None:
    if not isinstance(payload, dict):
        return None
    for value in payload.values():
        if isinstance(value, list):
            return value
    return None


EXTRACTORS: tuple[Extractor, ...] = (_bare_list, _data_field, _collection_field, _first_list_field)


def extract_items(payload: Any, extractors: tuple[Extractor, ...] = EXTRACTORS) -> list[Any]:
    for extractor in extractors:
        items = extractor(payload)
        if items is not None:
            return list(items)
    return []


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def total_pages(payload: Any, page_size: int = PAGE_SIZE) -> int:
    """Number of pages declared by the response metadata, at least 1."""
    if not isinstance(payload, dict):
        return 1
    meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
    pagination = payload.get("pagination") if isinstance(payload.get("pagination"), dict) else {}
    for candidate in (
        meta.get("totalPages"),
        meta.get("pages"),
        pagination.get("totalPages"),
        payload.get("totalPages"),
    ):
        pages = _to_int(candidate)
        if pages is not None:
            return max(pages, 1)
    total = _to_int(meta.get("total"))
    if total is not None and page_size > 0:
        return max(math.ceil(total / page_size), 1)
    return 1


class CollectionFetcher:
    def __init__(
        self,
        client: CatalogApiClient,
        *,
        page_size: int = PAGE_SIZE,
        batch_size: int = PAGE_BATCH_SIZE,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.batch_size = batch_size

    def _params(self, page: int, extra: Mapping[str, Any] | None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": self.page_size}
        if extra:
            params.update(extra)
        return params

    async def fetch_all(self, endpoint: str, extra_params: Mapping[str, Any] | None = None) -> list[Any]:
        """Fetch every page of ``endpoint`` into one flat list.

        Page 1 is retried on rate limiting and its failure propagates. Later
        pages are fetched in batches of ``batch_size`` and a failed page
        contributes nothing.
        """
        first_page = await retry_on_rate_limit(self.client.get)(endpoint, self._params(1, extra_params))
        items = extract_items(first_page)
        pages = total_pages(first_page, self.page_size)
        logger.info("Fetched page 1/%s of %s (%s items)", pages, endpoint, len(items))

        remaining = list(range(2, pages + 1))
        for start in range(0, len(remaining), self.batch_size):
            batch = remaining[start:start + self.batch_size]
            results = await asyncio.gather(
                *(self._fetch_page(endpoint, page, extra_params) for page in batch)
            )
            for page_items in results:
                items.extend(page_items)
        return items

    async def _fetch_page(self, endpoint: str, page: int, extra_params: Mapping[str, Any] | None) -> list[Any]:
        try:
            payload = await self.client.get(endpoint, self._params(page, extra_params))
        except (ApiError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Page %s of %s failed, skipping: %s", page, endpoint, exc)
            return []
        return extract_items(payload)
