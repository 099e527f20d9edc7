"""In-memory catalog store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Iterable, TypeVar

from storecatalog.ingest.models import Brand, Category, Product

logger = logging.getLogger(__name__)

RELOAD_DELAY = 0.5

T = TypeVar("T", Brand, Category, Product)


def dedupe(items: Iterable[T]) -> tuple[T, ...]:
    """Keep one entity per id: first position, last value."""
    by_id: dict[str, T] = {}
    for item in items:
        by_id[item.id] = item
    return tuple(by_id.values())


class CatalogStore:
    """Reconciled brands, categories and products.

    Collections are tuples and every mutation swaps in a new tuple, so a
    reader holding the previous reference never sees a partial update.
    """

    def __init__(
        self,
        *,
        reload: Callable[[], Awaitable[Any]] | None = None,
        reload_delay: float = RELOAD_DELAY,
    ) -> None:
        self._brands: tuple[Brand, ...] = ()
        self._categories: tuple[Category, ...] = ()
        self._products: tuple[Product, ...] = ()
        self.reload = reload
        self.reload_delay = reload_delay
        self._pending_reload: asyncio.Task | None = None

    @property
    def brands(self) -> tuple[Brand, ...]:
        return self._brands

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    def replace_all(
        self,
        brands: Iterable[Brand],
        categories: Iterable[Category],
        products: Iterable[Product],
    ) -> None:
        new_brands, new_categories, new_products = dedupe(brands), dedupe(categories), dedupe(products)
        self._brands = new_brands
        self._categories = new_categories
        self._products = new_products
        logger.info(
            "Catalog replaced: %s brands, %s categories, %s products",
            len(new_brands),
            len(new_categories),
            len(new_products),
        )

    def append_brand(self, brand: Brand) -> bool:
        if any(existing.id == brand.id for existing in self._brands):
            return False
        self._brands = (*self._brands, brand)
        return True

    def append_category(self, category: Category) -> bool:
        if any(existing.id == category.id for existing in self._categories):
            return False
        self._categories = (*self._categories, category)
        return True

    def append_product(self, product: Product) -> bool:
        if any(existing.id == product.id for existing in self._products):
            return False
        self._products = (*self._products, product)
        return True

    @property
    def reload_pending(self) -> bool:
        return self._pending_reload is not None and not self._pending_reload.done()

    def schedule_full_reload(self, after: float | None = None) -> asyncio.Task:
        """Run the reload callback after ``after`` seconds.

        A reload that has not finished yet is cancelled and replaced, so a
        burst of calls results in a single reload.
        """
        if self.reload is None:
            raise RuntimeError("CatalogStore has no reload callback")
        if self.reload_pending:
            logger.debug("Superseding pending catalog reload")
            self._pending_reload.cancel()
        delay = self.reload_delay if after is None else after
        self._pending_reload = asyncio.create_task(self._reload_after(delay))
        return self._pending_reload

    def cancel_pending_reload(self) -> asyncio.Task | None:
        """Cancel a waiting or running reload and return its task, if any."""
        task = self._pending_reload if self.reload_pending else None
        if task is not None:
            task.cancel()
        self._pending_reload = None
        return task

    async def _reload_after(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            await self.reload()
        finally:
            if self._pending_reload is asyncio.current_task():
                self._pending_reload = None
