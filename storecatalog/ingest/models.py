"""Catalog data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ProductStatus = Literal["ACTIVE", "DRAFT", "ARCHIVED"]


@dataclass(slots=True)
class Brand:
    id: str
    name: str
    name_ar: str
    code: str | None = None
    logo: str | None = None
    parent_category_id: str | None = None
    legacy_id: str | None = None


@dataclass(slots=True)
class Category:
    id: str
    name: str
    name_ar: str
    parent_id: str | None = None


@dataclass(slots=True)
class CategoryLink:
    category_id: str | None = None


@dataclass(slots=True)
class Product:
    id: str
    name: str
    name_ar: str
    price: float = 0.0
    stock: int = 0
    status: ProductStatus = "DRAFT"
    is_available: bool = False
    is_published: bool = False
    brand_id: str | None = None
    categories: list[CategoryLink] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    cost: float | None = None
    compare_at_price: float | None = None
    sku: str | None = None
    barcode: str | None = None
    featured: bool | None = None
    path: str | None = None
    description: str | None = None
    description_ar: str | None = None

    @property
    def category_ids(self) -> list[str]:
        return [link.category_id for link in self.categories if link.category_id]
