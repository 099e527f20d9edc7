"""Identifier and foreign-key coercion shared by the normalizer and resolver."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

ID_FIELDS = ("id", "_id")

# Alias order is priority order.
CATEGORY_PARENT_ALIASES = (
    "parentId",
    "ParentID",
    "parent_id",
    "parent",
    "parentCategoryId",
    "ParentCategoryID",
    "parent_category_id",
)
BRAND_PARENT_ALIASES = (
    "parentCategoryId",
    "ParentCategoryID",
    "parent_category_id",
    "parentCategory",
    "parent_category",
    "categoryId",
)
PRODUCT_BRAND_ALIASES = ("brandId", "BrandID", "brand_id", "brand")
CATEGORY_LINK_ALIASES = ("categoryId", "CategoryID", "category_id", "category", "id", "_id")


def coerce_id(raw: Mapping[str, Any] | None, fields: Iterable[str] = ID_FIELDS) -> str | None:
    """Return the first non-empty trimmed id among ``fields``."""
    if not isinstance(raw, Mapping):
        return None
    for name in fields:
        value = _scalar(raw.get(name))
        if value:
            return value
    return None


def flatten_reference(value: Any) -> str | None:
    """Reduce a bare id or a nested ``{id|_id}`` object to a string id."""
    if isinstance(value, Mapping):
        return coerce_id(value)
    return _scalar(value)


def first_reference(raw: Mapping[str, Any], aliases: Iterable[str]) -> str | None:
    for alias in aliases:
        ref = flatten_reference(raw.get(alias))
        if ref:
            return ref
    return None


def _scalar(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value).strip() or None
    return None
