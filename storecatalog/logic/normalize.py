"""Normalization of raw API records into catalog entities."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from storecatalog.ingest.models import Brand, Category, CategoryLink, Product
from storecatalog.logic.brands import resolve_brand_id
from storecatalog.logic.refs import (
    BRAND_PARENT_ALIASES,
    CATEGORY_LINK_ALIASES,
    CATEGORY_PARENT_ALIASES,
    coerce_id,
    first_reference,
    flatten_reference,
)

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "yes", "1", "y"}


def to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any) -> int | None:
    number = to_float(value)
    return int(number) if number is not None else None


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _names(raw: Mapping[str, Any]) -> tuple[str, str]:
    name = _text(raw.get("name")) or ""
    name_ar = _text(raw.get("nameAr")) or _text(raw.get("name_ar")) or name
    return name, name_ar


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def normalize_brand(raw: Mapping[str, Any]) -> Brand | None:
    brand_id = coerce_id(raw)
    if brand_id is None:
        return None
    name, name_ar = _names(raw)
    legacy_id = coerce_id(raw, ("_id",))
    return Brand(
        id=brand_id,
        name=name,
        name_ar=name_ar,
        code=_text(raw.get("code")),
        logo=_text(raw.get("logo")) or _text(raw.get("logoUrl")),
        parent_category_id=first_reference(raw, BRAND_PARENT_ALIASES),
        legacy_id=legacy_id if legacy_id != brand_id else None,
    )


def normalize_category(raw: Mapping[str, Any]) -> Category | None:
    category_id = coerce_id(raw)
    if category_id is None:
        return None
    name, name_ar = _names(raw)
    parent_id = first_reference(raw, CATEGORY_PARENT_ALIASES)
    return Category(
        id=category_id,
        name=name,
        name_ar=name_ar,
        parent_id=parent_id if parent_id != category_id else None,
    )


def category_links(raw: Mapping[str, Any]) -> list[CategoryLink]:
    entries = raw.get("categories")
    if isinstance(entries, list):
        links = []
        for entry in entries:
            if isinstance(entry, Mapping):
                links.append(CategoryLink(first_reference(entry, CATEGORY_LINK_ALIASES)))
            else:
                links.append(CategoryLink(flatten_reference(entry)))
        return links
    ids = raw.get("categoryIds")
    if isinstance(ids, list):
        return [CategoryLink(flatten_reference(value)) for value in ids]
    single = flatten_reference(raw.get("categoryId"))
    return [CategoryLink(single)] if single else []


def _images(raw: Mapping[str, Any]) -> list[str]:
    entries = raw.get("images") or []
    if isinstance(entries, str):
        entries = [entries]
    images = []
    for image in entries:
        url = image.get("url") if isinstance(image, Mapping) else image
        if isinstance(url, str) and url:
            images.append(url)
    return images


def normalize_product(raw: Mapping[str, Any], known_brands: Sequence[Brand] = ()) -> Product | None:
    product_id = coerce_id(raw)
    if product_id is None:
        return None
    name, name_ar = _names(raw)
    variants = raw.get("variants")
    variant: Mapping[str, Any] = {}
    if isinstance(variants, list) and variants and isinstance(variants[0], Mapping):
        variant = variants[0]

    if raw.get("isAvailable") is not None:
        is_available = to_bool(raw.get("isAvailable"))
    else:
        is_available = str(raw.get("status") or "").upper() == "ACTIVE"
    featured = raw.get("featured")

    return Product(
        id=product_id,
        name=name,
        name_ar=name_ar,
        price=_first(to_float(raw.get("price")), to_float(variant.get("price")), 0.0),
        cost=_first(
            to_float(raw.get("costPerItem")),
            to_float(raw.get("cost")),
            to_float(variant.get("cost")),
        ),
        compare_at_price=_first(to_float(raw.get("compareAtPrice")), to_float(variant.get("compareAtPrice"))),
        stock=_first(
            to_int(raw.get("stock")),
            to_int(raw.get("stockQuantity")),
            to_int(variant.get("inventoryQuantity")),
            0,
        ),
        sku=_text(raw.get("sku")) or _text(variant.get("sku")),
        barcode=_text(raw.get("barcode")) or _text(variant.get("barcode")),
        status="ACTIVE" if is_available else "DRAFT",
        is_available=is_available,
        is_published=to_bool(raw.get("isPublished")),
        brand_id=resolve_brand_id(raw, known_brands),
        categories=category_links(raw),
        images=_images(raw),
        featured=to_bool(featured) if featured is not None else None,
        path=_text(raw.get("path")),
        description=_text(raw.get("description")),
        description_ar=_text(raw.get("descriptionAr")),
    )


def normalize(kind: str, raw: Mapping[str, Any], known_brands: Sequence[Brand] = ()):
    if kind == "brands":
        return normalize_brand(raw)
    if kind == "categories":
        return normalize_category(raw)
    if kind == "products":
        return normalize_product(raw, known_brands)
    raise ValueError(f"Unknown collection kind: {kind}")


def normalize_many(kind: str, records: Iterable[Any], known_brands: Sequence[Brand] = ()) -> list:
    """Normalize ``records``, dropping id-less ones; a repeated id keeps the last record."""
    by_id: dict[str, Any] = {}
    dropped = 0
    for raw in records:
        entity = normalize(kind, raw, known_brands) if isinstance(raw, Mapping) else None
        if entity is None:
            dropped += 1
            continue
        by_id[entity.id] = entity
    if dropped:
        logger.info("Dropped %s %s records without a usable id", dropped, kind)
    return list(by_id.values())
