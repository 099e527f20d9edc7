"""Brand resolution for products without a usable brand reference."""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from storecatalog.ingest.models import Brand
from storecatalog.logic.refs import PRODUCT_BRAND_ALIASES, flatten_reference

# Latin letters, digits and the Arabic block.
NON_NAME_CHARS = re.compile("[^a-z0-9\u0600-\u06ff]")
MIN_NAME_LENGTH = 3


def normalize_name(value: Any) -> str:
    if value is None:
        return ""
    return NON_NAME_CHARS.sub("", str(value).lower())


def find_brand(candidate: str, brands: Sequence[Brand]) -> Brand | None:
    for brand in brands:
        if candidate in (brand.id, brand.legacy_id, brand.code):
            return brand
    return None


def match_brand_by_name(product_name: Any, brands: Sequence[Brand]) -> Brand | None:
    """First brand, in list order, whose name occurs inside the product name.

    Names of ``MIN_NAME_LENGTH`` characters or fewer are ignored. When several
    brands match, list order decides; there is no confidence ranking.
    """
    haystack = normalize_name(product_name)
    if not haystack:
        return None
    for brand in brands:
        for name in (brand.name, brand.name_ar):
            needle = normalize_name(name)
            if len(needle) > MIN_NAME_LENGTH and needle in haystack:
                return brand
    return None


def resolve_brand_id(raw_product: Mapping[str, Any], known_brands: Sequence[Brand]) -> str | None:
    for alias in PRODUCT_BRAND_ALIASES:
        candidate = flatten_reference(raw_product.get(alias))
        if not candidate:
            continue
        brand = find_brand(candidate, known_brands)
        if brand:
            return brand.id
    brand = match_brand_by_name(raw_product.get("name"), known_brands)
    return brand.id if brand else None
