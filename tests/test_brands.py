from storecatalog.ingest.models import Brand
from storecatalog.logic.brands import match_brand_by_name, normalize_name, resolve_brand_id


def test_normalize_name_strips_punctuation_keeps_arabic():
    assert normalize_name("PlayStation® Plus - 12 Month!") == "playstationplus12month"
    assert normalize_name("بلايستيشن بلس") == "بلايستيشنبلس"
    assert normalize_name(None) == ""


def test_direct_reference_beats_name_match(known_brands):
    raw = {"name": "PlayStation Plus 12 Month", "brandId": "b2"}
    assert resolve_brand_id(raw, known_brands) == "b2"


def test_direct_reference_by_nested_object_code_or_legacy_id(known_brands):
    assert resolve_brand_id({"name": "x", "brand": {"id": "b1"}}, known_brands) == "b1"
    assert resolve_brand_id({"name": "x", "brand_id": "XB"}, known_brands) == "b2"
    assert resolve_brand_id({"name": "x", "BrandID": "legacy-xbox"}, known_brands) == "b2"


def test_name_heuristic_when_reference_is_missing(known_brands):
    raw = {"name": "PlayStation Plus 12 Month"}
    assert resolve_brand_id(raw, known_brands) == "b1"


def test_invalid_reference_falls_back_to_name(known_brands):
    raw = {"name": "Xbox Game Pass", "brandId": "deleted-brand"}
    assert resolve_brand_id(raw, known_brands) == "b2"


def test_short_brand_names_never_match():
    brands = [Brand(id="ps", name="PS", name_ar="PS"), Brand(id="lg", name="L.G.", name_ar="")]
    assert match_brand_by_name("PS5 Console Bundle", brands) is None
    assert resolve_brand_id({"name": "LG OLED TV"}, brands) is None


def test_localized_brand_name_matches(known_brands):
    assert resolve_brand_id({"name": "بطاقة بلايستيشن ستور"}, known_brands) == "b1"


def test_first_brand_in_list_order_wins():
    brands = [
        Brand(id="first", name="Store Card", name_ar=""),
        Brand(id="second", name="Gift", name_ar=""),
    ]
    assert match_brand_by_name("Gift Store Card", brands).id == "first"
    assert match_brand_by_name("Gift Store Card", list(reversed(brands))).id == "second"


def test_unresolvable_brand_is_none(known_brands):
    assert resolve_brand_id({"name": "Generic Gift Card", "brandId": "nope"}, known_brands) is None
    assert resolve_brand_id({"brandId": "nope"}, []) is None
