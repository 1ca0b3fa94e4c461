from storewizard.services.normalization import (
    BilingualName,
    FlatName,
    LocalizedName,
    canonicalize,
    extract_total,
    normalize_categories,
    normalize_category,
    parse_item_name,
    parse_name,
    unwrap_list,
)


def test_parse_name_tags_shapes():
    assert parse_name("Shoes") == FlatName("Shoes")
    assert parse_name({"ar": "أحذية", "en": "Shoes"}) == LocalizedName(ar="أحذية", en="Shoes")
    assert parse_name(None) == FlatName("")
    assert parse_name({"ar": "  ", "en": "Shoes"}) == LocalizedName(ar=None, en="Shoes")


def test_canonicalize_fills_missing_locale_from_the_other():
    assert canonicalize(LocalizedName(ar="أحذية")) == BilingualName(ar="أحذية", en="أحذية")
    assert canonicalize(LocalizedName(en="Shoes")) == BilingualName(ar="Shoes", en="Shoes")
    assert canonicalize(FlatName("Shoes"), locale="en") == BilingualName(ar="Shoes", en="Shoes")


def test_canonicalize_empty_name():
    assert canonicalize(LocalizedName()) == BilingualName(ar="", en="")
    assert canonicalize(FlatName("")) == BilingualName(ar="", en="")


def test_parse_item_name_reads_flat_locale_fields():
    assert parse_item_name({"name_ar": "قميص", "name_en": "Shirt"}) == LocalizedName(ar="قميص", en="Shirt")
    assert parse_item_name({"name": "Shirt", "name_ar": "قميص"}) == LocalizedName(ar="قميص", en="Shirt")


def test_unwrap_list_tries_wrapper_keys_in_order():
    keys = ("categories", "data.categories", "data")
    assert unwrap_list({"categories": [{"id": 1}]}, keys) == [{"id": 1}]
    assert unwrap_list({"data": {"categories": [{"id": 2}]}}, keys) == [{"id": 2}]
    assert unwrap_list({"data": [{"id": 3}, "junk"]}, keys) == [{"id": 3}]
    assert unwrap_list([{"id": 4}], keys) == [{"id": 4}]
    assert unwrap_list({"message": "ok"}, keys) == []
    assert unwrap_list(None, keys) == []


def test_first_matching_wrapper_wins():
    payload = {"categories": [{"id": 1, "name": "A"}], "data": [{"id": 2, "name": "B"}]}

    categories = normalize_categories(payload)

    assert [c.id for c in categories] == ["1"]


def test_normalized_categories_are_stable_across_shapes():
    flat = normalize_categories({"categories": [{"id": 5, "name": "Bags", "slug": "bags"}]})
    nested = normalize_categories({"data": {"categories": [{"id": "5", "name": {"ar": "Bags", "en": "Bags"}, "slug": "bags"}]}})

    assert [c.to_dict() for c in flat] == [c.to_dict() for c in nested]
    assert flat[0].to_dict() == {
        "id": "5",
        "nameAr": "Bags",
        "nameEn": "Bags",
        "slug": "bags",
        "productsCount": 0,
    }


def test_extract_total():
    assert extract_total({"total": "12"}, 3) == 12
    assert extract_total({"meta": {"total": 7}}, 3) == 7
    assert extract_total({"products": []}, 3) == 3
    assert extract_total([], 0) == 0


def test_products_count_falls_back_when_snake_case_is_null():
    assert normalize_category({"id": 1, "name": "Bags", "products_count": None, "productsCount": 6}).products_count == 6
    assert normalize_category({"id": 1, "name": "Bags", "products_count": 0, "productsCount": 6}).products_count == 0
    assert normalize_category({"id": 1, "name": "Bags"}).products_count == 0


def test_arabic_only_category_name_fills_english():
    (category,) = normalize_categories({"categories": [{"id": 3, "name": {"ar": "فئة"}}]})

    assert category.name.en == category.name.ar == "فئة"
