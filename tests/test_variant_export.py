from datetime import datetime

from services.variant_aggregator import get_variant_breakdown
from services.variant_export import (
    VARIANT_COLUMNS,
    VariantExportRow,
    build_export_rows,
    build_product_list_pdf,
    export_filename,
    flatten_variants_for_pdf,
    format_variant_row,
    get_product_quantity,
)
from services.product_validation import clean_variants


def test_flatten_matches_breakdown(deep_tree):
    assert flatten_variants_for_pdf(deep_tree) == get_variant_breakdown(deep_tree)


def test_export_rows_compute_value(nested_tree):
    rows = build_export_rows(nested_tree, 2.5)
    assert [(r.path, r.quantity, r.value) for r in rows] == [
        ("Color: Red → Size: S", 2, 5.0),
        ("Color: Red → Size: M", 4, 10.0),
    ]
    assert [r.value for r in build_export_rows(nested_tree, "3")] == [6.0, 12.0]
    assert [r.value for r in build_export_rows(nested_tree)] == [None, None]
    assert [r.value for r in build_export_rows(nested_tree, "n/a")] == [None, None]


def test_format_variant_row_matches_columns():
    bare = format_variant_row(VariantExportRow(path="Color: Red", quantity=5))
    assert len(bare) == len(VARIANT_COLUMNS)
    assert bare == ["Color: Red", "—", "5", "—", "—"]

    full = format_variant_row(VariantExportRow(path="Size: S", sku="S-1", quantity=1200, minimum_quantity=3, value=18.5))
    assert full == ["Size: S", "S-1", "1,200", "3", "$18.50"]


def test_product_quantity_falls_back_to_inventory(nested_tree):
    assert get_product_quantity({"id": "p1", "variants": nested_tree}, {"p1": 50}) == 6
    assert get_product_quantity({"id": "p2", "variants": []}, {"p2": 50}) == 50
    assert get_product_quantity({"id": 3, "variants": None}, {"3": 7}) == 7
    assert get_product_quantity({"id": "p4"}, {}) == 0


def test_export_filename():
    when = datetime(2026, 1, 1, 9, 30)
    assert export_filename(None, when) == "product_catalog_20260101.pdf"
    assert export_filename("Acme & Co", when) == "Acme___Co_products_20260101.pdf"


def test_build_product_list_pdf(deep_tree, nested_tree):
    products = [
        {"id": "p1", "name": "Tee <classic>", "sku": "TEE", "is_active": True, "value": 12.5,
         "minimum_quantity": 10, "variants": clean_variants(deep_tree), "companies": {"name": "Acme"}},
        {"id": "p2", "name": "Mug & Lid", "sku": None, "is_active": False, "variants": nested_tree},
        {"id": "p3", "name": "Box", "is_active": True, "variants": []},
    ]
    pdf, filename = build_product_list_pdf(
        products,
        {"p3": 40},
        client_name="Acme",
        client_code="AC1",
        is_admin=True,
        generated_at=datetime(2026, 3, 2),
    )

    assert pdf.startswith(b"%PDF")
    assert filename == "Acme_products_20260302.pdf"


def test_build_product_list_pdf_with_no_products():
    pdf, filename = build_product_list_pdf([], {}, generated_at=datetime(2026, 3, 2))
    assert pdf.startswith(b"%PDF")
    assert filename == "product_catalog_20260302.pdf"


def test_export_value_with_huge_quantity_is_left_blank():
    tree = [{"attribute": "Color", "values": [{"value": "Red", "quantity": 10 ** 400}]}]
    rows = build_export_rows(tree, 2.5)
    assert rows[0].quantity == 10 ** 400
    assert rows[0].value is None
