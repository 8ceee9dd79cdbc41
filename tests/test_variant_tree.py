from services.variant_tree import (
    Variant,
    VariantValue,
    as_plain_tree,
    clone_variants_with_zero_quantity,
    coerce_quantity,
    has_nested_variants,
    is_leaf,
    new_value,
    new_variant,
    parse_variants_from_db,
    tree_depth,
    variants_to_json,
)


def test_new_variant_has_one_blank_value():
    variant = new_variant()
    assert variant.attribute == ""
    assert variant.values == [VariantValue(value="", quantity=0)]
    assert new_value() == VariantValue(value="", quantity=0)


def test_camel_case_round_trips_through_json(nested_tree):
    variants = [Variant.model_validate(v) for v in nested_tree]
    red = variants[0].values[0]
    assert not is_leaf(red)
    assert red.sub_variants[0].attribute == "Size"

    dumped = variants_to_json(variants)
    assert dumped[0]["values"][0]["subVariants"][0]["values"][1] == {
        "value": "M", "quantity": 4, "subVariants": [],
    }


def test_has_nested_variants(flat_tree, nested_tree):
    assert has_nested_variants(nested_tree)
    assert not has_nested_variants(flat_tree)
    assert not has_nested_variants(None)
    assert not has_nested_variants([{"attribute": "Color", "values": [{"value": "Red", "subVariants": []}]}])


def test_tree_depth(flat_tree, nested_tree, deep_tree):
    assert tree_depth([]) == 0
    assert tree_depth([Variant.model_validate(v) for v in flat_tree]) == 1
    assert tree_depth([Variant.model_validate(v) for v in nested_tree]) == 2
    assert tree_depth([Variant.model_validate(v) for v in deep_tree]) == 3


def test_coerce_quantity():
    assert coerce_quantity(5) == 5
    assert coerce_quantity("7") == 7
    assert coerce_quantity(3.9) == 3
    assert coerce_quantity(-2) == 0
    assert coerce_quantity(None) == 0
    assert coerce_quantity("abc") == 0
    assert coerce_quantity(float("nan")) == 0
    assert coerce_quantity(True) == 0


def test_as_plain_tree_dumps_models_and_keeps_raw_nodes():
    plain = as_plain_tree([new_variant(), "junk", None])
    assert plain[0] == {"attribute": "", "values": [
        {"value": "", "quantity": 0, "sku": None, "minimumQuantity": None, "subVariants": []},
    ], "sku": None}
    assert plain[1:] == ["junk", None]
    assert as_plain_tree("nope") == []


def test_parse_variants_from_db_tolerates_legacy_rows():
    stored = [
        None,
        {"attribute": "", "values": ["x"]},
        {"attribute": "Size", "values": ["S", "", None, {"value": "M", "quantity": "3", "minimumQuantity": 2}]},
        {"attribute": "Color", "values": "oops", "sku": "C-1"},
    ]
    parsed = parse_variants_from_db(stored)

    assert [v.attribute for v in parsed] == ["Size", "Color"]
    assert parsed[0].values == [
        VariantValue(value="S", quantity=0),
        VariantValue(value="M", quantity=3, minimum_quantity=2),
    ]
    assert parsed[1].values == []
    assert parsed[1].sku == "C-1"
    assert parse_variants_from_db({"attribute": "Size"}) == []


def test_clone_variants_with_zero_quantity(deep_tree):
    variants = [Variant.model_validate(v) for v in deep_tree]
    clone = clone_variants_with_zero_quantity(variants)

    cotton = clone[0].values[0].sub_variants[0].values[0].sub_variants[0].values[0]
    assert cotton.quantity == 0
    assert cotton.minimum_quantity == 5
    assert clone[0].values[1].quantity == 0
    # source untouched
    assert variants[0].values[1].quantity == 10


def test_coerce_quantity_keeps_large_ints_exact():
    assert coerce_quantity(9007199254740993) == 9007199254740993
    assert coerce_quantity("9007199254740993") == 9007199254740993
    assert coerce_quantity(10 ** 400) == 10 ** 400
    assert coerce_quantity(-(10 ** 400)) == 0
    assert coerce_quantity(" 12 ") == 12
    assert coerce_quantity("2.5") == 2
    assert coerce_quantity("1e400") == 0
