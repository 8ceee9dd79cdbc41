from services.variant_aggregator import (
    calculate_nested_variant_quantity,
    effective_quantity,
    find_low_stock,
    get_variant_breakdown,
    inventory_key,
    walk_leaves,
)
from services.variant_tree import Variant


def _rows(breakdown):
    return [(row.path, row.quantity) for row in breakdown]


def test_flat_tree_total_and_breakdown(flat_tree):
    assert calculate_nested_variant_quantity(flat_tree) == 8
    assert _rows(get_variant_breakdown(flat_tree)) == [("Color: Red", 5), ("Color: Blue", 3)]


def test_nested_tree_total_and_paths(nested_tree):
    assert calculate_nested_variant_quantity(nested_tree) == 6
    assert _rows(get_variant_breakdown(nested_tree)) == [
        ("Color: Red → Size: S", 2),
        ("Color: Red → Size: M", 4),
    ]


def test_parent_quantity_is_ignored(deep_tree):
    # Red carries a stale 99; only its descendants count
    assert calculate_nested_variant_quantity(deep_tree) == 1 + 7 + 4 + 10 + 2


def test_breakdown_order_is_depth_first(deep_tree):
    assert [row.path for row in get_variant_breakdown(deep_tree)] == [
        "Color: Red → Size: S → Material: Cotton",
        "Color: Red → Size: S → Material: Linen",
        "Color: Red → Size: M",
        "Color: Blue",
        "Finish: Matte",
    ]


def test_breakdown_carries_leaf_sku_and_minimum(deep_tree):
    cotton = get_variant_breakdown(deep_tree)[0]
    assert cotton.sku == "R-S-C"
    assert cotton.minimum_quantity == 5


def test_total_matches_sum_of_rows(deep_tree, nested_tree, flat_tree):
    for tree in (deep_tree, nested_tree, flat_tree, []):
        rows = get_variant_breakdown(tree)
        assert calculate_nested_variant_quantity(tree) == sum(r.quantity for r in rows)


def test_empty_and_missing_trees_are_zero():
    assert calculate_nested_variant_quantity(None) == 0
    assert calculate_nested_variant_quantity([]) == 0
    assert calculate_nested_variant_quantity("not a tree") == 0
    assert get_variant_breakdown(None) == []


def test_malformed_nodes_are_skipped():
    tree = [
        None,
        "junk",
        {"attribute": "Color", "values": "bad"},
        {"attribute": "Size", "values": [None, 5, {"value": "S", "quantity": "3"}, {"quantity": 2}]},
    ]
    assert calculate_nested_variant_quantity(tree) == 5
    assert _rows(get_variant_breakdown(tree)) == [("Size: S", 3), ("Size: N/A", 2)]


def test_models_and_plain_dicts_agree(deep_tree):
    models = [Variant.model_validate(v) for v in deep_tree]
    assert get_variant_breakdown(models) == get_variant_breakdown(deep_tree)


def test_traversal_is_repeatable(deep_tree):
    assert list(walk_leaves(deep_tree)) == list(walk_leaves(deep_tree))


def test_effective_quantity_prefers_variant_total(nested_tree):
    assert effective_quantity(nested_tree, 100) == 6
    assert effective_quantity([], 12) == 12
    assert effective_quantity(None, None) == 0
    zeroed = [{"attribute": "Size", "values": [{"value": "S", "quantity": 0}]}]
    assert effective_quantity(zeroed, 9) == 9


def test_inventory_key():
    assert inventory_key("p1") == "p1"
    assert inventory_key("p1", "Size", "S") == "p1:Size:S"
    assert inventory_key("p1", "Size", None) == "p1"


def test_low_stock_product_threshold(nested_tree):
    products = [{"id": "p1", "name": "Tee", "sku": "TEE", "minimum_quantity": 10, "variants": nested_tree}]
    items = find_low_stock(products, {})

    assert len(items) == 1
    item = items[0]
    assert item.variant_path is None
    assert item.current_stock == 6
    assert item.minimum_quantity == 10
    assert not item.is_critical        # 6 is not below half of 10


def test_low_stock_leaf_thresholds_and_sorting():
    tree = [{"attribute": "Size", "values": [
        {"value": "S", "quantity": 1, "minimumQuantity": 5},
        {"value": "M", "quantity": 9, "minimumQuantity": 5},
        {"value": "L", "quantity": 5, "minimumQuantity": 5},
    ]}]
    products = [{"id": "p1", "name": "Tee", "variants": tree}]

    items = find_low_stock(products, {})
    assert [(i.variant_path, i.current_stock, i.is_critical) for i in items] == [
        ("Size: S", 1, True),
        ("Size: L", 5, False),
    ]
    assert items[0].id == "p1-Size: S"


def test_low_stock_prefers_inventory_record_for_leaf():
    tree = [{"attribute": "Size", "values": [{"value": "S", "quantity": 1, "minimumQuantity": 5}]}]
    products = [{"id": "p1", "name": "Tee", "variants": tree}]

    items = find_low_stock(products, {"p1:Size:S": 4})
    assert items[0].current_stock == 4
    assert not items[0].is_critical

    assert find_low_stock(products, {"p1:Size:S": 8}) == []


def test_low_stock_skips_rows_without_id():
    assert find_low_stock([None, {"name": "no id", "minimum_quantity": 3}], {}) == []


def test_huge_quantities_are_summed_exactly():
    tree = [{"attribute": "Color", "values": [
        {"value": "Red", "quantity": 10 ** 400, "minimumQuantity": 10 ** 401},
        {"value": "Blue", "quantity": 9007199254740993},
    ]}]

    assert calculate_nested_variant_quantity(tree) == 10 ** 400 + 9007199254740993
    assert _rows(get_variant_breakdown(tree))[0] == ("Color: Red", 10 ** 400)

    items = find_low_stock([{"id": "p1", "name": "Tee", "variants": tree}], {})
    assert [(i.variant_path, i.is_critical) for i in items] == [("Color: Red", True)]
