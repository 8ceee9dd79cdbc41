# services/variant_aggregator.py

import logging
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from services.variant_tree import as_plain_tree, coerce_quantity

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " → "
MISSING_ATTRIBUTE = "Variant"
MISSING_VALUE = "N/A"


class BreakdownRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str
    quantity: int = 0
    sku: Optional[str] = None
    minimum_quantity: Optional[int] = Field(default=None, alias="minimumQuantity")


class LowStockItem(BaseModel):
    id: str
    product_id: str
    product_name: str
    sku: Optional[str] = None
    variant_path: Optional[str] = None     # None → product-level threshold
    current_stock: int
    minimum_quantity: int
    is_critical: bool


class Leaf(NamedTuple):
    path: str
    attribute: str
    value: str
    quantity: int
    sku: Optional[str]
    minimum_quantity: Optional[int]


# ---------------------------------------------------------------------------
# Canonical traversal
# Totals, breakdown rows, low-stock checks and the PDF export all walk the tree
# through walk_leaves so that itemized rows always add up to the total.
# ---------------------------------------------------------------------------

def walk_leaves(variants: Any, parent_path: str = "") -> Iterator[Leaf]:
    """
    Depth-first over stored order: variants in order, values in order,
    sub-variants in order. Yields one Leaf per value without sub-variants.
    Malformed nodes (non-dicts, missing `values` lists) are skipped.
    """
    for variant in as_plain_tree(variants):
        if not isinstance(variant, Mapping):
            continue
        values = variant.get("values")
        if not isinstance(values, list):
            continue
        attribute = _label(variant.get("attribute")) or MISSING_ATTRIBUTE

        for val in values:
            if isinstance(val, str):
                val = {"value": val}
            if not isinstance(val, Mapping):
                continue
            label = _label(val.get("value")) or MISSING_VALUE
            segment = f"{attribute}: {label}"
            path = f"{parent_path}{PATH_SEPARATOR}{segment}" if parent_path else segment

            children = val.get("subVariants")
            if isinstance(children, list) and children:
                yield from walk_leaves(children, path)
                continue

            minimum = val.get("minimumQuantity")
            sku = val.get("sku")
            yield Leaf(
                path=path,
                attribute=attribute,
                value=label,
                quantity=coerce_quantity(val.get("quantity")),
                sku=sku if isinstance(sku, str) and sku else None,
                minimum_quantity=coerce_quantity(minimum) if minimum is not None else None,
            )


def _label(raw: Any) -> str:
    if raw is None or isinstance(raw, (dict, list, bool)):
        return ""
    return str(raw).strip()


def calculate_nested_variant_quantity(variants: Any) -> int:
    """Sum of leaf quantities. A value with sub-variants contributes only its descendants."""
    if not variants:
        return 0
    return sum(leaf.quantity for leaf in walk_leaves(variants))


def get_variant_breakdown(variants: Any) -> List[BreakdownRow]:
    """One row per leaf, e.g. `Color: Red → Size: S`, in traversal order."""
    return [
        BreakdownRow(
            path=leaf.path,
            quantity=leaf.quantity,
            sku=leaf.sku,
            minimum_quantity=leaf.minimum_quantity,
        )
        for leaf in walk_leaves(variants)
    ]


def effective_quantity(variants: Any, on_hand: Optional[int]) -> int:
    """
    Current stock for a product: the variant tree total when it is positive,
    otherwise the on-hand inventory figure recorded for the product.
    """
    total = calculate_nested_variant_quantity(variants)
    if total > 0:
        return total
    return coerce_quantity(on_hand)


# ---------------------------------------------------------------------------
# Low stock
# ---------------------------------------------------------------------------

def inventory_key(product_id: str, attribute: Optional[str] = None, value: Optional[str] = None) -> str:
    """Key into the on-hand map: `<product>` or `<product>:<attribute>:<value>`."""
    if attribute and value:
        return f"{product_id}:{attribute}:{value}"
    return str(product_id)


def _is_critical(current: int, minimum: int) -> bool:
    # below half the minimum, in integer arithmetic
    return current == 0 or current * 2 < minimum


def find_low_stock(products: List[Mapping[str, Any]], on_hand: Dict[str, int]) -> List[LowStockItem]:
    """
    Items at or below their reorder threshold.

    products: rows with id, name, sku, minimum_quantity, variants
    on_hand:  inventory_key(...) → quantity, as built from the inventory table

    Product-level threshold is checked against effective_quantity. Leaf
    thresholds (minimumQuantity) are checked against the per-variant inventory
    record, falling back to the leaf quantity when there is none.
    Sorted critical first, then by ascending stock.
    """
    low: List[LowStockItem] = []

    for product in products or []:
        if not isinstance(product, Mapping) or product.get("id") is None:
            continue
        product_id = str(product.get("id"))
        name = str(product.get("name") or "")
        sku = product.get("sku")
        variants = product.get("variants")

        product_min = coerce_quantity(product.get("minimum_quantity"))
        if product_min > 0:
            current = effective_quantity(variants, on_hand.get(inventory_key(product_id)))
            if current <= product_min:
                low.append(LowStockItem(
                    id=product_id,
                    product_id=product_id,
                    product_name=name,
                    sku=sku,
                    variant_path=None,
                    current_stock=current,
                    minimum_quantity=product_min,
                    is_critical=_is_critical(current, product_min),
                ))

        for leaf in walk_leaves(variants):
            minimum = leaf.minimum_quantity or 0
            if minimum <= 0:
                continue
            current = coerce_quantity(on_hand.get(inventory_key(product_id, leaf.attribute, leaf.value)))
            if current == 0:
                current = leaf.quantity
            if current <= minimum:
                low.append(LowStockItem(
                    id=f"{product_id}-{leaf.path}",
                    product_id=product_id,
                    product_name=name,
                    sku=sku,
                    variant_path=leaf.path,
                    current_stock=current,
                    minimum_quantity=minimum,
                    is_critical=_is_critical(current, minimum),
                ))

    low.sort(key=lambda item: (not item.is_critical, item.current_stock))
    logger.debug(f"[LowStock] {len(low)} items at or below threshold")
    return low
