# services/variant_tree.py

import logging
import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


# ---------------------------------------------------------------------------
# Tree model
# Stored as JSON inside a single column of the product row, so the wire shape
# keeps the camelCase keys the dashboards already write (subVariants,
# minimumQuantity). Python code uses the snake_case field names.
# ---------------------------------------------------------------------------

class VariantValue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: str = ""
    quantity: int = Field(default=0, ge=0)          # only meaningful on leaves
    sku: Optional[str] = None
    minimum_quantity: Optional[int] = Field(default=None, ge=0, alias="minimumQuantity")
    sub_variants: List["Variant"] = Field(default_factory=list, alias="subVariants")


class Variant(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attribute: str = ""
    values: List[VariantValue] = Field(default_factory=list)
    sku: Optional[str] = None                       # attribute-level override, rarely set


VariantValue.model_rebuild()


def new_value() -> VariantValue:
    return VariantValue(value="", quantity=0)


def new_variant() -> Variant:
    """Blank variant row as the editor inserts it: one empty value, ready to type into."""
    return Variant(attribute="", values=[new_value()])


def is_leaf(value: VariantValue) -> bool:
    return not value.sub_variants


def has_nested_variants(variants: Any) -> bool:
    """True when any value in the top level branches into sub-variants."""
    if not isinstance(variants, list):
        return False
    for variant in as_plain_tree(variants):
        if not isinstance(variant, dict):
            continue
        for val in variant.get("values") or []:
            if isinstance(val, dict) and val.get("subVariants"):
                return True
    return False


def tree_depth(variants: List[Variant]) -> int:
    """Number of attribute levels in the tree; [] is 0, a flat Color list is 1."""
    deepest = 0
    for variant in variants or []:
        for val in variant.values:
            deepest = max(deepest, tree_depth(val.sub_variants))
    return deepest + 1 if variants else 0


def coerce_quantity(raw: Any) -> int:
    """
    Normalize a stored quantity to a non-negative int.
    Strings like "5" are accepted, anything unparseable or negative becomes 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    # exact for ints of any size; only fractional input goes through float
    if isinstance(raw, int):
        return max(raw, 0)
    if isinstance(raw, str):
        try:
            return max(int(raw.strip()), 0)
        except ValueError:
            pass
    try:
        number = float(raw)
    except (TypeError, ValueError, OverflowError):
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0
    return int(number)


def as_plain_tree(variants: Any) -> list:
    """
    Return the tree as plain JSON-shaped data (camelCase keys).
    Model instances are dumped, raw dicts/strings pass through untouched so
    callers can keep skipping malformed nodes themselves.
    """
    if isinstance(variants, tuple):
        variants = list(variants)
    if not isinstance(variants, list):
        return []
    return [
        v.model_dump(by_alias=True) if isinstance(v, BaseModel) else v
        for v in variants
    ]


def variants_to_json(variants: List[Variant]) -> list[dict[str, Any]]:
    """Serialize for the product row's `variants` column."""
    return [v.model_dump(by_alias=True, exclude_none=True) for v in variants or []]


# ---------------------------------------------------------------------------
# Loading stored trees
# ---------------------------------------------------------------------------

def parse_variants_from_db(raw: Any) -> List[Variant]:
    """
    Tolerant loader for whatever is sitting in the `variants` column.

    - non-list → []
    - variants without an attribute are dropped
    - bare strings in `values` become {"value": s, "quantity": 0}
    - values without a label are dropped

    This does not enforce the full rule set (trimming, length limits, depth);
    run the result through product_validation.clean_variants for that.
    """
    if not isinstance(raw, list):
        return []

    parsed: List[Variant] = []
    for v in as_plain_tree(raw):
        if not isinstance(v, dict) or not v.get("attribute"):
            continue
        values: List[VariantValue] = []
        for val in v.get("values") if isinstance(v.get("values"), list) else []:
            if isinstance(val, str) and val:
                values.append(VariantValue(value=val, quantity=0))
            elif isinstance(val, dict) and val.get("value"):
                minimum = val.get("minimumQuantity")
                values.append(
                    VariantValue(
                        value=str(val.get("value")),
                        quantity=coerce_quantity(val.get("quantity")),
                        sku=val.get("sku") if isinstance(val.get("sku"), str) else None,
                        minimum_quantity=coerce_quantity(minimum) if minimum is not None else None,
                        sub_variants=parse_variants_from_db(val.get("subVariants")),
                    )
                )
        parsed.append(
            Variant(
                attribute=str(v.get("attribute")),
                values=values,
                sku=v.get("sku") if isinstance(v.get("sku"), str) else None,
            )
        )

    logger.debug(f"[VariantTree] parsed {len(parsed)} stored variants")
    return parsed


def clone_variants_with_zero_quantity(variants: List[Variant]) -> List[Variant]:
    """Deep copy with every quantity reset to 0 (check-in forms reuse a product's tree)."""
    return [
        Variant(
            attribute=v.attribute,
            sku=v.sku,
            values=[
                VariantValue(
                    value=val.value,
                    quantity=0,
                    sku=val.sku,
                    minimum_quantity=val.minimum_quantity,
                    sub_variants=clone_variants_with_zero_quantity(val.sub_variants),
                )
                for val in v.values
            ],
        )
        for v in variants or []
    ]
