# services/product_validation.py

import logging
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from config import get_settings
from services.variant_tree import Variant, VariantValue, as_plain_tree, coerce_quantity

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 200
ATTRIBUTE_MAX_LENGTH = 50
VALUE_MAX_LENGTH = 100


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class CleanedProduct(BaseModel):
    name: str = ""
    variants: List[Variant] = Field(default_factory=list)
    quantity: int = 0


class ValidationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    errors: List[str] = Field(default_factory=list)
    cleaned_data: CleanedProduct = Field(default_factory=CleanedProduct, alias="cleanedData")


class ProductValidation(BaseModel):
    index: int
    product: Any = None
    validation: ValidationResult


class BulkValidationResult(BaseModel):
    valid: bool
    results: List[ProductValidation] = Field(default_factory=list)
    total_errors: int = 0


class IssueReport(BaseModel):
    has_issues: bool
    issues: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _text(raw: Any) -> str:
    """Trimmed string, or "" for anything that is not a string."""
    return raw.strip() if isinstance(raw, str) else ""


def _optional_text(raw: Any) -> Optional[str]:
    return _text(raw) or None


def _is_falsy_entry(val: Any) -> bool:
    # None / "" / 0 / False rows are leftovers from the form, not values
    return val is None or (not isinstance(val, (Mapping, list)) and not val)


def _as_mapping(node: Any) -> Optional[Mapping]:
    if isinstance(node, BaseModel):
        return node.model_dump(by_alias=True)
    return node if isinstance(node, Mapping) else None


def _resolve_max_depth(max_depth: Optional[int]) -> int:
    return max_depth if max_depth is not None else get_settings().VARIANT_MAX_DEPTH


def _clean_tree(
    variants: Any,
    depth: int,
    max_depth: int,
    errors: Optional[List[str]],
    prefix: str = "",
) -> List[Variant]:
    """
    Shared walk for validate_product and clean_variants.
    When `errors` is None problems are dropped silently, otherwise one message
    is recorded per offending attribute/value, scoped to its place in the tree.
    """
    report = errors.append if errors is not None else (lambda _msg: None)
    cleaned: List[Variant] = []

    for i, raw_variant in enumerate(as_plain_tree(variants)):
        variant = _as_mapping(raw_variant)
        if variant is None:
            continue

        attribute = _text(variant.get("attribute"))
        raw_values = variant.get("values")

        # Unfinished form rows (no attribute, no values) are skipped, not flagged
        if not attribute and not raw_values:
            continue

        if not attribute:
            report(f"{prefix}Variant {i + 1}: Attribute name is required")
            continue
        if len(attribute) > ATTRIBUTE_MAX_LENGTH:
            report(f'{prefix}Variant "{attribute}": Attribute name must be {ATTRIBUTE_MAX_LENGTH} characters or less')
            continue

        where = f'{prefix}Variant "{attribute}"'
        values: List[VariantValue] = []

        for j, val in enumerate(raw_values if isinstance(raw_values, list) else []):
            if _is_falsy_entry(val):
                continue
            if isinstance(val, BaseModel):
                val = val.model_dump(by_alias=True)

            if isinstance(val, str):
                label, node = val.strip(), {}
            elif isinstance(val, Mapping):
                label, node = _text(val.get("value")), val
            else:
                label, node = "", {}

            if not label:
                report(f"{where}: Value {j + 1} cannot be empty")
                continue
            if len(label) > VALUE_MAX_LENGTH:
                report(f"{where}: Value {j + 1} must be {VALUE_MAX_LENGTH} characters or less")
                continue

            raw_quantity = node.get("quantity")
            if isinstance(raw_quantity, (int, float)) and not isinstance(raw_quantity, bool) and raw_quantity < 0:
                report(f'{where}: Value "{label}" quantity must be 0 or greater')

            children: List[Variant] = []
            raw_children = node.get("subVariants")
            if isinstance(raw_children, list) and raw_children:
                if depth >= max_depth - 1:
                    report(f'{where} → "{label}": Sub-variants exceed the maximum depth of {max_depth}')
                else:
                    children = _clean_tree(
                        raw_children, depth + 1, max_depth, errors, f'{where} → "{label}" → '
                    )

            minimum = node.get("minimumQuantity")
            values.append(
                VariantValue(
                    value=label,
                    # quantity lives on leaves only
                    quantity=0 if children else coerce_quantity(raw_quantity),
                    sku=_optional_text(node.get("sku")),
                    minimum_quantity=coerce_quantity(minimum) if minimum is not None and not children else None,
                    sub_variants=children,
                )
            )

        if not values:
            report(f"{where}: At least one value is required")
            continue

        cleaned.append(Variant(attribute=attribute, values=values, sku=_optional_text(variant.get("sku"))))

    return cleaned


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_product(product: Any, max_depth: Optional[int] = None) -> ValidationResult:
    """
    Validate a product (name + variant tree) before saving.

    Never raises: any input shape, including None or a list of strings, yields
    a ValidationResult. `cleaned_data` holds what would be saved; variants and
    values that produced an error are left out of it.
    """
    errors: List[str] = []
    data = _as_mapping(product) or {}

    raw_name = data.get("name")
    name = _text(raw_name)
    if not name:
        errors.append("Product name is required and cannot be empty")
    elif len(raw_name) > NAME_MAX_LENGTH:
        errors.append(f"Product name must be less than {NAME_MAX_LENGTH} characters")

    variants = _clean_tree(data.get("variants"), 0, _resolve_max_depth(max_depth), errors)

    if errors:
        logger.debug(f"[Validation] product '{name}' has {len(errors)} errors")

    return ValidationResult(
        valid=not errors,
        errors=errors,
        cleaned_data=CleanedProduct(
            name=name,
            variants=variants,
            quantity=coerce_quantity(data.get("quantity")),
        ),
    )


def validate_products(products: Any, max_depth: Optional[int] = None) -> BulkValidationResult:
    """Bulk-import check: one ValidationResult per row plus the overall error count."""
    rows = products if isinstance(products, list) else []
    results = [
        ProductValidation(index=i, product=p, validation=validate_product(p, max_depth))
        for i, p in enumerate(rows)
    ]
    total_errors = sum(len(r.validation.errors) for r in results)
    return BulkValidationResult(valid=total_errors == 0, results=results, total_errors=total_errors)


def clean_variants(variants: Any, max_depth: Optional[int] = None) -> List[Variant]:
    """
    Same well-formedness rules as validate_product, without the error report.
    Used on import payloads and stored trees where failing hard is not wanted.
    Idempotent: cleaning an already cleaned tree returns an equal tree.
    """
    return _clean_tree(variants, 0, _resolve_max_depth(max_depth), None)


def has_product_issues(product: Any) -> IssueReport:
    """Cheap badge check: empty name, empty attribute, empty value. Deduplicated, never raises."""
    issues: List[str] = []
    data = _as_mapping(product) or {}

    if not _text(data.get("name")):
        issues.append("Empty name")

    def scan(variants: Any) -> None:
        for variant in as_plain_tree(variants):
            variant = _as_mapping(variant)
            if variant is None:
                continue
            if not _text(variant.get("attribute")):
                issues.append("Empty variant attribute")
            values = variant.get("values")
            if not isinstance(values, list):
                continue
            for val in values:
                if _is_falsy_entry(val):
                    continue
                if isinstance(val, BaseModel):
                    val = val.model_dump(by_alias=True)
                label = val if isinstance(val, str) else (val.get("value") if isinstance(val, Mapping) else None)
                if not _text(label):
                    issues.append("Empty variant value")
                if isinstance(val, Mapping):
                    scan(val.get("subVariants"))

    scan(data.get("variants"))

    deduped = list(dict.fromkeys(issues))
    return IssueReport(has_issues=bool(deduped), issues=deduped)
