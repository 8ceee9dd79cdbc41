# services/variant_editor.py
#
# Edit operations behind the nested variant editor. Every operation takes a
# tree and returns a new one; inputs are never mutated.
#
# Addressing: a "list path" is a tuple of (variant_index, value_index) pairs
# leading from the root list down to a sub-variant list.
#   ()      → the top-level variants
#   (0, 1)  → subVariants of value 1 of variant 0
# Depth of a list is len(path) // 2.

import logging
from typing import Annotated, Any, Callable, FrozenSet, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from config import get_settings
from services.variant_tree import Variant, VariantValue, new_value, new_variant

logger = logging.getLogger(__name__)

Path = Tuple[int, ...]

UPDATABLE_VARIANT_FIELDS = ("attribute", "sku")
UPDATABLE_VALUE_FIELDS = {
    "value": "value",
    "quantity": "quantity",
    "sku": "sku",
    "minimumQuantity": "minimum_quantity",
    "minimum_quantity": "minimum_quantity",
}


class VariantPathError(IndexError):
    """Raised when a path or index does not address an existing node."""


# ---------------------------------------------------------------------------
# Path plumbing
# ---------------------------------------------------------------------------

def _at(items: Sequence, index: int, what: str):
    if not isinstance(index, int) or index < 0 or index >= len(items):
        raise VariantPathError(f"{what} index {index} out of range (size {len(items)})")
    return items[index]


def _validate_path(path: Sequence[int]) -> Path:
    path = tuple(path or ())
    if len(path) % 2:
        raise VariantPathError(f"path must be (variant, value) pairs, got {path}")
    return path


def depth_of(path: Sequence[int]) -> int:
    return len(_validate_path(path)) // 2


def _update_list(
    variants: List[Variant],
    path: Path,
    fn: Callable[[List[Variant]], List[Variant]],
) -> List[Variant]:
    """Rebuild the spine from the root to the addressed list, applying fn there."""
    if not path:
        return fn(list(variants))

    vi, vj = path[0], path[1]
    variant = _at(variants, vi, "variant")
    value = _at(variant.values, vj, "value")

    new_children = _update_list(value.sub_variants, path[2:], fn)
    new_values = list(variant.values)
    new_values[vj] = value.model_copy(update={"sub_variants": new_children})

    updated = list(variants)
    updated[vi] = variant.model_copy(update={"values": new_values})
    return updated


def _update_values(
    variants: List[Variant],
    path: Path,
    variant_index: int,
    fn: Callable[[List[VariantValue]], List[VariantValue]],
) -> List[Variant]:
    def apply(items: List[Variant]) -> List[Variant]:
        variant = _at(items, variant_index, "variant")
        items[variant_index] = variant.model_copy(update={"values": fn(list(variant.values))})
        return items

    return _update_list(variants, path, apply)


def _resolve_max_depth(max_depth: Optional[int]) -> int:
    return max_depth if max_depth is not None else get_settings().VARIANT_MAX_DEPTH


def can_add_sub_variants(depth: int, max_depth: Optional[int] = None) -> bool:
    # with max_depth=3 nesting is allowed from depth 0 and 1; depth 2 is leaves only
    return depth < _resolve_max_depth(max_depth) - 1


def can_remove_value(variants: List[Variant], variant_index: int, path: Sequence[int] = ()) -> bool:
    """The editor only offers "remove value" while at least two values remain."""
    path = _validate_path(path)
    target = variants
    for vi, vj in zip(path[::2], path[1::2]):
        target = _at(_at(target, vi, "variant").values, vj, "value").sub_variants
    return len(_at(target, variant_index, "variant").values) > 1


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def add_variant(variants: List[Variant], path: Sequence[int] = (), max_depth: Optional[int] = None) -> List[Variant]:
    path = _validate_path(path)
    if path:
        # a list below a value: same rules as add_sub_variant (ceiling, quantity reset)
        return add_sub_variant(variants, path[-2], path[-1], path[:-2], max_depth)
    return _update_list(variants, path, lambda items: items + [new_variant()])


def remove_variant(variants: List[Variant], index: int, path: Sequence[int] = ()) -> List[Variant]:
    def apply(items: List[Variant]) -> List[Variant]:
        _at(items, index, "variant")
        return items[:index] + items[index + 1:]

    return _update_list(variants, _validate_path(path), apply)


def update_variant(
    variants: List[Variant],
    index: int,
    field: str,
    value: Any,
    path: Sequence[int] = (),
) -> List[Variant]:
    if field not in UPDATABLE_VARIANT_FIELDS:
        raise ValueError(f"Variant field '{field}' cannot be edited")
    if field == "attribute" and value is None:
        value = ""

    def apply(items: List[Variant]) -> List[Variant]:
        variant = _at(items, index, "variant")
        items[index] = variant.model_copy(update={field: value})
        return items

    return _update_list(variants, _validate_path(path), apply)


def add_value(variants: List[Variant], variant_index: int, path: Sequence[int] = ()) -> List[Variant]:
    return _update_values(variants, _validate_path(path), variant_index, lambda values: values + [new_value()])


def remove_value(
    variants: List[Variant],
    variant_index: int,
    value_index: int,
    path: Sequence[int] = (),
) -> List[Variant]:
    """
    Drop one value. Does not refuse to remove the last one; callers are
    expected to check can_remove_value first.
    """
    def apply(values: List[VariantValue]) -> List[VariantValue]:
        _at(values, value_index, "value")
        return values[:value_index] + values[value_index + 1:]

    return _update_values(variants, _validate_path(path), variant_index, apply)


def update_value(
    variants: List[Variant],
    variant_index: int,
    value_index: int,
    updates: Mapping[str, Any],
    path: Sequence[int] = (),
) -> List[Variant]:
    """
    Merge partial updates (value, quantity, sku, minimumQuantity) into one value.
    The merged value is re-validated, so a negative quantity raises a pydantic
    ValidationError. Sub-variants are changed only through the sub-variant ops.
    """
    unknown = [k for k in updates if k not in UPDATABLE_VALUE_FIELDS]
    if unknown:
        raise ValueError(f"Value fields {unknown} cannot be edited")
    changes = {UPDATABLE_VALUE_FIELDS[k]: v for k, v in updates.items()}

    def apply(values: List[VariantValue]) -> List[VariantValue]:
        current = _at(values, value_index, "value")
        merged = {**current.model_dump(exclude={"sub_variants"}), **changes}
        values[value_index] = VariantValue.model_validate(merged).model_copy(
            update={"sub_variants": current.sub_variants}
        )
        return values

    return _update_values(variants, _validate_path(path), variant_index, apply)


def add_sub_variant(
    variants: List[Variant],
    variant_index: int,
    value_index: int,
    path: Sequence[int] = (),
    max_depth: Optional[int] = None,
) -> List[Variant]:
    """
    Append a blank sub-variant under one value and zero that value's quantity.
    At the depth ceiling the tree is returned unchanged.
    """
    path = _validate_path(path)
    depth = len(path) // 2
    if not can_add_sub_variants(depth, max_depth):
        logger.debug(f"[VariantEditor] sub-variant refused at depth {depth} (max_depth={_resolve_max_depth(max_depth)})")
        return variants

    def apply(values: List[VariantValue]) -> List[VariantValue]:
        current = _at(values, value_index, "value")
        values[value_index] = current.model_copy(
            update={
                "quantity": 0,
                "minimum_quantity": None,
                "sub_variants": list(current.sub_variants) + [new_variant()],
            }
        )
        return values

    return _update_values(variants, path, variant_index, apply)


def remove_sub_variant(
    variants: List[Variant],
    variant_index: int,
    value_index: int,
    sub_variant_index: int,
    path: Sequence[int] = (),
) -> List[Variant]:
    # The value becomes a leaf again once its last child goes; its quantity stays 0
    child_path = _validate_path(path) + (variant_index, value_index)
    return remove_variant(variants, sub_variant_index, child_path)


def toggle_collapse(collapsed: FrozenSet[Path], value_path: Sequence[int]) -> FrozenSet[Path]:
    """
    Collapse state is UI-only and kept next to the tree, not in it.
    value_path = list path + (variant_index, value_index).
    """
    key = tuple(value_path)
    return collapsed - {key} if key in collapsed else collapsed | {key}


# ---------------------------------------------------------------------------
# Commands
# One reducer for the whole editor: apply_command(tree, command) -> tree.
# ---------------------------------------------------------------------------

class _Command(BaseModel):
    path: List[int] = Field(default_factory=list)


class AddVariant(_Command):
    type: Literal["add_variant"] = "add_variant"


class RemoveVariant(_Command):
    type: Literal["remove_variant"] = "remove_variant"
    variant_index: int


class UpdateVariant(_Command):
    type: Literal["update_variant"] = "update_variant"
    variant_index: int
    field: Literal["attribute", "sku"] = "attribute"
    value: Optional[str] = None


class AddValue(_Command):
    type: Literal["add_value"] = "add_value"
    variant_index: int


class RemoveValue(_Command):
    type: Literal["remove_value"] = "remove_value"
    variant_index: int
    value_index: int


class UpdateValue(_Command):
    type: Literal["update_value"] = "update_value"
    variant_index: int
    value_index: int
    updates: dict[str, Any] = Field(default_factory=dict)


class AddSubVariant(_Command):
    type: Literal["add_sub_variant"] = "add_sub_variant"
    variant_index: int
    value_index: int


class RemoveSubVariant(_Command):
    type: Literal["remove_sub_variant"] = "remove_sub_variant"
    variant_index: int
    value_index: int
    sub_variant_index: int


EditCommand = Annotated[
    Union[
        AddVariant,
        RemoveVariant,
        UpdateVariant,
        AddValue,
        RemoveValue,
        UpdateValue,
        AddSubVariant,
        RemoveSubVariant,
    ],
    Field(discriminator="type"),
]


def apply_command(variants: List[Variant], command: _Command, max_depth: Optional[int] = None) -> List[Variant]:
    path = command.path

    if isinstance(command, AddVariant):
        return add_variant(variants, path, max_depth)
    if isinstance(command, RemoveVariant):
        return remove_variant(variants, command.variant_index, path)
    if isinstance(command, UpdateVariant):
        return update_variant(variants, command.variant_index, command.field, command.value, path)
    if isinstance(command, AddValue):
        return add_value(variants, command.variant_index, path)
    if isinstance(command, RemoveValue):
        return remove_value(variants, command.variant_index, command.value_index, path)
    if isinstance(command, UpdateValue):
        return update_value(variants, command.variant_index, command.value_index, command.updates, path)
    if isinstance(command, AddSubVariant):
        return add_sub_variant(variants, command.variant_index, command.value_index, path, max_depth)
    if isinstance(command, RemoveSubVariant):
        return remove_sub_variant(
            variants, command.variant_index, command.value_index, command.sub_variant_index, path
        )

    raise ValueError(f"Unknown edit command: {type(command).__name__}")
