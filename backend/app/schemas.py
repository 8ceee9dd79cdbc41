# backend/app/schemas.py

from typing import Any, Optional, List
from pydantic import BaseModel, Field

from services.variant_aggregator import BreakdownRow, LowStockItem
from services.variant_editor import EditCommand
from services.variant_tree import Variant


# ---------------------------------------------------------------------------
# STATELESS TREE OPERATIONS
# Used by the product form / import dialog, which hold the tree client-side.
# `variants` is loosely typed on purpose: import payloads and legacy rows can
# carry strings, nulls or half-filled objects.
# ---------------------------------------------------------------------------

class ValidateRequest(BaseModel):
    name: Any = None
    variants: Any = None
    quantity: Any = None
    max_depth: Optional[int] = Field(default=None, ge=1)


class CleanRequest(BaseModel):
    variants: Any = None
    max_depth: Optional[int] = Field(default=None, ge=1)


class BreakdownRequest(BaseModel):
    variants: Any = None


class BreakdownResponse(BaseModel):
    total: int
    has_nested: bool
    rows: List[BreakdownRow] = []


# ---------------------------------------------------------------------------
# EDITOR
# One command per request; the response is the whole new tree.
# ---------------------------------------------------------------------------

class EditRequest(BaseModel):
    variants: List[Variant] = Field(default_factory=list)
    command: EditCommand
    max_depth: Optional[int] = Field(default=None, ge=1)


class EditResponse(BaseModel):
    variants: List[Variant] = []
    total: int = 0


# ---------------------------------------------------------------------------
# STORED PRODUCTS
# ---------------------------------------------------------------------------

class ProductVariantsResponse(BaseModel):
    product_id: str
    variants: List[Variant] = []
    total: int = 0
    rows: List[BreakdownRow] = []


class SaveVariantsRequest(BaseModel):
    variants: Any = None


class ProductStockResponse(BaseModel):
    product_id: str
    quantity: int
    on_hand: int = 0
    source: str                             # "variants" or "inventory"


# ---------------------------------------------------------------------------
# ADMIN
# ---------------------------------------------------------------------------

class LowStockResponse(BaseModel):
    items: List[LowStockItem] = []
    critical: int = 0


class ExportRequest(BaseModel):
    company_id: Optional[str] = None
    product_ids: Optional[List[str]] = None
    title: str = "Product Catalog"
    client_name: Optional[str] = None
    client_code: Optional[str] = None
    is_admin: bool = True
