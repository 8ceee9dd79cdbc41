# services/product_repo.py
#
# Persistence for product rows. The variant tree is stored as opaque JSON in
# the `variants` column; nothing on the database side enforces its shape, so
# every read goes back through clean_variants before use.

import logging
from typing import Any, Dict, List

from config import get_settings
from services.supabase_client import get_client
from services.variant_aggregator import inventory_key
from services.variant_tree import Variant, variants_to_json

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, sku, minimum_quantity, value, is_active, company_id, variants, companies(name, client_code)"


class ProductNotFound(LookupError):
    pass


def _products():
    return get_client().from_(get_settings().PRODUCTS_TABLE)


def get_product(product_id: str) -> dict:
    resp = _products().select(PRODUCT_COLUMNS).eq("id", product_id).limit(1).execute()
    rows = resp.data or []
    if not rows:
        raise ProductNotFound(f"Product {product_id} not found")
    return rows[0]


def load_variants(product_id: str) -> Any:
    """Raw stored tree (possibly None or malformed legacy data)."""
    return get_product(product_id).get("variants")


def save_variants(product_id: str, variants: List[Variant]) -> dict:
    """
    Replace the whole tree in one update. Partial writes of a subtree are not
    supported: concurrent editors each send the full tree and the last write wins.
    """
    payload = {"variants": variants_to_json(variants)}
    resp = _products().update(payload).eq("id", product_id).execute()
    rows = resp.data or []
    if not rows:
        raise ProductNotFound(f"Product {product_id} not found")
    logger.info(f"[ProductRepo] saved variant tree for product {product_id} ({len(variants)} top-level variants)")
    return rows[0]


def list_products(company_id: str | None = None, active_only: bool = True, limit: int = 1000) -> List[dict]:
    q = _products().select(PRODUCT_COLUMNS).limit(limit)
    if company_id:
        q = q.eq("company_id", company_id)
    if active_only:
        q = q.eq("is_active", True)
    resp = q.execute()
    return resp.data or []


def on_hand_quantities(product_ids: List[str] | None = None, company_id: str | None = None) -> Dict[str, int]:
    """
    On-hand inventory keyed like variant_aggregator.inventory_key.
    `<product>` holds the total of all rows for the product, variant rows are
    also summed under `<product>:<attribute>:<value>`.
    """
    q = get_client().from_(get_settings().INVENTORY_TABLE).select(
        "product_id, quantity, variant_attribute, variant_value"
    )
    if product_ids:
        q = q.in_("product_id", product_ids)
    if company_id:
        q = q.eq("company_id", company_id)
    resp = q.execute()

    totals: Dict[str, int] = {}
    for row in resp.data or []:
        product_id = str(row.get("product_id"))
        try:
            quantity = int(row.get("quantity") or 0)
        except (TypeError, ValueError):
            logger.warning(f"[ProductRepo] skipping inventory row with bad quantity: {row}")
            continue
        totals[product_id] = totals.get(product_id, 0) + quantity
        key = inventory_key(product_id, row.get("variant_attribute"), row.get("variant_value"))
        if key != product_id:
            totals[key] = totals.get(key, 0) + quantity
    return totals
