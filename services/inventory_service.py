# /services/inventory_service.py

import logging
from typing import List, Optional

from services import notification_service, product_repo
from services.product_validation import clean_variants
from services.variant_aggregator import (
    LowStockItem,
    calculate_nested_variant_quantity,
    effective_quantity,
    find_low_stock,
    inventory_key,
)

logger = logging.getLogger(__name__)


def get_product_quantity(product_id: str) -> dict:
    """
    Effective stock for one product.
    Prefer the variant tree total; when the tree is empty or sums to 0 fall back
    to the on-hand inventory rows for the product.
    """
    product = product_repo.get_product(product_id)
    variants = clean_variants(product.get("variants"))
    on_hand = product_repo.on_hand_quantities(product_ids=[product_id])
    on_hand_qty = on_hand.get(inventory_key(product_id))
    quantity = effective_quantity(variants, on_hand_qty)
    variant_total = calculate_nested_variant_quantity(variants)

    logger.info(f"[InventoryService] product {product_id} effective quantity={quantity} (on_hand={on_hand_qty})")
    return {
        "product_id": product_id,
        "quantity": quantity,
        "on_hand": on_hand_qty or 0,
        "source": "variants" if variant_total > 0 else "inventory",
    }


def scan_low_stock(company_id: Optional[str] = None, notify: bool = False) -> List[LowStockItem]:
    """
    Check active products (optionally for one client company) against their
    product-level and per-variant reorder thresholds.
    """
    # stored trees are not trusted; clean before checking thresholds
    products = [
        {**p, "variants": clean_variants(p.get("variants"))}
        for p in product_repo.list_products(company_id=company_id, active_only=True)
    ]
    on_hand = product_repo.on_hand_quantities(company_id=company_id)
    items = find_low_stock(products, on_hand)

    critical = sum(1 for i in items if i.is_critical)
    logger.info(f"[LowStock] scanned {len(products)} products: {len(items)} low, {critical} critical (company={company_id})")

    if notify:
        for item in items:
            notification_service.notify_low_stock(item)
        notification_service.notify_scan_summary(len(items), critical, company_id)
    return items
