# services/notification_service.py
#
# Alerts go to the log stream; the dashboard feed tails it. Each line carries a
# level tag so the feed can colour it.

import logging
from typing import Optional

logger = logging.getLogger(__name__)

_LOG_BY_LEVEL = {
    "info": logger.info,
    "warning": logger.warning,
    "error": logger.error,
}

def notify(level: str, title: str, message: str, context: Optional[dict] = None):
    """
    Emit one alert line. `level` is "info", "warning" or "error"; anything
    else is logged as info.
    """
    line = f"[{level.upper()}] {title}: {message}"
    if context:
        line += " | " + ", ".join(f"{k}={v}" for k, v in context.items())
    _LOG_BY_LEVEL.get(level, logger.info)(line)

def notify_low_stock(item) -> None:
    """Low-stock alert for one LowStockItem; critical items are raised as errors."""
    where = f" ({item.variant_path})" if item.variant_path else ""
    notify(
        "error" if item.is_critical else "warning",
        "Critical Stock" if item.is_critical else "Low Stock",
        f"{item.product_name}{where}: {item.current_stock} on hand, minimum {item.minimum_quantity}",
        {"product_id": item.product_id, "sku": item.sku},
    )

def notify_scan_summary(low: int, critical: int, company_id: Optional[str] = None) -> None:
    if not low:
        notify("info", "Low-stock scan", "all products above their minimums", {"company_id": company_id})
        return
    notify(
        "error" if critical else "warning",
        "Low-stock scan",
        f"{low} items low, {critical} critical",
        {"company_id": company_id},
    )

def notify_critical_error(exception: Exception, context: dict = None):
    """Unhandled failure in a scheduled job."""
    logger.error("🔴 Critical Error: %s: %s", type(exception).__name__, exception)
    if context:
        logger.error("Context: %s", context)
