from services import inventory_service

def run_low_stock_scan(company_id: str | None = None):
    items = inventory_service.scan_low_stock(company_id=company_id, notify=True)
    critical = sum(1 for i in items if i.is_critical)
    print(f"[low-stock] low={len(items)} critical={critical}")
    return len(items), critical

if __name__ == "__main__":
    run_low_stock_scan()
