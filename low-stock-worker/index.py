# index.py

import os
import sys
from dotenv import load_dotenv

# Ensure parent directory (project root) is in path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

load_dotenv()

from services import notification_service
from tasks.cron_tasks import run_low_stock_scan

if __name__ == "__main__":
    try:
        low, critical = run_low_stock_scan(os.getenv("LOW_STOCK_COMPANY_ID") or None)
        print(f"✅ Low-stock scan complete: low={low}, critical={critical}")
        sys.exit(0)
    except Exception as e:
        notification_service.notify_critical_error(e, {"context": "Scheduled low-stock scan"})
        print(f"❌ Low-stock scan failed: {e}")
        sys.exit(1)
