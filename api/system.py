# api/system.py

import logging
from fastapi import APIRouter, HTTPException

from config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/health")
async def health_check():
    return {"status": "ok", "max_depth": get_settings().VARIANT_MAX_DEPTH}

@router.get("/api/supabase/test")
async def test_supabase_connection():
    try:
        from services.supabase_client import get_client

        # Minimal query to confirm the products table is reachable
        settings = get_settings()
        resp = get_client().from_(settings.PRODUCTS_TABLE).select("id").limit(1).execute()

        return {
            "success": True,
            "table": settings.PRODUCTS_TABLE,
            "rows": len(resp.data or []),
        }

    except Exception as e:
        logger.error(f"Supabase test connection failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Unable to reach Supabase")
