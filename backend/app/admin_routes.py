# backend/app/admin_routes.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Header, Query, Response
from config import get_settings
from services import inventory_service, product_repo
from services.product_validation import clean_variants
from services.variant_export import build_product_list_pdf
from .schemas import ExportRequest, LowStockResponse
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

def require_admin_token(x_admin_token: str = Header(default="")):
    # simple shared-secret
    admin_token = get_settings().ADMIN_API_TOKEN
    if not admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=403, detail="Forbidden")
    return True

@router.get("/low-stock", response_model=LowStockResponse)
def low_stock_report(
    response: Response,
    ok: bool = Depends(require_admin_token),
    company_id: Optional[str] = Query(None),
):
    try:
        items = inventory_service.scan_low_stock(company_id=company_id)
    except Exception as e:
        logger.error(f"[Admin] low-stock scan failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Low-stock scan failed")

    critical = sum(1 for i in items if i.is_critical)
    logger.info(f"[Admin] /admin/low-stock -> {len(items)} items, {critical} critical (company={company_id})")

    # header for quick CLI checks
    response.headers["X-Result-Count"] = str(len(items))

    return LowStockResponse(items=items, critical=critical)

@router.post("/products/export.pdf")
def export_product_list(
    payload: ExportRequest,
    ok: bool = Depends(require_admin_token),
):
    """
    Product catalog PDF for the admin dashboard.

    - Products come from the products table (active and inactive), optionally
      narrowed to one client company and/or an explicit id list.
    - Stored variant trees are cleaned before rendering.
    - Quantities follow the usual rule: variant total first, on-hand inventory
      when the tree has no quantities.
    """
    try:
        products = product_repo.list_products(company_id=payload.company_id, active_only=False)
        if payload.product_ids:
            wanted = set(payload.product_ids)
            products = [p for p in products if str(p.get("id")) in wanted]
        products = [{**p, "variants": clean_variants(p.get("variants"))} for p in products]

        inventory = product_repo.on_hand_quantities(company_id=payload.company_id)
        pdf_bytes, filename = build_product_list_pdf(
            products,
            inventory,
            title=payload.title,
            client_name=payload.client_name,
            client_code=payload.client_code,
            is_admin=payload.is_admin,
        )
    except Exception as e:
        logger.error(f"[Admin] product list export failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Product list export failed")

    logger.info(f"[Admin] /admin/products/export.pdf -> {filename} ({len(products)} products)")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
