# backend/app/routes.py

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import logging

from services import inventory_service, product_repo
from services.product_repo import ProductNotFound
from services.product_validation import clean_variants, validate_product
from services.variant_aggregator import calculate_nested_variant_quantity, get_variant_breakdown
from services.variant_editor import RemoveValue, VariantPathError, apply_command, can_remove_value
from services.variant_tree import has_nested_variants
from .schemas import (
    BreakdownRequest,
    BreakdownResponse,
    CleanRequest,
    EditRequest,
    EditResponse,
    ProductStockResponse,
    ProductVariantsResponse,
    SaveVariantsRequest,
    ValidateRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stateless tree endpoints
# ---------------------------------------------------------------------------

@router.post("/api/variants/validate")
async def validate_variants(req: ValidateRequest):
    result = validate_product(
        {"name": req.name, "variants": req.variants, "quantity": req.quantity},
        max_depth=req.max_depth,
    )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json", by_alias=True))


@router.post("/api/variants/clean")
async def clean_variant_tree(req: CleanRequest):
    variants = clean_variants(req.variants, max_depth=req.max_depth)
    return {"variants": variants}


@router.post("/api/variants/breakdown", response_model=BreakdownResponse)
async def variant_breakdown(req: BreakdownRequest):
    return BreakdownResponse(
        total=calculate_nested_variant_quantity(req.variants),
        has_nested=has_nested_variants(req.variants),
        rows=get_variant_breakdown(req.variants),
    )


@router.post("/api/variants/edit", response_model=EditResponse)
async def edit_variants(req: EditRequest):
    command = req.command
    try:
        # the editor never offers removing the last value of a variant
        if isinstance(command, RemoveValue) and not can_remove_value(req.variants, command.variant_index, command.path):
            raise HTTPException(status_code=422, detail="At least one value is required")

        variants = apply_command(req.variants, command, max_depth=req.max_depth)
        return EditResponse(variants=variants, total=calculate_nested_variant_quantity(variants))

    except HTTPException:
        raise
    except VariantPathError as e:
        logger.info(f"[VariantEditor] bad path for {command.type}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except (ValidationError, ValueError) as e:
        logger.info(f"[VariantEditor] rejected {command.type}: {e}")
        raise HTTPException(status_code=422, detail=str(e))


# ---------------------------------------------------------------------------
# Stored product trees
# ---------------------------------------------------------------------------

@router.get("/api/products/{product_id}/variants", response_model=ProductVariantsResponse)
async def get_product_variants(product_id: str):
    try:
        # storage does not enforce tree rules; re-clean on every load
        variants = clean_variants(product_repo.load_variants(product_id))
        return ProductVariantsResponse(
            product_id=product_id,
            variants=variants,
            total=calculate_nested_variant_quantity(variants),
            rows=get_variant_breakdown(variants),
        )
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    except Exception as e:
        logger.error(f"Failed to load variants for product {product_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Unable to load product variants")


@router.put("/api/products/{product_id}/variants")
async def save_product_variants(product_id: str, req: SaveVariantsRequest):
    try:
        product = product_repo.get_product(product_id)
        result = validate_product({"name": product.get("name"), "variants": req.variants})
        if not result.valid:
            logger.info(f"[ProductRepo] rejected save for product {product_id}: {len(result.errors)} errors")
            return JSONResponse(status_code=422, content={"success": False, "errors": result.errors})

        variants = result.cleaned_data.variants
        product_repo.save_variants(product_id, variants)
        return {
            "success": True,
            "product_id": product_id,
            "variants": variants,
            "total": calculate_nested_variant_quantity(variants),
        }
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    except Exception as e:
        logger.error(f"Failed to save variants for product {product_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Unable to save product variants")


@router.get("/api/products/{product_id}/stock", response_model=ProductStockResponse)
async def get_product_stock(product_id: str):
    try:
        return inventory_service.get_product_quantity(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    except Exception as e:
        logger.error(f"Failed to compute stock for product {product_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Unable to compute product stock")
