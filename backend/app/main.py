# backend/app/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_settings
from services.product_repo import ProductNotFound
from .routes import router as app_router
from .admin_routes import router as admin_router

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Import routers
from api import system

app = FastAPI(
    title="Warehouse Product Variants API",
    description="Nested product variant trees: validation, editing, stock totals and exports",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(system.router, tags=["System"])
app.include_router(app_router, tags=["Variants"])
app.include_router(admin_router)

@app.exception_handler(ProductNotFound)
async def product_not_found_handler(request: Request, exc: ProductNotFound):
    return JSONResponse(status_code=404, content={"detail": "Product not found"})

@app.get("/")
def root():
    return {"message": "Warehouse Product Variants API", "max_depth": settings.VARIANT_MAX_DEPTH}
