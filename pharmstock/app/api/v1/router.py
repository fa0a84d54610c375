from fastapi import APIRouter

from pharmstock.app.api.v1.endpoints.health import router as health_router
from pharmstock.app.api.v1.endpoints.products import router as products_router
from pharmstock.app.api.v1.endpoints.inventory_adjustment import router as inventory_adjustment_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(products_router, tags=["products"])
router.include_router(inventory_adjustment_router, tags=["inventory_adjustment"])
