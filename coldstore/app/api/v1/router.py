from fastapi import APIRouter

from coldstore.app.api.v1.endpoints.health import router as health_router
from coldstore.app.api.v1.endpoints.dashboard import router as dashboard_router
from coldstore.app.api.v1.endpoints.products import router as products_router
from coldstore.app.api.v1.endpoints.suppliers import router as suppliers_router
from coldstore.app.api.v1.endpoints.customers import router as customers_router
from coldstore.app.api.v1.endpoints.locations import router as locations_router
from coldstore.app.api.v1.endpoints.inbound import router as inbound_router
from coldstore.app.api.v1.endpoints.outbound import router as outbound_router
from coldstore.app.api.v1.endpoints.inventory import router as inventory_router
from coldstore.app.api.v1.endpoints.stock_movements import router as stock_movements_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(dashboard_router, tags=["dashboard"])
router.include_router(products_router, tags=["products"])
router.include_router(suppliers_router, tags=["suppliers"])
router.include_router(customers_router, tags=["customers"])
router.include_router(locations_router, tags=["locations"])
router.include_router(inbound_router, tags=["inbound"])
router.include_router(outbound_router, tags=["outbound"])
router.include_router(inventory_router, tags=["inventory"])
router.include_router(stock_movements_router, tags=["stock_movements"])
