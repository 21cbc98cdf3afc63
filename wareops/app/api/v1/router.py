from fastapi import APIRouter

from wareops.app.api.v1.endpoints.health import router as health_router
from wareops.app.api.v1.endpoints.clients import router as clients_router
from wareops.app.api.v1.endpoints.suppliers import router as suppliers_router
from wareops.app.api.v1.endpoints.products import router as products_router
from wareops.app.api.v1.endpoints.orders import router as orders_router
from wareops.app.api.v1.endpoints.issuances import router as issuances_router
from wareops.app.api.v1.endpoints.backorders import router as backorders_router
from wareops.app.api.v1.endpoints.purchase_orders import router as purchase_orders_router
from wareops.app.api.v1.endpoints.reconciliation import router as reconciliation_router
from wareops.app.api.v1.endpoints.notifications import router as notifications_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(clients_router, tags=["clients"])
router.include_router(suppliers_router, tags=["suppliers"])
router.include_router(products_router, tags=["products"])
router.include_router(orders_router, tags=["orders"])
router.include_router(issuances_router, tags=["issuances"])
router.include_router(backorders_router, tags=["backorders"])
router.include_router(purchase_orders_router, tags=["purchase_orders"])
router.include_router(reconciliation_router, tags=["reconciliation"])
router.include_router(notifications_router, tags=["notifications"])
