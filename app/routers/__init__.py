# app/routers/__init__.py

from .auth.auth_router import router as auth_router
from .auth.activity_router import router as activity_router

from .crm.lead_router import router as lead_router

from .sales.quotation_router import router as quotation_router
from .sales.sales_order_router import router as sales_order_router

from .purchasing.purchase_order_router import router as purchase_order_router


__all__ = [
    "auth_router",
    "activity_router",

    "lead_router",

    "quotation_router",
    "sales_order_router",

    "purchase_order_router",
]
