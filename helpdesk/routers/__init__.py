"""API routers."""

from helpdesk.routers.customers import router as customers_router
from helpdesk.routers.tickets import router as tickets_router
from helpdesk.routers.webhooks import router as webhooks_router

__all__ = [
    "customers_router",
    "tickets_router",
    "webhooks_router",
]
