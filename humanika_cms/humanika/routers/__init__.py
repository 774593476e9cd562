"""API routers."""
from humanika.routers.health_router import router as health_router
from humanika.routers.approvals_router import router as approvals_router
from humanika.routers.assets_router import router as assets_router
from humanika.routers.audit_router import router as audit_router

__all__ = [
    "health_router",
    "approvals_router",
    "assets_router",
    "audit_router",
]
