from muse_cache.api.routes.admin import router as admin_router
from muse_cache.api.routes.health import router as health_router

__all__ = ["admin_router", "health_router"]
