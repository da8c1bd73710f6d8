"""API routers."""
from .map import router as map_router
from .proxy import router as proxy_router

__all__ = ["map_router", "proxy_router"]
