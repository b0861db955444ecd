from .posts import router as posts_router
from .health import router as health_router

__all__ = [
    "posts_router",
    "health_router",
]
