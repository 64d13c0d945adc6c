from cardmatch.api.health import router as health_router
from cardmatch.api.sessions import router as sessions_router
from cardmatch.api.themes import router as themes_router

__all__ = [
    "health_router",
    "sessions_router",
    "themes_router",
]
