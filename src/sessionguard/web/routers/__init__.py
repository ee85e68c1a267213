from sessionguard.web.routers.sessions import router as sessions_router
from sessionguard.web.routers.statistics import router as statistics_router

__all__ = [
    "sessions_router",
    "statistics_router",
]
