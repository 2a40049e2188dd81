"""API routes module."""
from helf.api.routes.assistant import router as assistant_router
from helf.api.routes.exercises import router as exercises_router
from helf.api.routes.plans import router as plans_router
from helf.api.routes.sessions import router as sessions_router

__all__ = [
    "assistant_router",
    "exercises_router",
    "plans_router",
    "sessions_router",
]
