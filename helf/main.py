"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helf import __version__
from helf.config.settings import get_settings
from helf.core.error_handlers import domain_error_handler
from helf.core.exceptions import DomainError
from helf.core.logging import configure_logging
from helf.db.database import close_engine, init_db
from helf.middleware import RequestIDMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()

    # Startup: Initialize database
    await init_db()

    yield
    # Shutdown: Cleanup resources
    from helf.llm import cleanup_llm_provider
    await cleanup_llm_provider()

    try:
        await close_engine()
    except Exception as e:
        logger.warning(f"Failed to close database engine: {e}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Training planner with an AI assistant that proposes plans, weeks and sessions",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainError, domain_error_handler)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    # LLM health check
    @app.get("/health/llm")
    async def llm_health_check():
        """Check LLM provider availability."""
        from helf.llm import get_llm_provider

        provider = get_llm_provider()
        is_healthy = await provider.health_check()

        return {
            "status": "healthy" if is_healthy else "unhealthy",
            "provider": settings.llm_provider,
            "model": settings.openai_model,
        }

    from helf.api.routes import (
        assistant_router,
        exercises_router,
        plans_router,
        sessions_router,
    )

    app.include_router(plans_router, prefix="/plans", tags=["Plans"])
    app.include_router(sessions_router, prefix="/sessions", tags=["Sessions"])
    app.include_router(exercises_router, prefix="/exercises", tags=["Exercises"])
    app.include_router(assistant_router, prefix="/assistant", tags=["Assistant"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("helf.main:app", host="0.0.0.0", port=8000, reload=True)
