"""
FastAPI application entry point.
Configures routers and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mapauth.core.config import get_settings
from mapauth.core.logging import configure_logging, get_logger
from mapauth.core.redis_pool import close_redis_pool, get_redis_pool
from mapauth.modules.signatures.router import router as signatures_router
from mapauth.modules.templates.router import router as templates_router

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and release pooled Redis connections on shutdown."""
    settings = get_settings()
    logger.info(
        "starting_application",
        environment=settings.environment,
        version=settings.version,
    )

    yield

    await close_redis_pool()
    logger.info("application_shutdown_complete")


def create_application() -> FastAPI:
    """
    Application factory function.

    Creates the FastAPI application with the template and signature
    routers mounted under the versioned API prefix.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        lifespan=lifespan,
    )

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, object]:
        checks: dict[str, str] = {}
        pool = get_redis_pool()
        for label, db in (
            ("templates", settings.redis_templates_db),
            ("signatures", settings.redis_signatures_db),
        ):
            try:
                checks[label] = "ok" if await pool.ping(db) else "unavailable"
            except Exception:
                checks[label] = "unavailable"

        overall = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"
        return {"status": overall, "version": settings.version, "checks": checks}

    app.include_router(
        templates_router,
        prefix=f"{settings.api_v1_prefix}/templates",
        tags=["Templates"],
    )
    app.include_router(
        signatures_router,
        prefix=f"{settings.api_v1_prefix}/signatures",
        tags=["Signatures"],
    )

    return app


app = create_application()
