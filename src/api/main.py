"""
Application entry point.

Builds the FastAPI app: logging, the PostgreSQL pool lifecycle, the
request deadline and the versioned router. Run with
``uvicorn src.api.main:app``.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.api.middleware import RequestTimeoutMiddleware
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "v1",
        "description": "Accounts, OTP verification, profiles, teams, payments "
        "and admin reports",
    },
]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the pool and migrate before serving; close the pool on shutdown."""
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "Opening connection pool (min=%d, max=%d)",
        settings.pool_min_size,
        settings.pool_max_size,
    )
    with ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    ) as pool:
        run_migrations(pool)
        app.state.pool = pool
        logger.info("Ready to serve requests")

        yield

        logger.info("Shutting down, closing connection pool")


app = FastAPI(
    title="itfest-registration",
    description="Competition Registration API - Email OTP verified accounts, "
    "teams, payment proofs and competition enrollment",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_middleware(
    RequestTimeoutMiddleware,
    timeout_seconds=get_settings().request_timeout_seconds,
)

app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request):
    """Report 200 when the database answers, 503 otherwise."""
    try:
        with request.app.state.pool.connection() as conn:
            conn.execute("SELECT 1")
    except psycopg.Error as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy"},
        )

    return {"status": "healthy"}
