import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError, ProgrammingError

from adagent.config import settings
from adagent.db.base import engine
from adagent.services.media_storage import MediaStorageConfigurationError
from adagent.routers import (
    assets,
    briefs,
    campaigns,
    meta_campaigns,
    meta_connections,
)

logger = logging.getLogger(__name__)

SCHEMA_MISMATCH_MARKERS = (
    "undefined column",
    "undefined table",
    "does not exist",
    "no such column",
    "no such table",
)


def _is_schema_mismatch(exc: DBAPIError) -> bool:
    message = str(exc.orig or exc).lower()
    return any(marker in message for marker in SCHEMA_MISMATCH_MARKERS)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ad Agent API",
        default_response_class=ORJSONResponse,
    )

    allow_origins = sorted(set(settings.BACKEND_CORS_ORIGINS))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MediaStorageConfigurationError)
    async def media_storage_configuration_error_handler(
        _request: Request, exc: MediaStorageConfigurationError
    ) -> ORJSONResponse:
        return ORJSONResponse(status_code=500, content={"detail": str(exc)})

    async def database_error_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Database error", exc_info=exc)
        if _is_schema_mismatch(exc):
            return ORJSONResponse(
                status_code=503,
                content={
                    "detail": "Database schema is out of date. Run `alembic upgrade head` and redeploy."
                },
            )
        return ORJSONResponse(status_code=500, content={"detail": "Database query failed."})

    # Postgres reports missing tables and columns as ProgrammingError, SQLite as OperationalError.
    app.add_exception_handler(ProgrammingError, database_error_handler)
    app.add_exception_handler(OperationalError, database_error_handler)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(status_code=500, content={"detail": "Internal server error."})

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/db")
    def health_db() -> dict[str, str]:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return {"db": "ok"}
        except Exception as exc:  # pragma: no cover - simple runtime check
            return {"db": f"error: {exc}"}

    app.include_router(meta_connections.router)
    app.include_router(briefs.router)
    app.include_router(campaigns.router)
    app.include_router(assets.router)
    app.include_router(meta_campaigns.router)

    return app


app = create_app()
