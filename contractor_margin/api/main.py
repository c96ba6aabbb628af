"""FastAPI application factory and server entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .config import ApiSettings
from .deps.providers import get_record_store, get_settings, set_settings
from .errors import register_error_handlers

logger = logging.getLogger(__name__)


def configure_logging(settings: ApiSettings) -> None:
    """Apply the structured/json log format from engine config."""
    from ..config import LOG_FORMAT, LOG_LEVEL

    level_name = settings.log_level or LOG_LEVEL
    effective_level = getattr(logging, level_name.upper(), logging.INFO)

    if LOG_FORMAT == "json":
        fmt = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
    else:
        fmt = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

    logging.basicConfig(
        level=effective_level,
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings: ApiSettings = get_settings()
    configure_logging(settings)
    logger.info("Starting contractor_margin API on %s:%s", settings.host, settings.port)

    # Run config validation on startup
    from ..config import validate_config

    issues = validate_config()
    for issue in issues:
        msg = issue.get("message", "")
        if issue.get("level", "WARNING") == "ERROR":
            logger.error("Config validation: %s", msg)
        else:
            logger.warning("Config validation: %s", msg)
    if not issues:
        logger.info("Config validation: all checks passed")

    store = get_record_store()
    await store.initialize()

    yield

    await store.close()
    logger.info("Shutting down contractor_margin API")


def create_app(settings: ApiSettings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = get_settings()
    else:
        set_settings(settings)

    app = FastAPI(
        title="Contractor Margin API",
        description="Per-job labor, material and margin tracking for trade contractors, with REST resources and a tool-call endpoint.",
        version=__version__,
        lifespan=_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    allow_creds = "*" not in origins
    if not allow_creds:
        logger.warning(
            "CORS origins contain '*'. Credentials will NOT be allowed. "
            "Set explicit origins for credentialed cross-origin requests."
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_creds,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    register_error_handlers(app)

    from .routers import all_routers

    for router in all_routers():
        app.include_router(router)

    return app


def run_server() -> None:
    """CLI entry point: ``python -m contractor_margin.api.main``."""
    import uvicorn

    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run_server()
