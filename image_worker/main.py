from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from . import __version__
from .api.middleware import error_handler_middleware, setup_exception_handlers
from .api.routes import api_router
from .config import settings
from .utils.logging import setup_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs or settings.env == "production",
        enable_file_logging=settings.logging_enabled,
        log_dir=settings.log_dir,
        max_log_size_mb=settings.max_log_size_mb,
        backup_count=settings.log_backup_count,
    )
    logger.info(
        "Starting API",
        app_name=settings.app_name,
        host=settings.api_host,
        port=settings.api_port,
    )

    yield

    # Shutdown
    logger.info("API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Image transformation and object-storage upload tools",
        version=__version__,
        lifespan=lifespan,
    )

    app.middleware("http")(error_handler_middleware)
    setup_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
