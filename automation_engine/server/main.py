"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS),
and includes all API routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from automation_engine import __version__
from automation_engine.core.logging_config import get_logger, setup_logging

from .api.v1 import executions, health, platforms, runs
from .core import constant
from .core.config import settings
from .core.database import init_db
from .exception_handlers.global_handler import setup_exception_handlers

# Initialize logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    try:
        logger.info("Starting up Automation Engine Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down Automation Engine Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Automation Engine API

    Executes automation blueprints against third-party platforms discovered at runtime,
    exposes live run progress, and tests platform credentials.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(executions.router, prefix=f"{constant.API_V1_STR}/executions", tags=["executions"])
app.include_router(runs.router, prefix=f"{constant.API_V1_STR}/runs", tags=["runs"])
app.include_router(platforms.router, prefix=f"{constant.API_V1_STR}/platforms", tags=["platforms"])


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    uvicorn.run(app, host=settings.server_host, port=settings.server_port, log_level=settings.log_level.lower())
