"""
FastAPI application factory and configuration.

This module creates and configures the FastAPI application with
middleware, error handling and the board routes.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ...application.container import Container
from ...application.startup import ApplicationStartup
from ...infrastructure.config.models import ApplicationConfig
from .middleware import ErrorHandlerMiddleware, register_error_handlers
from .routers import board, files, health, push, uploads


def _make_lifespan(startup: Optional[ApplicationStartup]) -> Any:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        Application lifespan manager.

        Starts the board components inside the server's event loop and
        stops them on shutdown.
        """
        logger.info("Application starting up...")
        if startup is not None:
            await startup.start_application()

        try:
            yield
        finally:
            if startup is not None:
                await startup.stop_application()
            logger.info("Application shutting down...")

    return lifespan


def create_app(
    container: Container,
    config: ApplicationConfig,
    startup: Optional[ApplicationStartup] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Dependency injection container
        config: Application configuration
        startup: Startup coordinator whose components follow the app lifespan

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=config.name,
        version=config.version,
        description="Shared clipboard board for text snippets and files",
        debug=config.debug,
        lifespan=_make_lifespan(startup)
    )

    app.state.container = container
    app.state.config = config

    _configure_middleware(app, config)
    register_error_handlers(app)
    _register_routes(app, config.server.prefix)

    logger.info(f"FastAPI application created: {config.name} v{config.version}")
    return app


def _configure_middleware(app: FastAPI, config: ApplicationConfig) -> None:
    """Configure application middleware."""
    app.add_middleware(ErrorHandlerMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Accept-Ranges", "Content-Disposition"],
    )

    logger.debug("Middleware configured")


def _register_routes(app: FastAPI, prefix: str) -> None:
    """Register API routes under the configured prefix."""
    app.include_router(board.router, prefix=prefix, tags=["board"])
    app.include_router(uploads.router, prefix=prefix, tags=["uploads"])
    app.include_router(files.router, prefix=prefix, tags=["files"])
    app.include_router(push.router, prefix=prefix, tags=["push"])
    app.include_router(health.router, prefix=f"{prefix}/health", tags=["health"])

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with basic application information."""
        return {
            "name": app.title,
            "version": app.version,
            "status": "running",
            "server_url": f"{prefix}/server",
            "health_url": f"{prefix}/health"
        }

    logger.debug("Routes registered")
