"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures logging,
routes, exception handlers, and other application-level concerns.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from offercraft.core.config import settings
from offercraft.core.exceptions import AppException
from offercraft.core.exception_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)
from offercraft.api import clients, offers, payments, public, templates, versions


def configure_logging() -> None:
    """Configure root logging from settings.LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations
    and makes it possible to create multiple app instances if needed.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Offer authoring, versioning, sending and e-signature API",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Register exception handlers
    # WHY: One error body format ({error, message, details}) for every failure
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Configure CORS
    # WHY: The frontend (and its public share pages) runs on a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHY: Allows load balancers and monitoring to verify service health
        without checking authentication or database connectivity.
        """
        return {"status": "healthy", "version": "0.1.0"}

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.PROJECT_NAME,
            "version": "0.1.0",
            "docs": "/api/docs",
        }

    # Register API routers
    # WHY: Organizing routes in separate modules improves maintainability
    app.include_router(offers.router, prefix=settings.API_V1_PREFIX)
    app.include_router(versions.router, prefix=settings.API_V1_PREFIX)
    app.include_router(payments.router, prefix=settings.API_V1_PREFIX)
    app.include_router(templates.router, prefix=settings.API_V1_PREFIX)
    app.include_router(clients.router, prefix=settings.API_V1_PREFIX)
    app.include_router(public.router, prefix=settings.API_V1_PREFIX)

    return app


# Create application instance
app = create_app()
