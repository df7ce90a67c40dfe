"""FastAPI server exposing a registry of health checks."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from healthpoint.api.health_routes import build_health_router, health_error_handler
from healthpoint.config import settings
from healthpoint.demo import DEFAULT_CHECK, build_demo_registry
from healthpoint.health.errors import HealthCheckError
from healthpoint.health.registry import HealthCheckRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the served checks at startup."""
    logger.info(
        "Health endpoints ready: %d checks under %s",
        len(app.state.registry), settings.health_prefix,
    )
    yield


def create_app(registry: HealthCheckRegistry | None = None) -> FastAPI:
    """Create the application; without ``registry`` the demo checks are served."""
    app = FastAPI(
        title="healthpoint - Health Check Endpoints",
        version="0.1.0",
        lifespan=lifespan,
    )

    if registry is None:
        registry = build_demo_registry()
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(HealthCheckError, health_error_handler)

    default_check = DEFAULT_CHECK if DEFAULT_CHECK in registry else None
    app.include_router(
        build_health_router(registry, default_check=default_check),
        prefix=settings.health_prefix,
    )

    return app


app = create_app()
