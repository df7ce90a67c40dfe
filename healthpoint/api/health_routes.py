"""FastAPI wiring for health checks and registries.

Endpoints (mounted under a prefix, e.g. ``/health``):
  GET  {prefix}          — default check, if one is named
  GET  {prefix}/all      — every registered check plus the overall verdict
  GET  {prefix}/{name}   — a single registered check

The response status is the health status code (200 / 503 / 500), the body
is the result record.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from healthpoint.health.check import HealthCheck
from healthpoint.health.errors import ConfigurationError, HealthCheckError
from healthpoint.health.registry import HealthCheckRegistry

logger = logging.getLogger(__name__)

Endpoint = Callable[[], Awaitable[JSONResponse]]


def check_endpoint(check: HealthCheck) -> Endpoint:
    """Endpoint that evaluates ``check`` and responds with its status code."""

    async def endpoint() -> JSONResponse:
        result = await check.evaluate()
        return JSONResponse(status_code=result.status_code, content=result.to_dict())

    return endpoint


def registry_endpoint(registry: HealthCheckRegistry) -> Endpoint:
    """Endpoint that evaluates every check and responds with the overall code."""

    async def endpoint() -> JSONResponse:
        report = await registry.report()
        return JSONResponse(status_code=report.overall_status_code, content=report.to_dict())

    return endpoint


def build_health_router(
    registry: HealthCheckRegistry,
    all_path: str = "/all",
    default_check: str | None = None,
) -> APIRouter:
    """Router exposing the aggregate endpoint and one endpoint per check.

    Checks must be registered before the router is built.  A check name that
    would collide with ``all_path`` or is not a single literal path segment
    raises ConfigurationError.
    """
    for name in registry.checks:
        if f"/{name}" == all_path or any(ch in name for ch in "/{}"):
            raise ConfigurationError(
                f"Check name {name!r} cannot be served as its own endpoint"
            )

    router = APIRouter(tags=["health"])
    router.add_api_route(
        all_path, registry_endpoint(registry), methods=["GET"], name="health_all",
    )

    if default_check is not None:
        check = registry.get(default_check)
        if check is None:
            raise KeyError(f"Default check not registered: {default_check}")
        router.add_api_route(
            "", check_endpoint(check), methods=["GET"], name="health_default",
        )

    for name, check in registry.checks.items():
        router.add_api_route(
            f"/{name}", check_endpoint(check), methods=["GET"], name=f"health_{name}",
        )

    return router


async def health_error_handler(request: Request, exc: HealthCheckError) -> JSONResponse:
    """Turn a malformed probe result escaping a handler into a logged 500."""
    logger.error("Health endpoint %s failed: %s: %s", request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})
