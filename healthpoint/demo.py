"""Demo checks — one of each flavour, served by the demo app and `healthpoint check`."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from healthpoint.config import settings
from healthpoint.health.check import HealthCheck, ProbeResult
from healthpoint.health.enums import Status, TimeFormat
from healthpoint.health.loader import register_from_file
from healthpoint.health.probes import http_probe, static_probe
from healthpoint.health.registry import HealthCheckRegistry
from healthpoint.health.uptime import UptimeFn, process_uptime

logger = logging.getLogger(__name__)

DEFAULT_CHECK = "simple"


def build_demo_registry(
    client: httpx.AsyncClient | None = None,
    uptime: UptimeFn = process_uptime,
) -> HealthCheckRegistry:
    """Registry with one check of each flavour, plus any from ``settings.checks_file``."""
    registry = HealthCheckRegistry(uptime=uptime)

    registry.register(DEFAULT_CHECK, HealthCheck(uptime=uptime))
    registry.register("simpleUnix", HealthCheck(
        description="This is a simple check with Unix time format",
        time_format=TimeFormat.UNIX,
        uptime=uptime,
    ))
    registry.register("unhealthy", HealthCheck(
        description="This is an unhealthy check",
        probe=static_probe(Status.UNHEALTHY),
        uptime=uptime,
    ))
    registry.register("unknown", HealthCheck(
        description="This is an unknown check",
        probe=static_probe(Status.UNKNOWN),
        uptime=uptime,
    ))

    delay = settings.demo_heavy_delay_seconds

    async def heavy_task() -> ProbeResult:
        await asyncio.sleep(delay)
        return ProbeResult(status=Status.HEALTHY)

    registry.register("heavy", HealthCheck(
        description=f"Heavy task that takes {delay:g} seconds to complete",
        probe=heavy_task,
        uptime=uptime,
    ))
    registry.register("fetch", HealthCheck(
        description="Fetches data from an external API",
        probe=http_probe(
            settings.demo_fetch_url, timeout_ms=settings.probe_timeout_ms, client=client,
        ),
        uptime=uptime,
    ))

    if settings.checks_file:
        names = register_from_file(registry, Path(settings.checks_file), client=client, uptime=uptime)
        logger.info("Registered %d checks from %s", len(names), settings.checks_file)

    return registry
