"""Ready-made async probes — HTTP(S), TCP connect, DNS resolve.

Each factory returns a zero-argument coroutine function suitable as a
``HealthCheck`` probe.  Connection errors and timeouts are raised from the
probe, which the check records as UNHEALTHY; a reachable endpoint answering
with an unexpected status reports UNHEALTHY explicitly.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from collections.abc import Awaitable, Callable

import httpx

from .check import ProbeResult
from .enums import Status

logger = logging.getLogger(__name__)

AsyncProbe = Callable[[], Awaitable[ProbeResult]]


def static_probe(
    status: Status | str = Status.HEALTHY,
    status_code: int | None = None,
) -> Callable[[], ProbeResult]:
    """Probe that always reports the same outcome."""

    def _probe() -> ProbeResult:
        return ProbeResult(status=status, status_code=status_code)

    _probe.__name__ = "static"
    return _probe


def http_probe(
    url: str,
    method: str = "GET",
    expected_status: int = 200,
    timeout_ms: int = 10_000,
    client: httpx.AsyncClient | None = None,
) -> AsyncProbe:
    """HTTP(S) probe — healthy when ``url`` answers with ``expected_status``.

    A shared ``client`` may be supplied; otherwise a short-lived client is
    opened per call.
    """

    async def _probe() -> ProbeResult:
        t0 = time.perf_counter()
        if client is not None:
            resp = await client.request(method, url, timeout=timeout_ms / 1000)
        else:
            async with httpx.AsyncClient(
                timeout=timeout_ms / 1000, follow_redirects=True,
            ) as own_client:
                resp = await own_client.request(method, url)
        latency = (time.perf_counter() - t0) * 1000

        if resp.status_code != expected_status:
            logger.info(
                "HTTP probe %s %s: expected %d, got %d (%.1fms)",
                method, url, expected_status, resp.status_code, latency,
            )
            return ProbeResult(status=Status.UNHEALTHY)

        logger.debug("HTTP probe %s %s: %d OK (%.1fms)", method, url, resp.status_code, latency)
        return ProbeResult(status=Status.HEALTHY)

    _probe.__name__ = f"http_{method.lower()}"
    return _probe


def tcp_probe(hostname: str, port: int = 443, timeout_ms: int = 5_000) -> AsyncProbe:
    """Raw TCP port connectivity probe."""

    async def _probe() -> ProbeResult:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(hostname, port), timeout=timeout_ms / 1000,
        )
        writer.close()
        await writer.wait_closed()
        logger.debug("TCP probe %s:%d open", hostname, port)
        return ProbeResult(status=Status.HEALTHY)

    _probe.__name__ = "tcp_connect"
    return _probe


def dns_probe(hostname: str, timeout_ms: int = 5_000) -> AsyncProbe:
    """DNS resolution probe — healthy when ``hostname`` resolves to any address."""

    async def _probe() -> ProbeResult:
        loop = asyncio.get_running_loop()
        addrs = await asyncio.wait_for(
            loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM),
            timeout=timeout_ms / 1000,
        )
        ips = sorted({a[4][0] for a in addrs})
        if not ips:
            return ProbeResult(status=Status.UNHEALTHY)
        logger.debug("DNS probe %s resolved to %s", hostname, ", ".join(ips[:3]))
        return ProbeResult(status=Status.HEALTHY)

    _probe.__name__ = "dns_resolve"
    return _probe
