"""Check definitions file — loads checks.yaml into registered HealthChecks.

Example::

    checks:
      - name: api
        type: http
        description: Public API
        url: https://api.example.com/health
        expected_status: 200
        timeout_ms: 5000
      - name: db-port
        type: tcp
        hostname: db.internal
        port: 5432
        time_format: unix
      - name: maintenance
        type: static
        status: unknown
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import yaml

from .check import HealthCheck, Probe
from .enums import Status
from .errors import ConfigurationError, DuplicateNameError
from .probes import dns_probe, http_probe, static_probe, tcp_probe
from .registry import HealthCheckRegistry
from .uptime import UptimeFn, process_uptime

logger = logging.getLogger(__name__)


# ── Data model ───────────────────────────────────────────────────────────────


@dataclass
class CheckDef:
    """Definition of a single check from the definitions file."""

    name: str
    type: str = "http"  # http | tcp | dns | static
    description: str | None = None
    time_format: str | None = None
    url: str = ""
    method: str = "GET"
    expected_status: int = 200
    hostname: str = ""
    port: int = 443
    timeout_ms: int = 10_000
    status: str = "healthy"  # for static checks
    status_code: int | None = None  # for static checks


# ── Probe dispatch ───────────────────────────────────────────────────────────


PROBE_BUILDERS: dict[str, Callable[[CheckDef, httpx.AsyncClient | None], Probe]] = {
    "http": lambda d, client: http_probe(
        d.url, d.method, d.expected_status, d.timeout_ms, client=client,
    ),
    "tcp": lambda d, _: tcp_probe(d.hostname, d.port, d.timeout_ms),
    "dns": lambda d, _: dns_probe(d.hostname, d.timeout_ms),
    "static": lambda d, _: static_probe(d.status, d.status_code),
}

_REQUIRED_FIELDS = {
    "http": ("url",),
    "tcp": ("hostname",),
    "dns": ("hostname",),
    "static": (),
}


def build_check(
    defn: CheckDef,
    client: httpx.AsyncClient | None = None,
    uptime: UptimeFn = process_uptime,
) -> HealthCheck:
    """Create a HealthCheck for ``defn`` with the probe matching its type."""
    builder = PROBE_BUILDERS.get(defn.type)
    if builder is None:
        raise ConfigurationError(
            f"Check '{defn.name}': unknown type {defn.type!r}. "
            f"Must be one of: {', '.join(PROBE_BUILDERS)}."
        )
    return HealthCheck(
        description=defn.description,
        time_format=defn.time_format,
        probe=builder(defn, client),
        uptime=uptime,
    )


# ── Parsers ──────────────────────────────────────────────────────────────────


def _parse_check_def(raw: Any) -> CheckDef:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Check entry must be a mapping, got {type(raw).__name__}")

    name = str(raw.get("name") or "").strip()
    if not name:
        raise ConfigurationError("Check entry is missing 'name'")

    check_type = raw.get("type", "http")
    if check_type not in PROBE_BUILDERS:
        raise ConfigurationError(
            f"Check '{name}': unknown type {check_type!r}. "
            f"Must be one of: {', '.join(PROBE_BUILDERS)}."
        )
    for required in _REQUIRED_FIELDS[check_type]:
        if not raw.get(required):
            raise ConfigurationError(f"Check '{name}': '{required}' is required for {check_type} checks")

    status = str(raw.get("status", "healthy")).lower()
    if status not in {s.value for s in Status}:
        raise ConfigurationError(f"Check '{name}': invalid status {status!r}")

    return CheckDef(
        name=name,
        type=check_type,
        description=raw.get("description"),
        time_format=raw.get("time_format"),
        url=raw.get("url", ""),
        method=str(raw.get("method", "GET")).upper(),
        expected_status=raw.get("expected_status", 200),
        hostname=raw.get("hostname", ""),
        port=raw.get("port", 443),
        timeout_ms=raw.get("timeout_ms", 10_000),
        status=status,
        status_code=raw.get("status_code"),
    )


def parse_check_defs(raw: dict[str, Any] | None) -> list[CheckDef]:
    """Parse the decoded YAML document into CheckDefs, rejecting duplicate names."""
    defs: list[CheckDef] = []
    seen: set[str] = set()
    for entry in (raw or {}).get("checks") or []:
        defn = _parse_check_def(entry)
        if defn.name in seen:
            raise ConfigurationError(f"Duplicate check name '{defn.name}' in definitions")
        seen.add(defn.name)
        defs.append(defn)
    return defs


def load_check_defs(path: Path) -> list[CheckDef]:
    """Read and parse a checks YAML file."""
    if not path.exists():
        raise ConfigurationError(f"Checks file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping with a 'checks' list")

    defs = parse_check_defs(raw)
    logger.info("Loaded %d check definitions from %s", len(defs), path)
    return defs


def register_from_file(
    registry: HealthCheckRegistry,
    path: Path,
    client: httpx.AsyncClient | None = None,
    uptime: UptimeFn = process_uptime,
) -> list[str]:
    """Build and register every check in ``path``; returns the registered names.

    All definitions are built before any is registered, so a bad entry leaves
    the registry untouched.
    """
    built = [(d.name, build_check(d, client=client, uptime=uptime)) for d in load_check_defs(path)]
    for name, _ in built:
        if name in registry:
            raise DuplicateNameError(name)
    for name, check in built:
        registry.register(name, check)
    return [name for name, _ in built]
