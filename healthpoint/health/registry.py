"""Health check registry — named checks folded into one overall verdict.

Precedence (highest first):
  UNHEALTHY    — at least one check is unhealthy
  UNKNOWN      — no checks registered, or every check is unknown
  HEALTHY      — anything else (healthy + unknown mixes included)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .check import CheckResult, HealthCheck
from .enums import STATUS_CODES, Status
from .errors import DuplicateNameError
from .uptime import UptimeFn, process_uptime

logger = logging.getLogger(__name__)


def compute_overall_status(checks: Iterable[HealthCheck]) -> Status:
    """Fold the current statuses of ``checks`` into a single status."""
    checks = list(checks)
    if any(c.is_unhealthy() for c in checks):
        return Status.UNHEALTHY
    if all(c.is_unknown() for c in checks):
        # all() of an empty sequence is True: no checks → unknown
        return Status.UNKNOWN
    return Status.HEALTHY


@dataclass
class RegistryReport:
    """Aggregate envelope returned by :meth:`HealthCheckRegistry.report`."""

    overall_status: Status
    uptime: float
    results: dict[str, CheckResult] = field(default_factory=dict)

    @property
    def overall_status_code(self) -> int:
        return STATUS_CODES[self.overall_status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallStatus": self.overall_status.value,
            "overallStatusCode": self.overall_status_code,
            "uptime": self.uptime,
            "results": {name: r.to_dict() for name, r in self.results.items()},
        }


class HealthCheckRegistry:
    """Owns a set of uniquely named checks and evaluates them together.

    Checks are registered during setup and never removed.  Evaluation fans
    out to every check concurrently on the running event loop.
    """

    def __init__(self, uptime: UptimeFn = process_uptime) -> None:
        self._checks: dict[str, HealthCheck] = {}
        self._uptime = uptime

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, check: HealthCheck) -> HealthCheck:
        """Register ``check`` under ``name``.

        Raises
        ------
        DuplicateNameError
            If ``name`` is already registered; the existing entry is kept.
        """
        if name in self._checks:
            raise DuplicateNameError(name)
        self._checks[name] = check
        logger.debug("Registered health check %r", name)
        return check

    @property
    def checks(self) -> Mapping[str, HealthCheck]:
        return MappingProxyType(self._checks)

    def get(self, name: str) -> HealthCheck | None:
        return self._checks.get(name)

    def names(self) -> list[str]:
        return list(self._checks)

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: object) -> bool:
        return name in self._checks

    def __iter__(self) -> Iterator[str]:
        return iter(self._checks)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def get_results(self) -> dict[str, CheckResult]:
        """Evaluate every check concurrently and return results by name.

        Every check is evaluated even if another one fails; once all have
        finished, the first failure in registration order is re-raised.
        """
        names = list(self._checks)
        outcomes = await asyncio.gather(
            *(self._checks[name].evaluate() for name in names),
            return_exceptions=True,
        )

        results: dict[str, CheckResult] = {}
        failure: BaseException | None = None
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Health check %r failed evaluation: %s: %s",
                    name, type(outcome).__name__, outcome,
                )
                if failure is None:
                    failure = outcome
                continue
            results[name] = outcome

        if failure is not None:
            raise failure
        return results

    def overall_status(self) -> Status:
        """Overall status from each check's most recent evaluation."""
        return compute_overall_status(self._checks.values())

    async def report(self) -> RegistryReport:
        """Evaluate all checks and build the aggregate envelope."""
        results = await self.get_results()
        overall = self.overall_status()
        logger.debug(
            "Registry evaluated %d checks: overall %s", len(results), overall.value,
        )
        return RegistryReport(
            overall_status=overall,
            uptime=self._uptime(),
            results=results,
        )

    def __repr__(self) -> str:
        return f"HealthCheckRegistry(checks={list(self._checks)})"
