"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from healthpoint.health.check import HealthCheck, ProbeResult
from healthpoint.health.enums import Status

FIXED_UPTIME = 42.5


@pytest.fixture
def uptime() -> Callable[[], float]:
    """Deterministic stand-in for the process uptime collaborator."""
    return lambda: FIXED_UPTIME


@pytest.fixture
def make_check(uptime):
    """Factory for checks wired to the fixed uptime.

    ``status=`` builds a probe that always reports that status (and
    ``status_code=`` if given).
    """

    def _make(status: Status | str | None = None, status_code: int | None = None, **kwargs) -> HealthCheck:
        if status is not None:
            kwargs["probe"] = lambda: ProbeResult(status=status, status_code=status_code)
        kwargs.setdefault("uptime", uptime)
        return HealthCheck(**kwargs)

    return _make
