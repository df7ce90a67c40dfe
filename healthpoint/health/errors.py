"""Exceptions raised by health checks and registries."""

from __future__ import annotations


class HealthCheckError(Exception):
    """Base class for all healthpoint errors."""


class ConfigurationError(HealthCheckError):
    """Raised when a check or check definition is constructed with bad arguments."""


class ValidationError(HealthCheckError):
    """Raised when a probe completes but reports a malformed result.

    Unlike a probe that raises (which is a handled, unhealthy outcome), this
    is a defect in the probe itself and is propagated to the caller.
    """


class DuplicateNameError(HealthCheckError):
    """Raised when registering a check under a name that is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Health check with name '{name}' is already registered")
