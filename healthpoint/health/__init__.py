"""Health subsystem — checks, registry, probes, definitions loader."""

from .check import CheckResult, HealthCheck, ProbeResult
from .enums import STATUS_CODES, Status, TimeFormat
from .errors import ConfigurationError, DuplicateNameError, HealthCheckError, ValidationError
from .registry import HealthCheckRegistry, RegistryReport, compute_overall_status
from .uptime import process_uptime
