"""Single health check — runs one probe and materialises a timestamped result.

A probe is any zero-argument callable. It may be a plain function or a
coroutine function; it returns a :class:`ProbeResult`, a mapping with
``status`` / ``statusCode`` keys, or ``None`` (meaning healthy).

Outcomes:
  - probe returns a recognised status  → that status, code from the table
    unless the probe supplied an explicit code
  - probe raises                       → UNHEALTHY / 503, never propagates
  - probe returns a malformed result   → ValidationError propagates
"""

from __future__ import annotations

import inspect
import logging
import math
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Union

from .enums import STATUS_CODES, Status, TimeFormat
from .errors import ConfigurationError, ValidationError
from .uptime import UptimeFn, process_uptime

logger = logging.getLogger(__name__)


# ── Models ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProbeResult:
    """What a probe reports: a status and an optional explicit HTTP code."""

    status: Status | str = Status.HEALTHY
    status_code: int | None = None


ProbeReturn = Union[ProbeResult, Mapping[str, Any], None]
Probe = Callable[[], Union[ProbeReturn, Awaitable[ProbeReturn]]]


@dataclass
class CheckResult:
    """Result record of one evaluation, serialisable to the JSON response body."""

    status: Status
    status_code: int
    timestamp: str | int
    process_time: float
    uptime: float
    description: str | None = None
    code_overridden: bool = False  # explicit code disagrees with the status table

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.description:
            data["description"] = self.description
        data.update({
            "status": self.status.value,
            "statusCode": self.status_code,
            "timestamp": self.timestamp,
            "processTime": self.process_time,
            "uptime": self.uptime,
        })
        return data


# ── Timestamp renderers ──────────────────────────────────────────────────────


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _render_iso(instant: datetime) -> str:
    return _as_utc(instant).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _render_utc(instant: datetime) -> str:
    return format_datetime(_as_utc(instant), usegmt=True)


def _render_unix(instant: datetime) -> int:
    return math.floor(_as_utc(instant).timestamp())


def _render_calendar(instant: datetime) -> str:
    return _as_utc(instant).astimezone().strftime("%x, %X")


TIMESTAMP_RENDERERS: Mapping[TimeFormat, Callable[[datetime], str | int]] = {
    TimeFormat.ISO: _render_iso,
    TimeFormat.UTC: _render_utc,
    TimeFormat.UNIX: _render_unix,
    TimeFormat.CALENDAR: _render_calendar,
}


# ── Probe result parsing ─────────────────────────────────────────────────────


def _default_probe() -> ProbeResult:
    return ProbeResult(status=Status.HEALTHY)


def _parse_status(value: Any) -> Status:
    if value is None or value == "":
        return Status.HEALTHY
    if not isinstance(value, str):
        raise ValidationError(
            f"Invalid status type {type(value).__name__}; expected a string"
        )
    try:
        return Status(value.lower())
    except ValueError:
        valid = ", ".join(s.value for s in Status)
        raise ValidationError(
            f"Invalid status provided: {value!r}. Must be one of: {valid}."
        ) from None


def _parse_code(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Invalid statusCode provided: {value!r}. Must be an integer."
        )
    if not 100 <= value <= 599:
        raise ValidationError(
            f"Invalid statusCode provided: {value}. Must be an HTTP status code."
        )
    return value


def parse_probe_result(raw: Any) -> tuple[Status, int | None]:
    """Normalise whatever a probe returned into ``(status, explicit_code)``."""
    if raw is None:
        status, code = None, None
    elif isinstance(raw, ProbeResult):
        status, code = raw.status, raw.status_code
    elif isinstance(raw, Mapping):
        status = raw.get("status")
        code = raw.get("statusCode", raw.get("status_code"))
    else:
        raise ValidationError(
            f"Probe returned unsupported result type {type(raw).__name__}"
        )
    return _parse_status(status), _parse_code(code)


# ── Health check ─────────────────────────────────────────────────────────────


class HealthCheck:
    """One monitored unit: a probe plus the status of its latest evaluation.

    Examples
    --------
    >>> import asyncio
    >>> check = HealthCheck(description="always ok")
    >>> result = asyncio.run(check.evaluate())
    >>> check.is_healthy(), result.status_code
    (True, 200)
    """

    def __init__(
        self,
        description: str | None = None,
        time_format: TimeFormat | str | None = None,
        probe: Probe | None = None,
        uptime: UptimeFn = process_uptime,
    ) -> None:
        if description is not None and not isinstance(description, str):
            raise ConfigurationError("Invalid description provided. Must be a string.")

        if time_format is None:
            time_format = TimeFormat.ISO
        try:
            time_format = TimeFormat(time_format)
        except ValueError:
            valid = ", ".join(f.value for f in TimeFormat)
            raise ConfigurationError(
                f"Invalid time_format provided: {time_format!r}. Must be one of: {valid}."
            ) from None

        if probe is None:
            probe = _default_probe
        _check_zero_arg_callable(probe, "probe")
        _check_zero_arg_callable(uptime, "uptime")

        self.description = description
        self.time_format: TimeFormat = time_format
        self.probe = probe
        self._uptime = uptime

        self.last_status: Status | None = None
        self.last_status_code: int | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_healthy(self) -> bool:
        return self.last_status is Status.HEALTHY

    def is_unhealthy(self) -> bool:
        return self.last_status is Status.UNHEALTHY

    def is_unknown(self) -> bool:
        return self.last_status is Status.UNKNOWN

    def render_timestamp(self, instant: datetime | None = None) -> str | int:
        """Render ``instant`` (default: now) in this check's time format.

        Naive datetimes are taken to be UTC.
        """
        if instant is None:
            instant = datetime.now(timezone.utc)
        renderer = TIMESTAMP_RENDERERS.get(self.time_format, _render_iso)
        return renderer(instant)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(self) -> CheckResult:
        """Run the probe, update ``last_status`` and return the result record.

        Raises
        ------
        ValidationError
            If the probe completed with a result outside the probe contract.
        """
        started = time.perf_counter()

        raw = await self._invoke_probe()
        if raw is _FAILED:
            status, explicit_code = Status.UNHEALTHY, None
        else:
            status, explicit_code = parse_probe_result(raw)

        code = explicit_code if explicit_code is not None else STATUS_CODES[status]
        overridden = explicit_code is not None and explicit_code != STATUS_CODES[status]
        if overridden:
            logger.warning(
                "Probe %s reported status %s with explicit code %d (table code %d)",
                self._probe_name, status.value, code, STATUS_CODES[status],
            )

        self.last_status = status
        self.last_status_code = code

        process_time = time.perf_counter() - started

        return CheckResult(
            description=self.description,
            status=status,
            status_code=code,
            timestamp=self.render_timestamp(),
            process_time=process_time,
            uptime=self._uptime(),
            code_overridden=overridden,
        )

    async def _invoke_probe(self) -> Any:
        try:
            raw = self.probe()
            if inspect.isawaitable(raw):
                raw = await raw
        except Exception as exc:
            logger.warning(
                "Probe %s failed: %s: %s", self._probe_name, type(exc).__name__, exc,
            )
            return _FAILED
        logger.debug("Probe %s returned %r", self._probe_name, raw)
        return raw

    @property
    def _probe_name(self) -> str:
        return getattr(self.probe, "__name__", type(self.probe).__name__)

    def __repr__(self) -> str:
        return (
            f"HealthCheck(description={self.description!r}, "
            f"time_format={self.time_format.value!r}, probe={self._probe_name})"
        )


_FAILED = object()


def _check_zero_arg_callable(fn: Any, label: str) -> None:
    if not callable(fn):
        raise ConfigurationError(f"Invalid {label} provided. Must be callable.")
    try:
        inspect.signature(fn).bind()
    except TypeError:
        raise ConfigurationError(
            f"Invalid {label} provided. Must be callable with no arguments."
        ) from None
    except ValueError:
        # No introspectable signature (some builtins); accept it.
        pass
