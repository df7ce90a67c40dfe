"""Status and time-format enumerations shared by checks and registries."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Status(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"

    @property
    def code(self) -> int:
        """HTTP status code for this health status."""
        return STATUS_CODES[self]


class TimeFormat(str, Enum):
    """Rendering modes for result timestamps."""

    ISO = "iso"  # 2023-10-15T13:14:15.000Z
    UTC = "utc"  # Sun, 15 Oct 2023 13:14:15 GMT
    UNIX = "unix"  # 1697375655
    CALENDAR = "calendar"  # local time, locale formatted


STATUS_CODES: Mapping[Status, int] = MappingProxyType({
    Status.HEALTHY: 200,
    Status.UNHEALTHY: 503,
    Status.UNKNOWN: 500,
})
