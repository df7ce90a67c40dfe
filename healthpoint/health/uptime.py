"""Process uptime — the elapsed-seconds collaborator included in every result."""

from __future__ import annotations

import time
from collections.abc import Callable

# Uptime is measured from the first import of this module.
_STARTED_AT = time.monotonic()

UptimeFn = Callable[[], float]


def process_uptime() -> float:
    """Seconds elapsed since the process (package import) started."""
    return time.monotonic() - _STARTED_AT
