"""Clock implementations for infrastructure."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import override

from ..protocols import Clock


class SystemClock(Clock):
    """Clock backed by the system time."""

    @override
    def now(self) -> datetime:
        return datetime.now(UTC)

    @override
    def monotonic(self) -> float:
        return time.monotonic()
