"""Human-scale age of cached and archived reports."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


logger = logging.getLogger(__name__)

SECOND_MILLIS = 1000
MINUTE_MILLIS = 60 * SECOND_MILLIS
HOUR_MILLIS = 60 * MINUTE_MILLIS
DAY_MILLIS = 24 * HOUR_MILLIS


class StalenessUnit(str, Enum):
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


_UNITS = (
    (MINUTE_MILLIS, StalenessUnit.SECONDS, SECOND_MILLIS),
    (HOUR_MILLIS, StalenessUnit.MINUTES, MINUTE_MILLIS),
    (DAY_MILLIS, StalenessUnit.HOURS, HOUR_MILLIS),
)


@dataclass(frozen=True)
class Staleness:
    quantity: int
    unit: StalenessUnit
    next_tick_ms: int

    def __str__(self) -> str:
        return f"{self.quantity} {self.unit.value} ago"


def now_millis() -> int:
    return int(time.time() * 1000)


def compute_staleness(report_ms: int, now_ms: int) -> Staleness:
    """Largest fitting unit with floor rounding.

    ``next_tick_ms`` is the delay until the displayed quantity next
    increments. Timestamps in the future count as zero elapsed.
    """
    elapsed = max(0, int(now_ms) - int(report_ms))
    for limit, unit, unit_ms in _UNITS:
        if elapsed < limit:
            break
    else:
        unit, unit_ms = StalenessUnit.DAYS, DAY_MILLIS
    return Staleness(
        quantity=elapsed // unit_ms,
        unit=unit,
        next_tick_ms=unit_ms - (elapsed % unit_ms),
    )


class StalenessClock:
    """Recomputes staleness exactly when the display would change.

    Purely presentational: ticks only call ``on_tick``.
    """

    def __init__(
        self,
        timestamp_ms: int,
        on_tick: Callable[[Staleness], None],
        *,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._timestamp_ms = int(timestamp_ms)
        self._on_tick = on_tick
        self._clock = clock
        self._handle: Optional[asyncio.TimerHandle] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> Staleness:
        self._stopped = False
        return self._recompute(notify=False)

    def stop(self) -> None:
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self._stopped:
            return
        self._recompute(notify=True)

    def _recompute(self, *, notify: bool) -> Staleness:
        staleness = compute_staleness(self._timestamp_ms, self._clock())
        if notify:
            self._on_tick(staleness)
        self._schedule(staleness.next_tick_ms)
        return staleness

    def _schedule(self, delay_ms: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; staleness will not auto-refresh")
            return
        self._handle = loop.call_later(delay_ms / 1000.0, self._tick)
