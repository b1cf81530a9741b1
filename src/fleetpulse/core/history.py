"""Bounded time-series history: a sliding time window plus a hard count cap."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

from fleetpulse.core.metrics import is_well_formed
from fleetpulse.models.runtime import ServerMetric, TimeSeriesPoint

logger = logging.getLogger("fleetpulse.history")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def aggregate_point(servers: Iterable[ServerMetric], now: datetime) -> TimeSeriesPoint | None:
    """Fleet-average cpu/memory/disk over well-formed servers; None if there are none."""
    usable = [s for s in servers if is_well_formed(s)]
    if not usable:
        return None
    n = len(usable)
    return TimeSeriesPoint(
        timestamp=now,
        cpu=round(sum(s.cpu_usage for s in usable) / n, 2),
        memory=round(sum(s.memory_usage for s in usable) / n, 2),
        disk=round(sum(s.disk_usage for s in usable) / n, 2),
    )


class HistoryStore:
    """Append-only series with dual eviction.

    After every append no retained point is older than
    ``now - retention_minutes`` and at most ``max_size`` points remain. The
    time window is applied first; if the series is still oversized the oldest
    remaining points are dropped.
    """

    def __init__(
        self,
        retention_minutes: int = 15,
        max_size: int = 900,
        clock: Callable[[], datetime] | None = None,
        points: Iterable[TimeSeriesPoint] = (),
    ) -> None:
        if retention_minutes < 1 or max_size < 1:
            raise ValueError("retention_minutes and max_size must be positive")
        self._retention = timedelta(minutes=retention_minutes)
        self._max_size = max_size
        self._clock = clock or _now
        self._points: list[TimeSeriesPoint] = sorted(points, key=lambda p: p.timestamp)
        self.prune()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def retention_minutes(self) -> int:
        return int(self._retention.total_seconds() // 60)

    def __len__(self) -> int:
        return len(self._points)

    def append(self, point: TimeSeriesPoint) -> None:
        self._points.append(point)
        if len(self._points) > 1 and point.timestamp < self._points[-2].timestamp:
            self._points.sort(key=lambda p: p.timestamp)
        self.prune()

    def prune(self, retention_minutes: int | None = None) -> int:
        """Enforce both bounds. Returns the number of points evicted.

        ``retention_minutes`` narrows the window for this call only.
        """
        window = (
            timedelta(minutes=retention_minutes)
            if retention_minutes is not None
            else self._retention
        )
        cutoff = self._clock() - window
        before = len(self._points)
        kept = [p for p in self._points if p.timestamp >= cutoff]
        if len(kept) > self._max_size:
            kept = kept[-self._max_size:]
        self._points = kept
        evicted = before - len(kept)
        if evicted:
            logger.debug("Evicted %d history points", evicted)
        return evicted

    def query(self, minutes: int | None = None) -> tuple[TimeSeriesPoint, ...]:
        """Points no older than ``minutes`` (all retained points if None). Read-only."""
        if minutes is None:
            return tuple(self._points)
        if minutes <= 0:
            raise ValueError(f"minutes must be positive, got {minutes}")
        cutoff = self._clock() - timedelta(minutes=minutes)
        return tuple(p for p in self._points if p.timestamp >= cutoff)
