"""Tick schedulers: a background thread for live runs and a virtual clock for tests."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Protocol

logger = logging.getLogger("fleetpulse.scheduler")

TickCallback = Callable[[], None]


class Scheduler(Protocol):
    """Arms a periodic callback; at most one schedule is armed at a time."""

    def arm(self, interval_ms: int, on_tick: TickCallback) -> None: ...

    def disarm(self) -> None: ...


class ThreadScheduler:
    """Fires ``on_tick`` from a daemon thread every ``interval_ms`` milliseconds."""

    def __init__(self, name: str = "fleetpulse-ticker") -> None:
        self._name = name
        self._thread: threading.Thread | None = None
        self._last_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def armed(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def arm(self, interval_ms: int, on_tick: TickCallback) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.disarm()

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._loop,
            args=(interval_ms / 1000.0, on_tick, stop_event),
            name=self._name,
            daemon=True,
        )
        self._last_thread = self._thread
        self._thread.start()
        logger.debug("Armed ticker at %d ms", interval_ms)

    def disarm(self) -> None:
        """Signal the ticker to stop without waiting for it.

        A callback already in flight may still finish after this returns;
        callers that need a hard cutoff discard such ticks themselves.
        """
        self._stop_event.set()
        self._thread = None

    def join(self, timeout: float = 5.0) -> None:
        """Wait for the most recently disarmed ticker thread to exit."""
        thread = self._last_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    @staticmethod
    def _loop(interval_s: float, on_tick: TickCallback, stop_event: threading.Event) -> None:
        # wait() returns True once disarmed, ending the loop
        while not stop_event.wait(interval_s):
            try:
                on_tick()
            except Exception:
                logger.exception("Tick callback failed")


class ManualClock:
    """A settable UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self._now

    def advance(self, ms: int) -> datetime:
        self._now += timedelta(milliseconds=ms)
        return self._now


class ManualScheduler:
    """Virtual-time scheduler: ticks fire only when ``advance`` moves the clock."""

    def __init__(self, clock: ManualClock | None = None) -> None:
        self.clock = clock or ManualClock()
        self._interval_ms: int | None = None
        self._on_tick: TickCallback | None = None
        self._elapsed_ms = 0
        self.arm_count = 0

    @property
    def armed(self) -> bool:
        return self._on_tick is not None

    @property
    def interval_ms(self) -> int | None:
        return self._interval_ms

    def arm(self, interval_ms: int, on_tick: TickCallback) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._interval_ms = interval_ms
        self._on_tick = on_tick
        self._elapsed_ms = 0
        self.arm_count += 1

    def disarm(self) -> None:
        self._interval_ms = None
        self._on_tick = None
        self._elapsed_ms = 0

    def advance(self, ms: int) -> int:
        """Move virtual time forward, firing each due tick in order. Returns ticks fired."""
        fired = 0
        remaining = ms
        while remaining > 0:
            if self._on_tick is None or self._interval_ms is None:
                self.clock.advance(remaining)
                break
            until_due = self._interval_ms - self._elapsed_ms
            if remaining < until_due:
                self.clock.advance(remaining)
                self._elapsed_ms += remaining
                break
            self.clock.advance(until_due)
            remaining -= until_due
            self._elapsed_ms = 0
            self._on_tick()
            fired += 1
        return fired
