"""Per-server resource metric evolution."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from fleetpulse.core.random_walk import RandomWalk, clamp
from fleetpulse.models.runtime import NetworkIO, ServerMetric

logger = logging.getLogger("fleetpulse.metrics")

# Per-tick delta amplitudes
CPU_AMPLITUDE = 5.0
MEMORY_AMPLITUDE = 3.0
DISK_AMPLITUDE = 1.0

# Derived-metric noise, applied on top of the new cpu value
INBOUND_NOISE = 10.0
OUTBOUND_FRACTION = 0.8
OUTBOUND_NOISE = 7.5
LOAD_NOISE = 0.5

NETWORK_FLOOR = 0.1
MAX_LOAD_AVERAGE = 10.0

_NUMERIC_FIELDS = ("cpu_usage", "memory_usage", "disk_usage", "load_average_1m")


def _is_number(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_well_formed(server: object) -> bool:
    """True if the record carries every numeric field the engine reads."""
    if not isinstance(server, ServerMetric):
        return False
    if not all(_is_number(getattr(server, name, None)) for name in _NUMERIC_FIELDS):
        return False
    net = server.network_io
    return isinstance(net, NetworkIO) and _is_number(net.inbound) and _is_number(net.outbound)


class MetricEvolutionEngine:
    """Advances cpu/memory/disk by a random walk and re-derives network and load."""

    def __init__(self, walk: RandomWalk) -> None:
        self._walk = walk

    def tick(
        self, servers: tuple[ServerMetric, ...], now: datetime | None = None
    ) -> tuple[ServerMetric, ...]:
        now = now or datetime.now(timezone.utc)
        return tuple(self.evolve(server, now) for server in servers)

    def evolve(self, server: ServerMetric, now: datetime) -> ServerMetric:
        """Return the server advanced by one tick. Malformed records pass through."""
        if not is_well_formed(server):
            logger.debug("Skipping malformed server record %r", server)
            return server

        walk = self._walk
        cpu = walk.step(server.cpu_usage, CPU_AMPLITUDE, 0.0, 100.0)
        memory = walk.step(server.memory_usage, MEMORY_AMPLITUDE, 0.0, 100.0)
        disk = walk.step(server.disk_usage, DISK_AMPLITUDE, 0.0, 100.0)

        # Derived from the new cpu value to keep the metrics correlated
        inbound = max(NETWORK_FLOOR, cpu / 2 + walk.delta(INBOUND_NOISE))
        outbound = max(NETWORK_FLOOR, inbound * OUTBOUND_FRACTION + walk.delta(OUTBOUND_NOISE))
        load = clamp(cpu / 10 + walk.delta(LOAD_NOISE), 0.0, MAX_LOAD_AVERAGE)

        return ServerMetric(
            server_id=server.server_id,
            server_name=server.server_name,
            cpu_usage=round(cpu, 2),
            memory_usage=round(memory, 2),
            disk_usage=round(disk, 2),
            network_io=NetworkIO(inbound=round(inbound, 2), outbound=round(outbound, 2)),
            load_average_1m=round(load, 2),
            timestamp=now,
        )
