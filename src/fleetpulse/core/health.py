"""Two-tier health classification for servers and the fleet as a whole."""

from __future__ import annotations

from collections.abc import Iterable

from fleetpulse.core.metrics import is_well_formed
from fleetpulse.models.enums import HealthStatus
from fleetpulse.models.runtime import ServerMetric

# Server thresholds: error tier is checked before warning tier
ERROR_CPU = 85.0
ERROR_MEMORY = 90.0
ERROR_LOAD = 5.0
WARNING_CPU = 70.0
WARNING_MEMORY = 80.0
WARNING_LOAD = 3.0

# Fleet thresholds as fractions of the server count
SYSTEM_ERROR_SHARE = 0.3
SYSTEM_WARNING_SHARE = 0.5


class HealthAggregator:
    """Pure classification; no randomness and no state."""

    @staticmethod
    def classify_server(server: ServerMetric) -> HealthStatus:
        if (
            server.cpu_usage > ERROR_CPU
            or server.memory_usage > ERROR_MEMORY
            or server.load_average_1m > ERROR_LOAD
        ):
            return HealthStatus.ERROR
        if (
            server.cpu_usage > WARNING_CPU
            or server.memory_usage > WARNING_MEMORY
            or server.load_average_1m > WARNING_LOAD
        ):
            return HealthStatus.WARNING
        return HealthStatus.HEALTHY

    @classmethod
    def counts(cls, servers: Iterable[ServerMetric]) -> dict[HealthStatus, int]:
        """Per-status counts over well-formed servers."""
        result = {status: 0 for status in HealthStatus}
        for server in servers:
            if is_well_formed(server):
                result[cls.classify_server(server)] += 1
        return result

    @classmethod
    def system(cls, servers: Iterable[ServerMetric]) -> HealthStatus:
        counts = cls.counts(servers)
        total = sum(counts.values())
        if total == 0:
            return HealthStatus.HEALTHY

        unhealthy = counts[HealthStatus.ERROR]
        warning = counts[HealthStatus.WARNING]
        if unhealthy > total * SYSTEM_ERROR_SHARE:
            return HealthStatus.ERROR
        if warning > total * SYSTEM_WARNING_SHARE or unhealthy > 0:
            return HealthStatus.WARNING
        return HealthStatus.HEALTHY
