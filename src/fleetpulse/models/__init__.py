"""FleetPulse data models."""

from fleetpulse.models.enums import (
    AlertSeverity,
    ConnectionStatus,
    HealthStatus,
    NodeStatus,
    TaskStatus,
)
from fleetpulse.models.runtime import (
    AlertRecord,
    BalancerNode,
    LoadBalancerRecord,
    MonitorTask,
    NetworkIO,
    ServerMetric,
    Snapshot,
    StreamState,
    TimeSeriesPoint,
)

__all__ = [
    "HealthStatus",
    "TaskStatus",
    "AlertSeverity",
    "NodeStatus",
    "ConnectionStatus",
    "NetworkIO",
    "ServerMetric",
    "MonitorTask",
    "AlertRecord",
    "BalancerNode",
    "LoadBalancerRecord",
    "TimeSeriesPoint",
    "StreamState",
    "Snapshot",
]
