"""Frozen dataclass models for simulated fleet state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from fleetpulse.models.enums import (
    AlertSeverity,
    ConnectionStatus,
    HealthStatus,
    NodeStatus,
    TaskStatus,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class NetworkIO:
    """Inbound/outbound throughput in MB/s."""

    inbound: float
    outbound: float


@dataclass(frozen=True, slots=True)
class ServerMetric:
    """One simulated host and its latest resource readings."""

    server_id: str
    server_name: str
    cpu_usage: float
    memory_usage: float
    disk_usage: float
    network_io: NetworkIO
    load_average_1m: float
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class MonitorTask:
    """A simulated long-running monitoring operation."""

    task_id: str
    name: str
    target_cluster: str
    status: TaskStatus
    progress: float
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass(frozen=True, slots=True)
class AlertRecord:
    """A point-in-time anomaly raised against a server."""

    alert_id: str
    timestamp: datetime
    source_server: str
    severity: AlertSeverity
    description: str
    acknowledged: bool = False


@dataclass(frozen=True, slots=True)
class BalancerNode:
    """A backend node behind a load balancer."""

    node_id: str
    name: str
    net_in: float
    net_out: float
    status: NodeStatus = NodeStatus.HEALTHY


@dataclass(frozen=True, slots=True)
class LoadBalancerRecord:
    """A simulated load balancer with a fixed set of nodes."""

    balancer_id: str
    name: str
    nodes: tuple[BalancerNode, ...]
    is_imbalanced: bool
    ratio: float  # max(net_in) / min(net_in)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class TimeSeriesPoint:
    """One fleet-wide aggregate sample."""

    timestamp: datetime
    cpu: float
    memory: float
    disk: float


@dataclass(frozen=True, slots=True)
class StreamState:
    """Cadence and connection state of the tick stream."""

    is_running: bool = False
    update_interval_ms: int = 1500
    last_update: datetime | None = None
    connection_status: ConnectionStatus = ConnectionStatus.CONNECTED
    error: str | None = None
    retry_count: int = 0


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Consistent read view of all simulation state as of one publication."""

    sequence: int
    tick: int
    servers: tuple[ServerMetric, ...] = ()
    tasks: tuple[MonitorTask, ...] = ()
    alerts: tuple[AlertRecord, ...] = ()
    load_balancers: tuple[LoadBalancerRecord, ...] = ()
    history_data: tuple[TimeSeriesPoint, ...] = ()
    system_health: HealthStatus = HealthStatus.HEALTHY
    stream_state: StreamState = field(default_factory=StreamState)

    def server(self, server_id: str) -> ServerMetric | None:
        return next((s for s in self.servers if s.server_id == server_id), None)

    def task(self, task_id: str) -> MonitorTask | None:
        return next((t for t in self.tasks if t.task_id == task_id), None)

    def alert(self, alert_id: str) -> AlertRecord | None:
        return next((a for a in self.alerts if a.alert_id == alert_id), None)

    def load_balancer(self, balancer_id: str) -> LoadBalancerRecord | None:
        return next(
            (lb for lb in self.load_balancers if lb.balancer_id == balancer_id), None
        )
