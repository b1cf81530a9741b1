"""Initial fleet generation: plausible random baselines for every entity."""

from __future__ import annotations

from datetime import datetime, timedelta

from fleetpulse.config import BalancerConfig
from fleetpulse.core.balancer import imbalance, node_status
from fleetpulse.core.random_walk import RandomSource, RandomWalk, clamp, generate_id
from fleetpulse.models.enums import AlertSeverity, TaskStatus
from fleetpulse.models.runtime import (
    AlertRecord,
    BalancerNode,
    LoadBalancerRecord,
    MonitorTask,
    NetworkIO,
    ServerMetric,
    TimeSeriesPoint,
)

SERVER_PREFIXES = ("web", "api", "db", "cache", "mq", "worker")

CLUSTERS = (
    "prod-east",
    "prod-north",
    "test-south",
    "staging-west",
    "dev-east",
)

TASK_NAMES = (
    "System performance monitoring",
    "Service availability check",
    "Security vulnerability scan",
    "Resource utilisation analysis",
    "Network latency test",
    "Database performance review",
    "API response time monitoring",
    "Log file analysis",
)

ALERT_DESCRIPTIONS: dict[AlertSeverity, tuple[str, ...]] = {
    AlertSeverity.CRITICAL: (
        "Server down",
        "CPU usage above 95%",
        "Out of memory",
        "Disk space exhausted",
        "Network connection lost",
    ),
    AlertSeverity.HIGH: (
        "CPU usage above 85%",
        "Memory usage above 90%",
        "Response time over threshold",
        "Error rate increasing",
        "Disk space nearly exhausted",
    ),
    AlertSeverity.MEDIUM: (
        "CPU usage elevated",
        "Memory usage elevated",
        "Network latency increasing",
        "Service responding slowly",
        "Disk usage growing",
    ),
    AlertSeverity.LOW: (
        "Minor performance fluctuation",
        "Unusual log entries",
        "Configuration changed",
        "Scheduled job executed",
        "Normal resource fluctuation",
    ),
}


class FleetGenerator:
    """Builds the starting state of a simulation run from one random source."""

    def __init__(self, rng: RandomSource, balancer_config: BalancerConfig | None = None) -> None:
        self._rng = rng
        self._walk = RandomWalk(rng)
        self._balancer_config = balancer_config or BalancerConfig()

    def _uniform(self, lo: float, hi: float) -> float:
        return round(self._rng.uniform(lo, hi), 2)

    def _timestamp_within(self, now: datetime, hours: float) -> datetime:
        return now - timedelta(seconds=self._rng.uniform(0, hours * 3600))

    def server_name(self) -> str:
        return f"{self._rng.choice(SERVER_PREFIXES)}-server-{self._rng.randint(1, 99)}"

    def server(self, now: datetime) -> ServerMetric:
        base = self._rng.uniform(0.2, 0.8)
        cpu = min(100.0, base * 100 + self._rng.uniform(-10, 20))
        memory = min(100.0, base * 90 + self._rng.uniform(-5, 15))
        disk = self._rng.uniform(30, 85)
        network_base = base * 50
        inbound = max(0.1, network_base + self._rng.uniform(-20, 30))
        outbound = max(0.1, network_base * 0.7 + self._rng.uniform(-15, 20))
        load = clamp(cpu / 10 + self._rng.uniform(-0.5, 1), 0.0, 10.0)
        return ServerMetric(
            server_id=generate_id(self._rng, "server-"),
            server_name=self.server_name(),
            cpu_usage=round(cpu, 2),
            memory_usage=round(memory, 2),
            disk_usage=round(disk, 2),
            network_io=NetworkIO(inbound=round(inbound, 2), outbound=round(outbound, 2)),
            load_average_1m=round(load, 2),
            timestamp=now,
        )

    def servers(self, count: int, now: datetime) -> tuple[ServerMetric, ...]:
        return tuple(self.server(now) for _ in range(count))

    def task(self, now: datetime) -> MonitorTask:
        """A task in a random lifecycle state, created within the last 4 hours."""
        status = self._rng.choice(list(TaskStatus))
        if status == TaskStatus.COMPLETED:
            progress = 100.0
        elif status == TaskStatus.FAILED:
            progress = float(self._rng.randint(0, 80))
        elif status == TaskStatus.RUNNING:
            progress = float(self._rng.randint(10, 90))
        else:
            progress = 0.0

        created_at = self._timestamp_within(now, 4)
        if status in (TaskStatus.COMPLETED, TaskStatus.FAILED):
            updated_at = created_at + timedelta(minutes=self._rng.randint(5, 60))
        else:
            updated_at = created_at + timedelta(minutes=self._rng.randint(1, 10))
        return MonitorTask(
            task_id=generate_id(self._rng, "task-"),
            name=self._rng.choice(TASK_NAMES),
            target_cluster=self._rng.choice(CLUSTERS),
            status=status,
            progress=progress,
            created_at=created_at,
            updated_at=min(updated_at, now),
        )

    def queued_task(self, now: datetime) -> MonitorTask:
        """A freshly spawned task waiting to start."""
        return MonitorTask(
            task_id=generate_id(self._rng, "task-"),
            name=self._rng.choice(TASK_NAMES),
            target_cluster=self._rng.choice(CLUSTERS),
            status=TaskStatus.QUEUED,
            progress=0.0,
            created_at=now,
            updated_at=now,
        )

    def tasks(self, count: int, now: datetime) -> tuple[MonitorTask, ...]:
        tasks = [self.task(now) for _ in range(count)]
        return tuple(sorted(tasks, key=lambda t: t.updated_at, reverse=True))

    def alert(self, now: datetime) -> AlertRecord:
        severity = self._rng.choice(list(AlertSeverity))
        return AlertRecord(
            alert_id=generate_id(self._rng, "alert-"),
            timestamp=self._timestamp_within(now, 12),
            source_server=self.server_name(),
            severity=severity,
            description=self._rng.choice(ALERT_DESCRIPTIONS[severity]),
            acknowledged=self._rng.random() < 0.3,
        )

    def alerts(self, count: int, now: datetime) -> tuple[AlertRecord, ...]:
        alerts = [self.alert(now) for _ in range(count)]
        return tuple(sorted(alerts, key=lambda a: a.timestamp, reverse=True))

    def load_balancer(self, now: datetime) -> LoadBalancerRecord:
        base = self._rng.uniform(10, 50)
        traffic = []
        for _ in range(self._rng.randint(3, 8)):
            net_in = base * self._rng.uniform(0.5, 2.5) + self._rng.uniform(-5, 10)
            net_out = net_in * 0.8 + self._rng.uniform(-3, 8)
            traffic.append((round(max(0.1, net_in), 2), round(max(0.1, net_out), 2)))

        # Seed statuses relative to the base load the traffic was drawn around
        nodes = tuple(
            BalancerNode(
                node_id=generate_id(self._rng, "node-"),
                name=self.server_name(),
                net_in=net_in,
                net_out=net_out,
                status=node_status(self._walk, net_in, base, self._balancer_config),
            )
            for net_in, net_out in traffic
        )
        ratio, imbalanced = imbalance(nodes, self._balancer_config.imbalance_ratio)
        return LoadBalancerRecord(
            balancer_id=generate_id(self._rng, "lb-"),
            name=f"lb-{self._rng.randint(1, 99)}",
            nodes=nodes,
            is_imbalanced=imbalanced,
            ratio=round(ratio, 2),
            timestamp=now,
        )

    def load_balancers(self, count: int, now: datetime) -> tuple[LoadBalancerRecord, ...]:
        return tuple(self.load_balancer(now) for _ in range(count))

    def history(
        self, minutes: int, now: datetime, interval_seconds: int = 60
    ) -> list[TimeSeriesPoint]:
        """Backfill a smooth series covering the last ``minutes``, oldest first."""
        walk = self._walk
        cpu = self._rng.uniform(30, 70)
        memory = self._rng.uniform(40, 75)
        disk = self._rng.uniform(50, 70)
        count = (minutes * 60) // interval_seconds

        points = []
        for i in range(count - 1, -1, -1):
            cpu = walk.step(cpu, 5, 5, 95)
            memory = walk.step(memory, 3, 20, 90)
            disk = walk.step(disk, 1, 30, 85)
            points.append(
                TimeSeriesPoint(
                    timestamp=now - timedelta(seconds=i * interval_seconds),
                    cpu=round(cpu, 2),
                    memory=round(memory, 2),
                    disk=round(disk, 2),
                )
            )
        return points
