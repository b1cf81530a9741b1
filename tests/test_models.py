"""Tests for FleetPulse data models."""

from dataclasses import fields
from datetime import datetime, timezone

from fleetpulse.models import (
    AlertRecord,
    AlertSeverity,
    BalancerNode,
    ConnectionStatus,
    HealthStatus,
    LoadBalancerRecord,
    MonitorTask,
    NetworkIO,
    ServerMetric,
    Snapshot,
    StreamState,
    TaskStatus,
)


def _now():
    return datetime.now(timezone.utc)


def _server(server_id="server-1"):
    return ServerMetric(
        server_id=server_id, server_name="web-server-1",
        cpu_usage=50.0, memory_usage=40.0, disk_usage=30.0,
        network_io=NetworkIO(inbound=20.0, outbound=15.0),
        load_average_1m=5.0,
    )


class TestEnums:
    def test_health_values(self):
        assert HealthStatus.HEALTHY == "healthy"
        assert HealthStatus.ERROR == "error"

    def test_task_status_values(self):
        assert TaskStatus.QUEUED == "queued"
        assert TaskStatus.COMPLETED == "completed"

    def test_severity_order(self):
        assert [s.value for s in AlertSeverity] == ["critical", "high", "medium", "low"]

    def test_connection_status(self):
        assert ConnectionStatus.RECONNECTING == "reconnecting"


class TestServerMetric:
    def test_timestamp_default(self):
        assert isinstance(_server().timestamp, datetime)

    def test_frozen(self):
        s = _server()
        try:
            s.cpu_usage = 99.0  # type: ignore
            assert False, "Should be frozen"
        except AttributeError:
            pass


class TestMonitorTask:
    def _task(self, status):
        now = _now()
        return MonitorTask(
            task_id="task-1", name="scan", target_cluster="prod-east",
            status=status, progress=0.0, created_at=now, updated_at=now,
        )

    def test_terminal(self):
        assert self._task(TaskStatus.COMPLETED).is_terminal
        assert self._task(TaskStatus.FAILED).is_terminal

    def test_not_terminal(self):
        assert not self._task(TaskStatus.QUEUED).is_terminal
        assert not self._task(TaskStatus.RUNNING).is_terminal


class TestStreamState:
    def test_defaults(self):
        state = StreamState()
        assert state.is_running is False
        assert state.update_interval_ms == 1500
        assert state.last_update is None
        assert state.connection_status == ConnectionStatus.CONNECTED
        assert state.error is None
        assert state.retry_count == 0

    def test_fields(self):
        assert [f.name for f in fields(StreamState)] == [
            "is_running", "update_interval_ms", "last_update",
            "connection_status", "error", "retry_count",
        ]


class TestSnapshotLookups:
    def _snapshot(self):
        now = _now()
        alert = AlertRecord(
            alert_id="alert-1", timestamp=now, source_server="web-server-1",
            severity=AlertSeverity.LOW, description="blip",
        )
        lb = LoadBalancerRecord(
            balancer_id="lb-1", name="lb-1",
            nodes=(BalancerNode(node_id="n1", name="n1", net_in=1.0, net_out=1.0),),
            is_imbalanced=False, ratio=1.0,
        )
        return Snapshot(sequence=1, tick=0, servers=(_server(),), alerts=(alert,), load_balancers=(lb,))

    def test_found(self):
        snap = self._snapshot()
        assert snap.server("server-1").server_name == "web-server-1"
        assert snap.alert("alert-1").severity == AlertSeverity.LOW
        assert snap.load_balancer("lb-1").ratio == 1.0

    def test_missing(self):
        snap = self._snapshot()
        assert snap.server("nope") is None
        assert snap.task("nope") is None
        assert snap.alert("nope") is None
        assert snap.load_balancer("nope") is None

