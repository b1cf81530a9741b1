"""Markdown formatters for LLM-friendly output."""

from __future__ import annotations

from fleetpulse.core.health import HealthAggregator
from fleetpulse.models.runtime import (
    AlertRecord,
    LoadBalancerRecord,
    MonitorTask,
    ServerMetric,
    Snapshot,
    StreamState,
    TimeSeriesPoint,
)


def _ts(dt) -> str:
    return dt.isoformat() if dt else "—"


def format_stream_state(state: StreamState) -> str:
    lines = [
        f"**Stream:** {'running' if state.is_running else 'paused'} "
        f"every {state.update_interval_ms} ms  ",
        f"**Connection:** {state.connection_status.value}  ",
        f"**Last update:** {_ts(state.last_update)}",
    ]
    if state.error:
        lines[-1] += "  "
        lines.append(f"**Error:** {state.error} (retries: {state.retry_count})")
    return "\n".join(lines)


def format_servers(servers: tuple[ServerMetric, ...]) -> str:
    if not servers:
        return "No servers."

    lines = [
        "| Server | ID | CPU | Memory | Disk | Net in/out | Load | Health |",
        "|--------|----|-----|--------|------|------------|------|--------|",
    ]
    for s in servers:
        health = HealthAggregator.classify_server(s).value
        lines.append(
            f"| {s.server_name} | `{s.server_id}` | {s.cpu_usage}% | {s.memory_usage}% "
            f"| {s.disk_usage}% | {s.network_io.inbound}/{s.network_io.outbound} MB/s "
            f"| {s.load_average_1m} | {health} |"
        )
    return "\n".join(lines)


def format_tasks(tasks: tuple[MonitorTask, ...]) -> str:
    if not tasks:
        return "No tasks."

    lines = [
        "| Task | ID | Cluster | Status | Progress |",
        "|------|----|---------|--------|----------|",
    ]
    for t in tasks:
        lines.append(
            f"| {t.name} | `{t.task_id}` | {t.target_cluster} | {t.status.value} | {t.progress:.0f}% |"
        )
    return "\n".join(lines)


def format_alerts(alerts: tuple[AlertRecord, ...], limit: int = 20) -> str:
    if not alerts:
        return "No alerts."

    lines = []
    for a in alerts[:limit]:
        ack = " (acknowledged)" if a.acknowledged else ""
        lines.append(
            f"- **[{a.severity.value.upper()}]** `{a.timestamp.isoformat()}` "
            f"`{a.alert_id}` *{a.source_server}* — {a.description}{ack}"
        )
    if len(alerts) > limit:
        lines.append(f"- … {len(alerts) - limit} more")
    return "\n".join(lines)


def format_load_balancers(balancers: tuple[LoadBalancerRecord, ...]) -> str:
    if not balancers:
        return "No load balancers."

    lines = []
    for lb in balancers:
        flag = " **IMBALANCED**" if lb.is_imbalanced else ""
        lines.append(f"### {lb.name} (`{lb.balancer_id}`) ratio {lb.ratio}{flag}")
        lines.append("")
        lines.append("| Node | In | Out | Status |")
        lines.append("|------|----|-----|--------|")
        for n in lb.nodes:
            lines.append(f"| {n.name} | {n.net_in} | {n.net_out} | {n.status.value} |")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_history(points: tuple[TimeSeriesPoint, ...], limit: int = 30) -> str:
    """Format the most recent ``limit`` history points as a table."""
    if not points:
        return "No history points."

    shown = points[-limit:]
    lines = [
        f"{len(points)} points, showing the latest {len(shown)}",
        "",
        "| Time | CPU | Memory | Disk |",
        "|------|-----|--------|------|",
    ]
    for p in shown:
        lines.append(f"| {p.timestamp.isoformat()} | {p.cpu}% | {p.memory}% | {p.disk}% |")
    return "\n".join(lines)


def format_snapshot(snap: Snapshot) -> str:
    """Format a full snapshot as markdown."""
    counts = HealthAggregator.counts(snap.servers)
    summary = ", ".join(f"{n} {status.value}" for status, n in counts.items())
    return "\n".join([
        f"## Fleet snapshot #{snap.sequence} (tick {snap.tick})",
        f"**System health:** {snap.system_health.value} ({summary})  ",
        format_stream_state(snap.stream_state),
        "",
        "### Servers",
        format_servers(snap.servers),
        "",
        "### Tasks",
        format_tasks(snap.tasks),
        "",
        "### Alerts",
        format_alerts(snap.alerts),
        "",
        "## Load balancers",
        format_load_balancers(snap.load_balancers),
    ])
