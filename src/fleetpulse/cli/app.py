"""Typer CLI for FleetPulse fleet simulation."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Annotated, Optional

import typer
from rich.console import Console, Group
from rich.table import Table

from fleetpulse.config import FleetConfig
from fleetpulse.core.controller import SimulationController
from fleetpulse.core.health import HealthAggregator
from fleetpulse.core.scheduler import ManualScheduler
from fleetpulse.logging_setup import setup_logging
from fleetpulse.models.runtime import Snapshot

app = typer.Typer(
    name="fleetpulse",
    help="Synthetic fleet telemetry — simulate servers, tasks, alerts and load balancers.",
    no_args_is_help=True,
)
console = Console(stderr=True)

_HEALTH_STYLE = {"healthy": "green", "warning": "yellow", "error": "red"}
_SEVERITY_STYLE = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "dim"}


def _config(
    seed: int | None = None,
    servers: int | None = None,
    tasks: int | None = None,
    alerts: int | None = None,
) -> FleetConfig:
    config = FleetConfig.load()
    overrides = {
        name: value
        for name, value in (
            ("seed", seed),
            ("servers_count", servers),
            ("tasks_count", tasks),
            ("alerts_count", alerts),
        )
        if value is not None
    }
    if overrides:
        config = replace(config, simulation=replace(config.simulation, **overrides))
    return config


def _run_offline(config: FleetConfig, ticks: int) -> SimulationController:
    """Advance a controller ``ticks`` times on virtual time."""
    scheduler = ManualScheduler()
    controller = SimulationController(config, scheduler=scheduler, clock=scheduler.clock)
    controller.start()
    scheduler.advance(ticks * controller.get_snapshot().stream_state.update_interval_ms)
    controller.pause()
    return controller


def _styled(value: str, styles: dict[str, str]) -> str:
    style = styles.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def _render(snap: Snapshot) -> Group:
    health = _styled(snap.system_health.value, _HEALTH_STYLE)
    stream = snap.stream_state
    header = (
        f"[bold]Tick {snap.tick}[/bold]  System health: {health}  "
        f"Stream: {'running' if stream.is_running else 'paused'} @ {stream.update_interval_ms} ms"
    )
    if stream.error:
        header += f"  [red]{stream.error}[/red]"

    servers = Table(title="Servers")
    servers.add_column("Name", style="bold")
    servers.add_column("CPU", justify="right")
    servers.add_column("Mem", justify="right")
    servers.add_column("Disk", justify="right")
    servers.add_column("Net in/out", justify="right")
    servers.add_column("Load", justify="right")
    servers.add_column("Health")
    for s in snap.servers:
        servers.add_row(
            s.server_name,
            f"{s.cpu_usage:.1f}%",
            f"{s.memory_usage:.1f}%",
            f"{s.disk_usage:.1f}%",
            f"{s.network_io.inbound:.1f}/{s.network_io.outbound:.1f}",
            f"{s.load_average_1m:.2f}",
            _styled(HealthAggregator.classify_server(s).value, _HEALTH_STYLE),
        )

    tasks = Table(title="Tasks")
    tasks.add_column("Task")
    tasks.add_column("Cluster")
    tasks.add_column("Status")
    tasks.add_column("Progress", justify="right")
    for t in snap.tasks:
        tasks.add_row(t.name, t.target_cluster, t.status.value, f"{t.progress:.0f}%")

    alerts = Table(title="Latest alerts")
    alerts.add_column("Severity")
    alerts.add_column("Server")
    alerts.add_column("Description")
    alerts.add_column("Ack")
    for a in snap.alerts[:10]:
        alerts.add_row(
            _styled(a.severity.value, _SEVERITY_STYLE),
            a.source_server,
            a.description,
            "✓" if a.acknowledged else "",
        )

    balancers = Table(title="Load balancers")
    balancers.add_column("Name", style="bold")
    balancers.add_column("Nodes", justify="right")
    balancers.add_column("Ratio", justify="right")
    balancers.add_column("Imbalanced")
    for lb in snap.load_balancers:
        balancers.add_row(
            lb.name,
            str(len(lb.nodes)),
            f"{lb.ratio:.2f}",
            "[red]yes[/red]" if lb.is_imbalanced else "no",
        )

    return Group(header, servers, tasks, alerts, balancers)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    setup_logging(logging.DEBUG if verbose else logging.WARNING)


@app.command()
def simulate(
    ticks: Annotated[int, typer.Option("--ticks", "-n", help="Ticks to run")] = 10,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
    servers: Annotated[Optional[int], typer.Option("--servers", help="Server count")] = None,
    tasks: Annotated[Optional[int], typer.Option("--tasks", help="Task count")] = None,
    alerts: Annotated[Optional[int], typer.Option("--alerts", help="Initial alert count")] = None,
) -> None:
    """Run a simulation on virtual time and print the final snapshot."""
    if ticks < 0:
        console.print(f"[red]Invalid tick count:[/red] {ticks}")
        raise typer.Exit(1)

    controller = _run_offline(_config(seed, servers, tasks, alerts), ticks)
    with controller:
        console.print(_render(controller.get_snapshot()))


@app.command()
def watch(
    interval: Annotated[Optional[int], typer.Option("--interval", "-i", help="Tick interval (ms)")] = None,
    duration: Annotated[float, typer.Option("--duration", "-d", help="Seconds to run (0 = until Ctrl+C)")] = 0.0,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
) -> None:
    """Run the simulation in real time with a live display."""
    from rich.live import Live

    with SimulationController(_config(seed)) as controller:
        if interval is not None:
            try:
                controller.set_interval(interval)
            except ValueError as exc:
                console.print(f"[red]{exc}[/red]")
                raise typer.Exit(1)
        controller.start()
        deadline = time.monotonic() + duration if duration > 0 else None

        try:
            with Live(_render(controller.get_snapshot()), console=console, refresh_per_second=4) as live:
                while deadline is None or time.monotonic() < deadline:
                    time.sleep(0.25)
                    live.update(_render(controller.get_snapshot()))
        except KeyboardInterrupt:
            console.print("\n[dim]Stopped.[/dim]")


@app.command()
def history(
    ticks: Annotated[int, typer.Option("--ticks", "-n", help="Ticks to run first")] = 10,
    minutes: Annotated[Optional[int], typer.Option("--minutes", "-m", help="Look back N minutes")] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
) -> None:
    """Show the fleet-average history after running on virtual time."""
    if minutes is not None and minutes <= 0:
        console.print(f"[red]Invalid minutes:[/red] {minutes}")
        raise typer.Exit(1)

    with _run_offline(_config(seed), ticks) as controller:
        points = controller.get_history(minutes)

    if not points:
        console.print("[dim]No history points.[/dim]")
        return

    table = Table(title=f"History ({len(points)} points)")
    table.add_column("Time")
    table.add_column("CPU", justify="right")
    table.add_column("Memory", justify="right")
    table.add_column("Disk", justify="right")
    for p in points:
        table.add_row(p.timestamp.strftime("%H:%M:%S"), f"{p.cpu:.1f}", f"{p.memory:.1f}", f"{p.disk:.1f}")
    console.print(table)


@app.command(name="config")
def show_config() -> None:
    """Print the effective configuration after layering and clamping."""
    config = FleetConfig.load()

    table = Table(title=f"Configuration ({config.config_path})")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for section in ("simulation", "history", "alerts", "tasks", "balancers"):
        values = getattr(config, section)
        for name in values.__dataclass_fields__:
            table.add_row(f"{section}.{name}", str(getattr(values, name)))
    console.print(table)


def main() -> None:
    """Entry point for the fleetpulse CLI."""
    app()


if __name__ == "__main__":
    main()
