"""FastMCP server factory exposing the simulation controller as tools."""

from __future__ import annotations

from fleetpulse.config import FleetConfig
from fleetpulse.core.controller import SimulationController
from fleetpulse.mcp.formatters import (
    format_alerts,
    format_history,
    format_load_balancers,
    format_servers,
    format_snapshot,
    format_stream_state,
    format_tasks,
)

CONTROL_ACTIONS = ("start", "pause", "refresh", "reset")


def control(controller: SimulationController, action: str) -> str:
    """Apply a stream control action and describe the resulting stream state."""
    if action not in CONTROL_ACTIONS:
        return f"Invalid action '{action}'. Must be one of: {', '.join(CONTROL_ACTIONS)}."

    if action == "start":
        controller.start()
    elif action == "pause":
        controller.pause()
    elif action == "refresh":
        controller.refresh()
    else:
        controller.reset()

    snap = controller.get_snapshot()
    return f"Applied **{action}** (tick {snap.tick}).\n\n" + format_stream_state(snap.stream_state)


def lookup(controller: SimulationController, kind: str, entity_id: str) -> str:
    """Find one server, task, alert or load balancer by id."""
    if kind == "server":
        found = controller.get_server(entity_id)
        return format_servers((found,)) if found else f"Server '{entity_id}' not found."
    if kind == "task":
        found = controller.get_task(entity_id)
        return format_tasks((found,)) if found else f"Task '{entity_id}' not found."
    if kind == "alert":
        found = controller.get_alert(entity_id)
        return format_alerts((found,)) if found else f"Alert '{entity_id}' not found."
    if kind == "load_balancer":
        found = controller.get_load_balancer(entity_id)
        return format_load_balancers((found,)) if found else f"Load balancer '{entity_id}' not found."
    return f"Invalid kind '{kind}'. Must be: server, task, alert, load_balancer."


def create_server(
    config: FleetConfig | None = None,
    controller: SimulationController | None = None,
):
    """Create and return a configured FastMCP server instance.

    Args:
        config: Optional pre-loaded config. If None, loads from cwd.
        controller: Optional controller to expose; one is built from config otherwise.
    """
    from mcp.server.fastmcp import FastMCP

    mcp = FastMCP("fleetpulse", instructions="Simulated fleet telemetry for dashboards")
    _controller = controller or SimulationController(config or FleetConfig.load())

    @mcp.tool()
    def fleetpulse_snapshot() -> str:
        """Return the latest fleet snapshot: servers, tasks, alerts, load balancers, health."""
        return format_snapshot(_controller.get_snapshot())

    @mcp.tool()
    def fleetpulse_control(action: str) -> str:
        """Control the tick stream.

        Args:
            action: One of: start, pause, refresh (run one tick now), reset
        """
        return control(_controller, action)

    @mcp.tool()
    def fleetpulse_set_interval(interval_ms: int) -> str:
        """Change the tick cadence; a running stream restarts at the new interval.

        Args:
            interval_ms: Milliseconds between ticks (clamped to 100-60000)
        """
        try:
            applied = _controller.set_interval(interval_ms)
        except ValueError as exc:
            return f"Error setting interval: {exc}"
        return f"Tick interval set to {applied} ms."

    @mcp.tool()
    def fleetpulse_acknowledge(alert_id: str) -> str:
        """Acknowledge an alert by id.

        Args:
            alert_id: Alert id as shown in the snapshot
        """
        if _controller.acknowledge_alert(alert_id):
            return f"Alert `{alert_id}` acknowledged."
        return f"Alert '{alert_id}' not found."

    @mcp.tool()
    def fleetpulse_history(minutes: int | None = None) -> str:
        """Fleet-average cpu/memory/disk history.

        Args:
            minutes: Look back N minutes (omit for the full retained window)
        """
        try:
            return format_history(_controller.get_history(minutes))
        except ValueError as exc:
            return f"Error querying history: {exc}"

    @mcp.tool()
    def fleetpulse_lookup(kind: str, entity_id: str) -> str:
        """Look up one entity by id.

        Args:
            kind: One of: server, task, alert, load_balancer
            entity_id: The entity's id
        """
        return lookup(_controller, kind, entity_id)

    return mcp


def main() -> None:
    """Entry point for fleetpulse-mcp (stdio transport)."""
    controller = SimulationController(FleetConfig.load())
    controller.start()
    server = create_server(controller=controller)
    try:
        server.run()
    finally:
        controller.close()


if __name__ == "__main__":
    main()
