"""Tests for MCP server tool functions."""

import pytest

from fleetpulse.config import FleetConfig, SimulationConfig
from fleetpulse.core.controller import SimulationController
from fleetpulse.core.scheduler import ManualScheduler
from fleetpulse.mcp.server import control, lookup


@pytest.fixture
def controller():
    scheduler = ManualScheduler()
    config = FleetConfig(simulation=SimulationConfig(seed=5))
    with SimulationController(config, scheduler=scheduler, clock=scheduler.clock) as ctl:
        yield ctl


class TestControl:
    """Test the core logic that MCP tools use, without requiring mcp package."""

    def test_start_and_pause(self, controller):
        text = control(controller, "start")
        assert "Applied **start**" in text
        assert "running" in text
        assert controller.get_snapshot().stream_state.is_running

        text = control(controller, "pause")
        assert "paused" in text
        assert not controller.get_snapshot().stream_state.is_running

    def test_refresh(self, controller):
        text = control(controller, "refresh")
        assert "(tick 1)" in text

    def test_reset(self, controller):
        controller.refresh()
        text = control(controller, "reset")
        assert "(tick 0)" in text

    def test_invalid_action(self, controller):
        text = control(controller, "explode")
        assert "Invalid action" in text
        assert controller.get_snapshot().tick == 0


class TestLookup:
    def test_found(self, controller):
        snap = controller.get_snapshot()
        server = snap.servers[0]
        assert server.server_name in lookup(controller, "server", server.server_id)
        task = snap.tasks[0]
        assert task.task_id in lookup(controller, "task", task.task_id)
        alert = snap.alerts[0]
        assert alert.alert_id in lookup(controller, "alert", alert.alert_id)
        lb = snap.load_balancers[0]
        assert lb.name in lookup(controller, "load_balancer", lb.balancer_id)

    def test_missing(self, controller):
        assert "not found" in lookup(controller, "server", "server-nope")
        assert "not found" in lookup(controller, "load_balancer", "lb-nope")

    def test_invalid_kind(self, controller):
        assert "Invalid kind" in lookup(controller, "cluster", "x")


class TestCreateServer:
    def test_builds_named_server(self, controller):
        pytest.importorskip("mcp.server.fastmcp")
        from fleetpulse.mcp.server import create_server

        server = create_server(controller=controller)
        assert server.name == "fleetpulse"
