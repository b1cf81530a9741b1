"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from fleetpulse.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def use_tmp_dir(tmp_path, monkeypatch):
    """Run CLI commands in a temp directory so .fleetpulse/config.toml is isolated."""
    monkeypatch.chdir(tmp_path)


class TestSimulate:
    def test_simulate_basic(self):
        result = runner.invoke(app, ["simulate", "--ticks", "5", "--seed", "1"])
        assert result.exit_code == 0
        assert "Tick 5" in result.output
        assert "Servers" in result.output
        assert "Load balancers" in result.output

    def test_simulate_zero_ticks(self):
        result = runner.invoke(app, ["simulate", "-n", "0", "--seed", "1", "--servers", "2"])
        assert result.exit_code == 0
        assert "Tick 0" in result.output

    def test_simulate_negative_ticks(self):
        result = runner.invoke(app, ["simulate", "--ticks", "-1"])
        assert result.exit_code == 1
        assert "Invalid tick count" in result.output

    def test_verbose_flag(self):
        result = runner.invoke(app, ["-v", "simulate", "--ticks", "1", "--seed", "2"])
        assert result.exit_code == 0


class TestHistory:
    def test_history_table(self):
        result = runner.invoke(app, ["history", "--ticks", "3", "--seed", "1"])
        assert result.exit_code == 0
        assert "History (" in result.output

    def test_history_minutes_window(self):
        result = runner.invoke(app, ["history", "--ticks", "3", "--minutes", "2", "--seed", "1"])
        assert result.exit_code == 0
        assert "History (" in result.output

    def test_history_invalid_minutes(self):
        result = runner.invoke(app, ["history", "--minutes", "0"])
        assert result.exit_code == 1
        assert "Invalid minutes" in result.output


class TestConfig:
    def test_defaults(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "servers_count" in result.output
        assert "1500" in result.output

    def test_reads_toml(self, tmp_path):
        (tmp_path / ".fleetpulse").mkdir()
        (tmp_path / ".fleetpulse" / "config.toml").write_text(
            "[simulation]\nupdate_interval_ms = 4321\n"
        )
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "4321" in result.output

    def test_clamps_toml(self, tmp_path):
        (tmp_path / ".fleetpulse").mkdir()
        (tmp_path / ".fleetpulse" / "config.toml").write_text(
            "[simulation]\nupdate_interval_ms = 98765\n"
        )
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "60000" in result.output


class TestWatch:
    def test_invalid_interval(self):
        result = runner.invoke(app, ["watch", "--interval", "0"])
        assert result.exit_code == 1
