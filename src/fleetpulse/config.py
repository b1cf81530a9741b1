"""Layered configuration: .fleetpulse/config.toml -> FLEETPULSE_* env vars -> defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

try:
    import tomllib  # 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

logger = logging.getLogger("fleetpulse.config")

# Inclusive (min, max) bounds; values outside are clamped, not rejected
SIMULATION_BOUNDS: dict[str, tuple[int, int]] = {
    "servers_count": (1, 200),
    "tasks_count": (1, 500),
    "alerts_count": (1, 500),
    "load_balancers_count": (1, 20),
    "update_interval_ms": (100, 60_000),
    "history_retention_minutes": (1, 1440),
}

HISTORY_MAX_SIZE_BOUNDS = (10, 100_000)


def clamp_int(name: str, value: int, bounds: tuple[int, int]) -> int:
    """Clamp an integer setting into bounds, logging when it had to move."""
    lo, hi = bounds
    clamped = max(lo, min(hi, int(value)))
    if clamped != value:
        logger.warning("%s=%s out of range [%d, %d], using %d", name, value, lo, hi, clamped)
    return clamped


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Fleet sizes and tick cadence, supplied once at construction."""

    servers_count: int = 8
    tasks_count: int = 12
    alerts_count: int = 10
    load_balancers_count: int = 3
    update_interval_ms: int = 1500
    history_retention_minutes: int = 15
    seed: int | None = None

    def clamped(self) -> SimulationConfig:
        """Return a copy with every count and interval inside its bounds."""
        changes = {
            name: clamp_int(name, getattr(self, name), bounds)
            for name, bounds in SIMULATION_BOUNDS.items()
        }
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class HistoryConfig:
    """Time-series retention settings."""

    max_size: int = 900  # 15 minutes at one point per second


@dataclass(frozen=True, slots=True)
class AlertConfig:
    """Alert firing probability, severity rule thresholds and log bounds."""

    fire_probability: float = 0.1
    cpu_critical: float = 90.0
    memory_critical: float = 90.0
    disk_high: float = 90.0
    load_high: float = 5.0
    cpu_medium: float = 80.0
    memory_medium: float = 80.0
    log_ceiling: int = 1000
    retention_minutes: int = 0  # 0 disables time-based pruning


@dataclass(frozen=True, slots=True)
class TaskConfig:
    """Task state machine probabilities."""

    start_probability: float = 0.3
    spawn_probability: float = 0.1
    fail_probability: float = 0.1
    max_increment: float = 10.0
    spawn_ceiling_factor: float = 1.5


@dataclass(frozen=True, slots=True)
class BalancerConfig:
    """Node status cutoffs relative to the balancer's average inbound traffic."""

    high_factor: float = 2.0
    low_factor: float = 0.7
    low_warning_probability: float = 0.3
    high_error_share: float = 0.5
    imbalance_ratio: float = 3.0


@dataclass(frozen=True, slots=True)
class FleetConfig:
    """Top-level configuration container."""

    project_path: Path = field(default_factory=Path.cwd)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    tasks: TaskConfig = field(default_factory=TaskConfig)
    balancers: BalancerConfig = field(default_factory=BalancerConfig)

    @property
    def fleetpulse_dir(self) -> Path:
        return self.project_path / ".fleetpulse"

    @property
    def config_path(self) -> Path:
        return self.fleetpulse_dir / "config.toml"

    def clamped(self) -> FleetConfig:
        """Return a copy with out-of-range simulation values clamped."""
        history = HistoryConfig(
            max_size=clamp_int("max_size", self.history.max_size, HISTORY_MAX_SIZE_BOUNDS)
        )
        return replace(self, simulation=self.simulation.clamped(), history=history)

    @classmethod
    def load(cls, project_path: Path | None = None) -> FleetConfig:
        """Load config with layering: TOML file -> env vars -> defaults."""
        project = Path(project_path) if project_path else Path.cwd()
        toml_path = project / ".fleetpulse" / "config.toml"

        toml_data: dict = {}
        if toml_path.is_file():
            with open(toml_path, "rb") as f:
                toml_data = tomllib.load(f)

        config = cls(
            project_path=project,
            simulation=_load_section(SimulationConfig, toml_data.get("simulation", {})),
            history=_load_section(HistoryConfig, toml_data.get("history", {})),
            alerts=_load_section(AlertConfig, toml_data.get("alerts", {}), "ALERT_"),
            tasks=_load_section(TaskConfig, toml_data.get("tasks", {}), "TASK_"),
            balancers=_load_section(BalancerConfig, toml_data.get("balancers", {}), "LB_"),
        )
        return config.clamped()


def _load_section(section_cls: type, data: dict, env_prefix: str = ""):
    """Build one section: FLEETPULSE_<PREFIX><FIELD> env var, then TOML, then default."""
    # Use instance defaults (slots=True prevents class-level attribute access)
    defaults = section_cls()
    values = {}
    for f in fields(section_cls):
        default = getattr(defaults, f.name)
        raw = os.environ.get(
            f"FLEETPULSE_{env_prefix}{f.name.upper()}",
            data.get(f.name, default),
        )
        values[f.name] = _coerce(raw, default)
    return section_cls(**values)


def _coerce(raw, default):
    if raw is None:
        return None
    if isinstance(default, bool):
        return str(raw).lower() in ("1", "true", "yes")
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, int) or default is None:
        # `seed` defaults to None but is an integer when set
        return int(raw)
    return raw
