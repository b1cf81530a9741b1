"""Alert derivation from server metrics and the capped, newest-first alert log."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from fleetpulse.config import AlertConfig
from fleetpulse.core.metrics import is_well_formed
from fleetpulse.core.random_walk import RandomSource, generate_id
from fleetpulse.models.enums import AlertSeverity
from fleetpulse.models.runtime import AlertRecord, ServerMetric

logger = logging.getLogger("fleetpulse.alerts")

UNKNOWN_SERVER = "unknown-server"


def classify_alert(server: ServerMetric, config: AlertConfig) -> tuple[AlertSeverity, str]:
    """Evaluate the severity rules in priority order; first match wins.

    Returns the severity and the description template's body (without the
    server name).
    """
    if server.cpu_usage > config.cpu_critical:
        return AlertSeverity.CRITICAL, f"CPU usage above {config.cpu_critical:g}%"
    if server.memory_usage > config.memory_critical:
        return AlertSeverity.CRITICAL, f"memory usage above {config.memory_critical:g}%"
    if server.disk_usage > config.disk_high:
        return AlertSeverity.HIGH, f"disk usage above {config.disk_high:g}%"
    if server.load_average_1m > config.load_high:
        return AlertSeverity.HIGH, "load average too high"
    if server.cpu_usage > config.cpu_medium:
        return AlertSeverity.MEDIUM, "CPU usage elevated"
    if server.memory_usage > config.memory_medium:
        return AlertSeverity.MEDIUM, "memory usage elevated"
    return AlertSeverity.LOW, "minor performance fluctuation"


class AlertGenerator:
    """Probabilistically raises one alert per tick against a random server."""

    def __init__(self, rng: RandomSource, config: AlertConfig | None = None) -> None:
        self._rng = rng
        self._config = config or AlertConfig()

    def tick(
        self, servers: tuple[ServerMetric, ...], now: datetime | None = None
    ) -> AlertRecord | None:
        """Return a new alert or None. Never raises on empty or malformed input."""
        if not servers:
            return None
        if self._rng.random() >= self._config.fire_probability:
            return None

        server = servers[self._rng.randrange(len(servers))]
        if not is_well_formed(server):
            logger.debug("Sampled malformed server record, no alert raised")
            return None

        severity, body = classify_alert(server, self._config)
        name = server.server_name or UNKNOWN_SERVER
        alert = AlertRecord(
            alert_id=generate_id(self._rng, "alert-"),
            timestamp=now or datetime.now(timezone.utc),
            source_server=name,
            severity=severity,
            description=f"Server {name}: {body}",
        )
        logger.info("Alert [%s] %s", severity.value, alert.description)
        return alert


class AlertLog:
    """Newest-first alert log capped at ``cap`` entries; oldest are dropped first."""

    def __init__(self, cap: int, alerts: tuple[AlertRecord, ...] = ()) -> None:
        if cap < 1:
            raise ValueError(f"alert log cap must be positive, got {cap}")
        self._cap = cap
        ordered = sorted(alerts, key=lambda a: a.timestamp, reverse=True)
        self._alerts: tuple[AlertRecord, ...] = tuple(ordered[:cap])

    @classmethod
    def for_config(
        cls, alerts_count: int, config: AlertConfig, alerts: tuple[AlertRecord, ...] = ()
    ) -> AlertLog:
        """Cap at twice the configured alert count, never above the absolute ceiling."""
        return cls(min(alerts_count * 2, config.log_ceiling), alerts)

    @property
    def cap(self) -> int:
        return self._cap

    @property
    def alerts(self) -> tuple[AlertRecord, ...]:
        return self._alerts

    def __len__(self) -> int:
        return len(self._alerts)

    def add(self, alert: AlertRecord) -> None:
        self._alerts = (alert, *self._alerts)[: self._cap]

    def acknowledge(self, alert_id: str) -> bool:
        """Mark a record acknowledged. Returns False (no-op) if the id is unknown."""
        for i, alert in enumerate(self._alerts):
            if alert.alert_id == alert_id:
                if not alert.acknowledged:
                    updated = replace(alert, acknowledged=True)
                    self._alerts = self._alerts[:i] + (updated,) + self._alerts[i + 1:]
                return True
        return False

    def prune_before(self, cutoff: datetime) -> int:
        """Drop alerts older than ``cutoff``. Returns the number removed."""
        kept = tuple(a for a in self._alerts if a.timestamp >= cutoff)
        removed = len(self._alerts) - len(kept)
        self._alerts = kept
        return removed
