"""Simulation controller: owns all state, runs the tick pipeline, publishes snapshots."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from fleetpulse.config import SIMULATION_BOUNDS, FleetConfig, clamp_int
from fleetpulse.core.alerts import AlertGenerator, AlertLog
from fleetpulse.core.balancer import LoadBalancerSimulator
from fleetpulse.core.generator import FleetGenerator
from fleetpulse.core.health import HealthAggregator
from fleetpulse.core.history import HistoryStore, aggregate_point
from fleetpulse.core.metrics import MetricEvolutionEngine, is_well_formed
from fleetpulse.core.random_walk import RandomSource, RandomWalk, make_rng
from fleetpulse.core.scheduler import Scheduler, ThreadScheduler
from fleetpulse.core.tasks import TaskLifecycleEngine
from fleetpulse.models.enums import ConnectionStatus, HealthStatus
from fleetpulse.models.runtime import (
    AlertRecord,
    LoadBalancerRecord,
    MonitorTask,
    ServerMetric,
    Snapshot,
    StreamState,
    TimeSeriesPoint,
)

logger = logging.getLogger("fleetpulse.controller")

SnapshotCallback = Callable[[Snapshot], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SimulationController:
    """Single-writer simulation engine.

    Ticks and every state-changing command run inside ``_state_lock``, so a
    published snapshot is never observed half-built. Scheduler arm/disarm runs
    under ``_command_lock`` only. Subscribers are called after both locks are
    released, so a subscriber may issue commands from any thread.
    """

    def __init__(
        self,
        config: FleetConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._scheduler = scheduler or ThreadScheduler()
        self._clock = clock or _now
        self._explicit_rng = rng
        self._state_lock = threading.RLock()
        self._command_lock = threading.RLock()
        self._delivery_lock = threading.Lock()
        self._subscribers: list[SnapshotCallback] = []
        self._outbox: deque[Snapshot] = deque()
        self._sequence = 0
        # Bumped whenever the schedule changes; stale callbacks compare against it
        self._generation = 0
        self._closed = False
        self._initialize(config or FleetConfig())
        self._deliver()

    def __enter__(self) -> SimulationController:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- initialisation ----------------------------------------------------

    def _initialize(self, config: FleetConfig) -> None:
        config = config.clamped()
        sim = config.simulation
        rng = self._explicit_rng or make_rng(sim.seed)
        self._explicit_rng = None  # a reset without a new rng reseeds from config
        now = self._clock()

        walk = RandomWalk(rng)
        generator = FleetGenerator(rng, config.balancers)
        self._config = config
        self._rng = rng
        self._generator = generator
        self._metrics = MetricEvolutionEngine(walk)
        self._alert_generator = AlertGenerator(rng, config.alerts)
        self._task_engine = TaskLifecycleEngine(
            rng, sim.tasks_count, config.tasks, spawn_task=generator.queued_task
        )
        self._balancer_sim = LoadBalancerSimulator(walk, config.balancers)

        self._servers = generator.servers(sim.servers_count, now)
        self._tasks = generator.tasks(sim.tasks_count, now)
        self._alert_log = AlertLog.for_config(
            sim.alerts_count, config.alerts, generator.alerts(sim.alerts_count, now)
        )
        self._load_balancers = generator.load_balancers(sim.load_balancers_count, now)
        self._history = HistoryStore(
            retention_minutes=sim.history_retention_minutes,
            max_size=config.history.max_size,
            clock=self._clock,
            points=generator.history(sim.history_retention_minutes, now),
        )
        self._tick = 0
        self._stream = StreamState(update_interval_ms=sim.update_interval_ms)
        logger.info(
            "Initialized fleet: %d servers, %d tasks, %d alerts, %d load balancers",
            len(self._servers), len(self._tasks), len(self._alert_log), len(self._load_balancers),
        )
        self._publish(self._compose())

    def _compose(self, system_health: HealthStatus | None = None) -> Snapshot:
        return Snapshot(
            sequence=self._sequence + 1,
            tick=self._tick,
            servers=self._servers,
            tasks=self._tasks,
            alerts=self._alert_log.alerts,
            load_balancers=self._load_balancers,
            history_data=self._history.query(),
            system_health=system_health or HealthAggregator.system(self._servers),
            stream_state=self._stream,
        )

    def _publish(self, snapshot: Snapshot) -> None:
        """Make ``snapshot`` current and queue it for subscribers. Caller holds ``_state_lock``."""
        self._sequence = snapshot.sequence
        self._snapshot = snapshot
        self._outbox.append(snapshot)

    def _deliver(self) -> None:
        """Hand queued snapshots to subscribers in sequence order.

        Must be called with no controller lock held. Whichever thread holds
        ``_delivery_lock`` drains the queue; everyone else returns at once, so a
        subscriber that issues a command never waits on its own delivery.
        """
        while self._outbox:
            if not self._delivery_lock.acquire(blocking=False):
                return
            try:
                while self._outbox:
                    snapshot = self._outbox.popleft()
                    for callback in list(self._subscribers):
                        try:
                            callback(snapshot)
                        except Exception:
                            logger.exception("Snapshot subscriber %r failed", callback)
            finally:
                self._delivery_lock.release()

    def _republish(self) -> None:
        """Publish current entity state with the current stream state."""
        self._publish(replace(self._snapshot, sequence=self._sequence + 1, stream_state=self._stream))

    # -- ticks ---------------------------------------------------------------

    def _scheduled_tick(self, generation: int) -> None:
        with self._state_lock:
            if generation != self._generation or not self._stream.is_running:
                logger.debug("Discarding stale tick from generation %d", generation)
                return
            self._run_tick()
        self._deliver()

    def _run_tick(self) -> None:
        """Run the full pipeline and publish, or keep the previous state on failure."""
        now = self._clock()
        try:
            servers = self._metrics.tick(self._servers, now)
            alert = self._alert_generator.tick(servers, now)
            tasks = self._task_engine.tick(self._tasks, now)
            load_balancers = self._balancer_sim.tick(self._load_balancers, now)
            point = aggregate_point(servers, now)
            system_health = HealthAggregator.system(servers)
        except Exception as exc:
            logger.exception("Tick %d failed, keeping previous state", self._tick + 1)
            self._stream = replace(
                self._stream,
                connection_status=ConnectionStatus.RECONNECTING,
                error=str(exc) or type(exc).__name__,
                retry_count=self._stream.retry_count + 1,
            )
            self._republish()
            return

        # Commit: nothing below draws randomness or can fail on valid state
        self._servers = servers
        self._tasks = tasks
        self._load_balancers = load_balancers
        if alert is not None:
            self._alert_log.add(alert)
        retention = self._config.alerts.retention_minutes
        if retention > 0:
            self._alert_log.prune_before(now - timedelta(minutes=retention))
        if point is not None:
            self._history.append(point)
        else:
            self._history.prune()

        self._tick += 1
        self._stream = replace(
            self._stream,
            last_update=now,
            connection_status=ConnectionStatus.CONNECTED,
            error=None,
            retry_count=0,
        )
        self._publish(self._compose(system_health))

    # -- commands ------------------------------------------------------------

    def start(self) -> None:
        """Begin periodic ticks at the configured interval. No-op if running."""
        with self._command_lock:
            with self._state_lock:
                if self._stream.is_running:
                    return
                self._generation += 1
                generation = self._generation
                interval = self._stream.update_interval_ms
                self._stream = replace(
                    self._stream, is_running=True, last_update=self._clock()
                )
                self._republish()
            self._arm(interval, generation)
        self._deliver()

    def _arm(self, interval_ms: int, generation: int) -> None:
        try:
            self._scheduler.arm(interval_ms, lambda: self._scheduled_tick(generation))
        except Exception as exc:
            logger.exception("Failed to arm tick scheduler")
            with self._state_lock:
                self._generation += 1
                self._stream = replace(
                    self._stream,
                    is_running=False,
                    connection_status=ConnectionStatus.DISCONNECTED,
                    error=f"scheduler failed to arm: {exc}",
                    retry_count=self._stream.retry_count + 1,
                )
                self._republish()
            return
        logger.info("Tick stream started at %d ms", interval_ms)

    def pause(self) -> None:
        """Stop periodic ticks; state is kept. No tick runs after this returns."""
        with self._command_lock:
            self._pause()
        self._deliver()

    def _pause(self) -> None:
        with self._state_lock:
            if not self._stream.is_running:
                return
            # Any in-flight scheduled tick now sees a stale generation
            self._generation += 1
            self._stream = replace(self._stream, is_running=False)
            self._republish()
        self._scheduler.disarm()
        logger.info("Tick stream paused")

    def refresh(self) -> Snapshot:
        """Run exactly one tick now, independent of the schedule."""
        with self._state_lock:
            self._run_tick()
            snapshot = self._snapshot
        self._deliver()
        return snapshot

    def set_interval(self, interval_ms: int) -> int:
        """Change the tick cadence, restarting the schedule if running.

        Returns the interval actually applied after clamping.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval must be a positive number of ms, got {interval_ms}")
        interval = clamp_int(
            "update_interval_ms", interval_ms, SIMULATION_BOUNDS["update_interval_ms"]
        )
        with self._command_lock:
            with self._state_lock:
                self._stream = replace(self._stream, update_interval_ms=interval)
                running = self._stream.is_running
                if running:
                    self._generation += 1
                    generation = self._generation
                self._republish()
            if running:
                self._arm(interval, generation)
        self._deliver()
        return interval

    def reset(self, config: FleetConfig | None = None, rng: RandomSource | None = None) -> Snapshot:
        """Pause, discard all state and reinitialize from ``config`` (or the current one)."""
        with self._command_lock:
            self._pause()
            with self._state_lock:
                self._explicit_rng = rng
                self._initialize(config or self._config)
                snapshot = self._snapshot
            logger.info("Simulation reset")
        self._deliver()
        return snapshot

    def acknowledge_alert(self, alert_id: str) -> bool:
        with self._state_lock:
            found = self._alert_log.acknowledge(alert_id)
            if found:
                self._publish(self._compose())
        self._deliver()
        return found

    def cleanup(self, retention_minutes: int) -> int:
        """Drop history points and alerts older than ``retention_minutes``."""
        if retention_minutes <= 0:
            raise ValueError(f"retention_minutes must be positive, got {retention_minutes}")
        with self._state_lock:
            cutoff = self._clock() - timedelta(minutes=retention_minutes)
            removed = self._history.prune(retention_minutes)
            removed += self._alert_log.prune_before(cutoff)
            if removed:
                self._publish(self._compose())
        self._deliver()
        return removed

    def close(self) -> None:
        """Stop ticking and drop subscribers."""
        if self._closed:
            return
        self.pause()
        with self._state_lock:
            self._subscribers.clear()
        self._closed = True

    # -- queries -------------------------------------------------------------

    @property
    def config(self) -> FleetConfig:
        return self._config

    def get_snapshot(self) -> Snapshot:
        return self._snapshot

    def get_history(self, minutes: int | None = None) -> tuple[TimeSeriesPoint, ...]:
        with self._state_lock:
            return self._history.query(minutes)

    def get_server(self, server_id: str) -> ServerMetric | None:
        return self._snapshot.server(server_id)

    def get_task(self, task_id: str) -> MonitorTask | None:
        return self._snapshot.task(task_id)

    def get_alert(self, alert_id: str) -> AlertRecord | None:
        return self._snapshot.alert(alert_id)

    def get_load_balancer(self, balancer_id: str) -> LoadBalancerRecord | None:
        return self._snapshot.load_balancer(balancer_id)

    def server_health(self, server_id: str) -> HealthStatus | None:
        server = self.get_server(server_id)
        if server is None or not is_well_formed(server):
            return None
        return HealthAggregator.classify_server(server)

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register for every published snapshot. Returns an unsubscribe function."""
        with self._state_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._state_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe
