"""Monitoring-task state machine: queued -> running -> completed | failed."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from fleetpulse.config import TaskConfig
from fleetpulse.core.random_walk import RandomSource
from fleetpulse.models.enums import TaskStatus
from fleetpulse.models.runtime import MonitorTask

logger = logging.getLogger("fleetpulse.tasks")

# Progress seeded on queued -> running
START_PROGRESS_RANGE = (5.0, 20.0)


class TaskLifecycleEngine:
    """Advances every non-terminal task by one tick and occasionally spawns new ones."""

    def __init__(
        self,
        rng: RandomSource,
        base_count: int,
        config: TaskConfig | None = None,
        spawn_task=None,
    ) -> None:
        """
        Args:
            rng: Random source shared with the rest of the simulation.
            base_count: Initially configured task count; spawning stops at
                ``int(base_count * spawn_ceiling_factor)`` tasks.
            config: Transition probabilities.
            spawn_task: Callable ``(now) -> MonitorTask`` building a fresh queued task.
        """
        self._rng = rng
        self._config = config or TaskConfig()
        self._ceiling = int(base_count * self._config.spawn_ceiling_factor)
        self._spawn_task = spawn_task

    @property
    def ceiling(self) -> int:
        return self._ceiling

    def tick(
        self, tasks: tuple[MonitorTask, ...], now: datetime | None = None
    ) -> tuple[MonitorTask, ...]:
        now = now or datetime.now(timezone.utc)
        advanced = [self.advance(task, now) for task in tasks]

        if (
            self._spawn_task is not None
            and len(advanced) < self._ceiling
            and self._rng.random() < self._config.spawn_probability
        ):
            spawned = self._spawn_task(now)
            logger.debug("Spawned task %s (%s)", spawned.task_id, spawned.name)
            advanced.insert(0, spawned)

        return tuple(advanced)

    def advance(self, task: MonitorTask, now: datetime) -> MonitorTask:
        """Return the task after one tick. Terminal tasks are returned untouched."""
        if task.status == TaskStatus.QUEUED:
            if self._rng.random() < self._config.start_probability:
                return replace(
                    task,
                    status=TaskStatus.RUNNING,
                    progress=round(self._rng.uniform(*START_PROGRESS_RANGE), 2),
                    updated_at=now,
                )
            return task

        if task.status == TaskStatus.RUNNING:
            increment = self._rng.uniform(0.0, self._config.max_increment)
            progress = round(min(100.0, task.progress + increment), 2)
            if progress >= 100.0:
                failed = self._rng.random() < self._config.fail_probability
                status = TaskStatus.FAILED if failed else TaskStatus.COMPLETED
                logger.debug("Task %s finished: %s", task.task_id, status.value)
                return replace(task, status=status, progress=100.0, updated_at=now)
            return replace(task, progress=progress, updated_at=now)

        return task
