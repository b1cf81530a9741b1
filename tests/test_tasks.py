"""Tests for the monitoring-task state machine."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from fleetpulse.config import TaskConfig
from fleetpulse.core.random_walk import make_rng
from fleetpulse.core.tasks import TaskLifecycleEngine
from fleetpulse.models.enums import TaskStatus
from fleetpulse.models.runtime import MonitorTask

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _task(status=TaskStatus.QUEUED, progress=0.0, task_id="task-1"):
    return MonitorTask(
        task_id=task_id, name="scan", target_cluster="prod-east",
        status=status, progress=progress, created_at=START, updated_at=START,
    )


def _rng(random_values=(), uniform_values=()):
    rng = MagicMock()
    rng.random.side_effect = list(random_values)
    rng.uniform.side_effect = list(uniform_values)
    return rng


def _spawn(now):
    return _task(task_id=f"spawned-{now.isoformat()}")


class TestQueued:
    def test_starts_when_draw_below_probability(self):
        engine = TaskLifecycleEngine(_rng([0.1], [12.0]), base_count=1)
        now = START + timedelta(seconds=1)
        task = engine.advance(_task(), now)
        assert task.status == TaskStatus.RUNNING
        assert task.progress == 12.0
        assert task.updated_at == now

    def test_stays_queued(self):
        engine = TaskLifecycleEngine(_rng([0.9]), base_count=1)
        original = _task()
        assert engine.advance(original, START) is original


class TestRunning:
    def test_progress_increments(self):
        engine = TaskLifecycleEngine(_rng(uniform_values=[4.0]), base_count=1)
        task = engine.advance(_task(TaskStatus.RUNNING, 50.0), START)
        assert task.status == TaskStatus.RUNNING
        assert task.progress == 54.0

    def test_reaching_100_completes(self):
        engine = TaskLifecycleEngine(_rng([0.5], [6.0]), base_count=1)
        task = engine.advance(_task(TaskStatus.RUNNING, 95.0), START)
        assert task.status == TaskStatus.COMPLETED
        assert task.progress == 100.0

    def test_reaching_100_can_fail(self):
        engine = TaskLifecycleEngine(_rng([0.05], [5.0]), base_count=1)
        task = engine.advance(_task(TaskStatus.RUNNING, 95.0), START)
        assert task.status == TaskStatus.FAILED
        assert task.progress == 100.0

    def test_seeded_95_finishes_with_big_increment(self):
        # Any increment >= 5 from 95 must end the task
        for seed in range(20):
            rng = make_rng(seed)
            engine = TaskLifecycleEngine(rng, base_count=1, config=TaskConfig(max_increment=10.0))
            task = _task(TaskStatus.RUNNING, 95.0)
            state = rng.getstate()
            increment = rng.uniform(0.0, 10.0)
            rng.setstate(state)
            after = engine.advance(task, START)
            if increment >= 5.0:
                assert after.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)
                assert after.progress == 100.0


class TestTerminal:
    def test_terminal_untouched(self):
        engine = TaskLifecycleEngine(make_rng(0), base_count=1)
        for status in (TaskStatus.COMPLETED, TaskStatus.FAILED):
            task = _task(status, 100.0)
            assert engine.advance(task, START + timedelta(hours=1)) is task


class TestTickProperties:
    def test_monotonic_and_terminal_over_many_ticks(self):
        engine = TaskLifecycleEngine(make_rng(11), base_count=10, spawn_task=_spawn)
        tasks = tuple(_task(task_id=f"t{i}") for i in range(10))
        previous = {t.task_id: t for t in tasks}
        now = START
        for _ in range(200):
            now += timedelta(seconds=1)
            tasks = engine.tick(tasks, now)
            for t in tasks:
                before = previous.get(t.task_id)
                if before is None:
                    continue
                if before.is_terminal:
                    assert t == before
                elif before.status == TaskStatus.RUNNING and t.status == TaskStatus.RUNNING:
                    assert t.progress >= before.progress
                assert 0.0 <= t.progress <= 100.0
            previous = {t.task_id: t for t in tasks}

    def test_spawn_respects_ceiling(self):
        config = TaskConfig(spawn_probability=1.0, start_probability=0.0)
        engine = TaskLifecycleEngine(make_rng(0), base_count=4, config=config, spawn_task=_spawn)
        assert engine.ceiling == 6
        tasks = tuple(_task(task_id=f"t{i}") for i in range(4))
        now = START
        for _ in range(10):
            now += timedelta(seconds=1)
            tasks = engine.tick(tasks, now)
        assert len(tasks) == 6

    def test_spawned_task_prepended(self):
        config = TaskConfig(spawn_probability=1.0, start_probability=0.0)
        engine = TaskLifecycleEngine(make_rng(0), base_count=4, config=config, spawn_task=_spawn)
        tasks = engine.tick((_task(),), START)
        assert tasks[0].task_id.startswith("spawned-")
        assert tasks[0].status == TaskStatus.QUEUED

    def test_no_spawner_no_spawn(self):
        config = TaskConfig(spawn_probability=1.0, start_probability=0.0)
        engine = TaskLifecycleEngine(make_rng(0), base_count=4, config=config)
        assert len(engine.tick((_task(),), START)) == 1

    def test_empty(self):
        engine = TaskLifecycleEngine(make_rng(0), base_count=0, spawn_task=_spawn)
        assert engine.tick((), START) == ()
