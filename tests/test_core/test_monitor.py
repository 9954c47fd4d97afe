"""Tests for array job monitoring."""

from pathlib import Path

import pytest

from sbatch_commandlist.core.monitor import ArrayMonitor, MonitorOutcome
from sbatch_commandlist.core.result import ArrayJobResult, TaskStatus
from sbatch_commandlist.schedulers.base import BaseScheduler

P, R, C, F = TaskStatus.PENDING, TaskStatus.RUNNING, TaskStatus.COMPLETED, TaskStatus.FAILED


class ScriptedScheduler(BaseScheduler):
    """Scheduler that replays a fixed sequence of status polls."""

    name = "scripted"

    def __init__(self, polls):
        self.polls = list(polls)
        self.calls = 0

    def submit_array(self, submission, log_dir):
        raise NotImplementedError

    def get_array_status(self, job_id, indices=None):
        poll = self.polls[min(self.calls, len(self.polls) - 1)]
        self.calls += 1
        if isinstance(poll, BaseException):
            raise poll
        return dict(poll) if isinstance(poll, dict) else dict(enumerate(poll))

    def get_output_path(self, work_dir, job_id, index):
        return Path(work_dir) / f"task_{index}.out"

    def generate_script(self, submission, work_dir):
        return ""


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _monitor(polls, timeout=None, poll_interval=10.0):
    scheduler = ScriptedScheduler(polls)
    result = ArrayJobResult(job_id="42", scheduler=scheduler)
    clock = FakeClock()
    monitor = ArrayMonitor(
        result, poll_interval=poll_interval, timeout=timeout, sleep=clock.sleep, clock=clock
    )
    return monitor, scheduler, clock


class TestArrayMonitor:
    """Tests for ArrayMonitor."""

    def test_yields_until_finished(self):
        monitor, scheduler, clock = _monitor([[P, P], [R, P], [C, R], [C, F]])

        snapshots = list(monitor)

        assert len(snapshots) == 4
        assert snapshots[-1].is_finished
        assert monitor.outcome is MonitorOutcome.FINISHED
        assert clock.sleeps == [10.0, 10.0, 10.0]

    def test_already_finished_yields_one_snapshot(self):
        """A finished job still produces one snapshot, without sleeping."""
        monitor, scheduler, clock = _monitor([[C, C]])

        snapshots = list(monitor)

        assert len(snapshots) == 1
        assert snapshots[0].succeeded
        assert clock.sleeps == []

    def test_last_snapshot_kept(self):
        monitor, _, _ = _monitor([[R], [F]])
        list(monitor)

        assert monitor.last.failed == [0]

    def test_keyboard_interrupt_ends_sequence(self):
        """Ctrl-C during polling stops monitoring quietly."""
        monitor, scheduler, _ = _monitor([[R, P], KeyboardInterrupt()])

        snapshots = list(monitor)

        assert len(snapshots) == 1
        assert monitor.outcome is MonitorOutcome.INTERRUPTED

    def test_break_marks_interrupted(self):
        monitor, _, _ = _monitor([[R], [R], [C]])

        iterator = iter(monitor)
        next(iterator)
        iterator.close()

        assert monitor.outcome is MonitorOutcome.INTERRUPTED

    def test_timeout(self):
        monitor, _, _ = _monitor([[R]], timeout=25.0)

        with pytest.raises(TimeoutError):
            list(monitor)
        assert monitor.outcome is MonitorOutcome.INTERRUPTED

    def test_reiteration_repolls(self):
        """A second iteration asks the scheduler again instead of replaying."""
        monitor, scheduler, _ = _monitor([[C]])

        list(monitor)
        list(monitor)

        assert scheduler.calls == 2

    def test_unknown_is_not_terminal(self):
        monitor, _, clock = _monitor([[TaskStatus.UNKNOWN], [C]])

        snapshots = list(monitor)

        assert len(snapshots) == 2
        assert not snapshots[0].is_finished

    def test_result_monitor_factory(self):
        result = ArrayJobResult(job_id="42", scheduler=ScriptedScheduler([[C]]))
        monitor = result.monitor(poll_interval=5, timeout=60)

        assert isinstance(monitor, ArrayMonitor)
        assert monitor.poll_interval == 5
        assert monitor.timeout == 60

    def test_empty_snapshot_is_not_finished(self):
        """A job the scheduler reports no tasks for keeps being polled."""
        monitor, scheduler, clock = _monitor([[], [], [C]])

        snapshots = list(monitor)

        assert [s.total for s in snapshots] == [0, 0, 1]
        assert monitor.outcome is MonitorOutcome.FINISHED
        assert clock.sleeps == [10.0, 10.0]

    def test_tasks_leaving_queue_stay_unknown(self):
        """A task that drops out of the listing is kept as UNKNOWN."""
        monitor, _, _ = _monitor([{0: R, 1: R}, {1: C}, {0: C, 1: C}])

        snapshots = list(monitor)

        assert snapshots[1].tasks == {0: TaskStatus.UNKNOWN, 1: C}
        assert not snapshots[1].is_finished
        assert snapshots[2].succeeded
