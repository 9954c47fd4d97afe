"""Task status and submitted-array handles."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from sbatch_commandlist.core.monitor import ArrayMonitor
    from sbatch_commandlist.core.submission import SubmissionUnit
    from sbatch_commandlist.schedulers.base import BaseScheduler


class TaskStatus(Enum):
    """Unified array-task status across schedulers."""

    PENDING = auto()  # Waiting in queue
    RUNNING = auto()  # Currently executing
    COMPLETED = auto()  # Finished successfully
    FAILED = auto()  # Finished with error
    CANCELLED = auto()  # User cancelled
    TIMEOUT = auto()  # Hit time limit
    UNKNOWN = auto()  # Cannot determine

    @property
    def is_terminal(self) -> bool:
        """True once no further transition can happen."""
        return self in TERMINAL_STATES

    @property
    def is_failure(self) -> bool:
        """Terminal but not successful."""
        return self in (TaskStatus.FAILED, TaskStatus.CANCELLED, TaskStatus.TIMEOUT)


TERMINAL_STATES = frozenset(
    {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED, TaskStatus.TIMEOUT}
)


@dataclass(frozen=True)
class ArrayStatus:
    """Snapshot of every launched task of one array job at one poll.

    Attributes:
        job_id: Scheduler job ID of the array
        tasks: Task index -> status
        polled_at: When the scheduler was queried
    """

    job_id: str
    tasks: Mapping[int, TaskStatus]
    polled_at: datetime = field(default_factory=datetime.now)

    @property
    def counts(self) -> Counter[TaskStatus]:
        return Counter(self.tasks.values())

    @property
    def total(self) -> int:
        return len(self.tasks)

    @property
    def done(self) -> int:
        """Number of tasks in a terminal state."""
        return sum(1 for s in self.tasks.values() if s.is_terminal)

    @property
    def is_finished(self) -> bool:
        """At least one task is known and every task is terminal."""
        return bool(self.tasks) and all(s.is_terminal for s in self.tasks.values())

    @property
    def failed(self) -> list[int]:
        """Indices of tasks that ended unsuccessfully."""
        return sorted(idx for idx, s in self.tasks.items() if s.is_failure)

    @property
    def succeeded(self) -> bool:
        return self.is_finished and not self.failed


@dataclass
class ArrayJobResult:
    """Handle to a submitted command-list array job.

    The scheduler owns the job; this handle only observes it.
    """

    job_id: str
    scheduler: BaseScheduler
    submission: SubmissionUnit | None = None
    work_dir: Path | None = None
    indices: list[int] | None = None
    _seen: set[int] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.indices is None and self.submission is not None:
            self.indices = self.submission.task_indices

    def task_id(self, index: int) -> str:
        """Get scheduler job ID for a specific array task."""
        return f"{self.job_id}_{index}"

    def status(self) -> ArrayStatus:
        """Query the scheduler once for every task's state.

        Without explicit indices, tasks reported by an earlier poll that the
        scheduler no longer lists stay in the snapshot as UNKNOWN.
        """
        tasks = dict(self.scheduler.get_array_status(self.job_id, self.indices))
        for index in self._seen.difference(tasks):
            tasks[index] = TaskStatus.UNKNOWN
        self._seen.update(tasks)
        return ArrayStatus(job_id=self.job_id, tasks=dict(sorted(tasks.items())))

    def monitor(self, poll_interval: float = 30.0, timeout: float | None = None) -> ArrayMonitor:
        """Lazy sequence of status snapshots until every task is terminal."""
        from sbatch_commandlist.core.monitor import ArrayMonitor

        return ArrayMonitor(self, poll_interval=poll_interval, timeout=timeout)

    def output_path(self, index: int) -> Path | None:
        """Get path to the log file of one array task."""
        if self.work_dir is None:
            return None
        return self.scheduler.get_output_path(self.work_dir, self.job_id, index)
