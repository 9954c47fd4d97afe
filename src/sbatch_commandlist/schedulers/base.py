"""Abstract base class for scheduler implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sbatch_commandlist.core.result import ArrayJobResult, TaskStatus
    from sbatch_commandlist.core.submission import SubmissionUnit

logger = logging.getLogger(__name__)


class BaseScheduler(ABC):
    """Abstract base class for scheduler implementations.

    Each scheduler must implement:
    - submit_array(): Submit a command-list array job
    - get_array_status(): Query the state of every array task
    - get_output_path(): Locate one task's log file
    - generate_script(): Generate the batch script

    Schedulers only append to and read from the queue; cancelling or
    modifying submitted work is left to the scheduler's own tools.
    """

    name: str  # e.g., "slurm", "local"

    @abstractmethod
    def submit_array(self, submission: SubmissionUnit, log_dir: Path) -> ArrayJobResult:
        """Submit an array job.

        Args:
            submission: Array descriptor
            log_dir: Parent directory for this submission's working files

        Raises:
            SchedulerRejected: The scheduler refused the job
        """

    @abstractmethod
    def get_array_status(
        self, job_id: str, indices: Sequence[int] | None = None
    ) -> dict[int, TaskStatus]:
        """Get current status of array tasks.

        Args:
            job_id: Array job ID
            indices: Tasks to report. None = every task the scheduler knows.
        """

    @abstractmethod
    def get_output_path(self, work_dir: Path, job_id: str, index: int) -> Path:
        """Get path to the log file of array task *index*."""

    @abstractmethod
    def generate_script(self, submission: SubmissionUnit, work_dir: Path) -> str:
        """Generate batch script content."""

    def prepare_work_dir(self, submission: SubmissionUnit, log_dir: Path) -> Path:
        """Create a fresh working directory and write one file per group.

        Group *i* goes to ``group_<i>.txt``, one command per line. Every
        group is written even when only a selection is launched.
        """
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        base = Path(log_dir).absolute() / f"{submission.name}_{stamp}"
        work_dir = base
        suffix = 1
        while work_dir.exists():
            work_dir = base.with_name(f"{base.name}.{suffix}")
            suffix += 1
        work_dir.mkdir(parents=True)

        for group in submission.groups:
            path = work_dir / f"group_{group.index:05d}.txt"
            path.write_text("".join(f"{cmd}\n" for cmd in group.commands), encoding="utf-8")

        logger.debug("Wrote %d group files to %s", submission.group_count, work_dir)
        return work_dir

    def write_script(self, submission: SubmissionUnit, work_dir: Path, filename: str) -> Path:
        """Render the batch script into *work_dir* and make it executable."""
        script_path = work_dir / filename
        script_path.write_text(self.generate_script(submission, work_dir))
        script_path.chmod(0o755)
        return script_path
