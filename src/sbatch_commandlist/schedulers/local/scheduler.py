"""Local scheduler - runs array tasks as subprocesses."""

from __future__ import annotations

import logging
import os
import subprocess
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import IO, TYPE_CHECKING

from sbatch_commandlist.core.exceptions import SubmissionError
from sbatch_commandlist.core.result import ArrayJobResult, TaskStatus
from sbatch_commandlist.schedulers.base import BaseScheduler
from sbatch_commandlist.templates import render_template

if TYPE_CHECKING:
    from sbatch_commandlist.core.submission import SubmissionUnit

logger = logging.getLogger(__name__)


@dataclass
class _LocalArray:
    """Book-keeping for one locally running array."""

    script_path: Path
    work_dir: Path
    max_running: int | None
    pending: deque[int]
    processes: dict[int, subprocess.Popen] = field(default_factory=dict)  # type: ignore[type-arg]
    log_files: dict[int, IO[str]] = field(default_factory=dict)
    exit_codes: dict[int, int] = field(default_factory=dict)


class LocalScheduler(BaseScheduler):
    """Run array tasks on this machine (for development/testing).

    Tasks start when the array is submitted and whenever a status poll
    finds a free slot under the concurrency cap.
    """

    name = "local"

    _job_counter: int = 0
    _arrays: dict[str, _LocalArray] = {}
    _finished: dict[str, dict[int, int]] = {}

    def submit_array(self, submission: SubmissionUnit, log_dir: Path) -> ArrayJobResult:
        """Start the array's tasks as local subprocesses."""
        LocalScheduler._job_counter += 1
        job_id = f"local_{LocalScheduler._job_counter}_{datetime.now().strftime('%Y%m%d%H%M%S')}"

        work_dir = self.prepare_work_dir(submission, log_dir)
        script_path = self.write_script(submission, work_dir, "task.sh")

        LocalScheduler._arrays[job_id] = _LocalArray(
            script_path=script_path,
            work_dir=work_dir,
            max_running=submission.resources.max_running,
            pending=deque(submission.task_indices),
        )
        try:
            self._launch_ready(job_id)
        except SubmissionError:
            if not LocalScheduler._arrays[job_id].processes:
                del LocalScheduler._arrays[job_id]
            raise

        logger.info("Started %s locally as %s", submission.name, job_id)
        return ArrayJobResult(
            job_id=job_id, scheduler=self, submission=submission, work_dir=work_dir
        )

    def _launch_ready(self, job_id: str) -> None:
        """Start pending tasks while the concurrency cap allows.

        Raises:
            SubmissionError: If a task process cannot be started
        """
        array = LocalScheduler._arrays[job_id]
        while array.pending:
            if array.max_running is not None and len(array.processes) >= array.max_running:
                break
            index = array.pending[0]
            env = os.environ.copy()
            env["COMMANDLIST_TASK_ID"] = str(index)

            log_file = open(self.get_output_path(array.work_dir, job_id, index), "w")
            try:
                proc = subprocess.Popen(
                    ["bash", str(array.script_path)],
                    cwd=Path.cwd(),
                    env=env,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                )
            except OSError as e:
                log_file.close()
                raise SubmissionError(f"Could not start task {index} of {job_id}: {e}") from e
            array.pending.popleft()
            array.log_files[index] = log_file
            array.processes[index] = proc

    def _reap(self, job_id: str) -> None:
        """Record exit codes of finished tasks.

        Once nothing is pending or running, only the exit codes are kept.
        """
        array = LocalScheduler._arrays[job_id]
        for index, proc in list(array.processes.items()):
            code = proc.poll()
            if code is None:
                continue
            array.exit_codes[index] = code
            array.log_files.pop(index).close()
            del array.processes[index]

        if not array.pending and not array.processes:
            LocalScheduler._finished[job_id] = array.exit_codes
            del LocalScheduler._arrays[job_id]

    def get_array_status(
        self, job_id: str, indices: Sequence[int] | None = None
    ) -> dict[int, TaskStatus]:
        """Get task states, starting queued tasks as slots free up."""
        if job_id in LocalScheduler._arrays:
            self._reap(job_id)
        if job_id in LocalScheduler._arrays:
            self._launch_ready(job_id)

        states: dict[int, TaskStatus] = {}
        array = LocalScheduler._arrays.get(job_id)
        if array is not None:
            for index in array.pending:
                states[index] = TaskStatus.PENDING
            for index in array.processes:
                states[index] = TaskStatus.RUNNING
            exit_codes = array.exit_codes
        else:
            exit_codes = LocalScheduler._finished.get(job_id, {})
        for index, code in exit_codes.items():
            states[index] = TaskStatus.COMPLETED if code == 0 else TaskStatus.FAILED

        if indices is None:
            indices = sorted(states)
        return {idx: states.get(idx, TaskStatus.UNKNOWN) for idx in indices}

    def wait(self, job_id: str) -> None:
        """Block until every task of a local array has exited."""
        while job_id in LocalScheduler._arrays:
            array = LocalScheduler._arrays[job_id]
            for proc in list(array.processes.values()):
                proc.wait()
            self._reap(job_id)
            if job_id in LocalScheduler._arrays:
                self._launch_ready(job_id)

    def get_output_path(self, work_dir: Path, job_id: str, index: int) -> Path:
        """Get the log file of one task."""
        return work_dir / f"task_{index:05d}.{job_id}.out"

    def generate_script(self, submission: SubmissionUnit, work_dir: Path) -> str:
        """Generate local task script."""
        return render_template(
            "local/templates/task.sh.j2",
            submission=submission,
            scheduler=self,
            work_dir=work_dir,
        )
