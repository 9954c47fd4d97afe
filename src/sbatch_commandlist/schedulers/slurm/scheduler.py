"""Slurm scheduler implementation."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from sbatch_commandlist.core.config import get_config
from sbatch_commandlist.core.exceptions import SchedulerError, SchedulerRejected, SubmissionError
from sbatch_commandlist.core.result import ArrayJobResult, TaskStatus
from sbatch_commandlist.schedulers.base import BaseScheduler
from sbatch_commandlist.schedulers.slurm.args import (
    SlurmAccountArg,
    SlurmArrayArg,
    SlurmCpusArg,
    SlurmJobNameArg,
    SlurmMemArg,
    SlurmOutputArg,
    SlurmPartitionArg,
    SlurmTimeArg,
)
from sbatch_commandlist.schedulers.slurm.parser import (
    parse_sacct_output,
    parse_sbatch_output,
    parse_squeue_output,
    state_to_status,
)
from sbatch_commandlist.templates import render_template

if TYPE_CHECKING:
    from sbatch_commandlist.core.submission import SubmissionUnit

logger = logging.getLogger(__name__)

# %A = array master job ID, %5a = zero-padded task index
OUTPUT_PATTERN = "task_%5a.%A.out"


class SlurmScheduler(BaseScheduler):
    """Slurm scheduler implementation."""

    name = "slurm"

    # Descriptor-based argument definitions
    array_arg = SlurmArrayArg()
    time_arg = SlurmTimeArg()
    mem_arg = SlurmMemArg()
    account_arg = SlurmAccountArg()
    partition_arg = SlurmPartitionArg()
    cpus_arg = SlurmCpusArg()
    job_name_arg = SlurmJobNameArg()
    output_arg = SlurmOutputArg()

    def __init__(self) -> None:
        # Load scheduler-specific config
        config = get_config()
        slurm_config = config.get_scheduler_config("slurm")

        self.extra_args: list[str] = list(slurm_config.get("extra_args", []))
        self.use_sacct: bool = slurm_config.get("use_sacct", True)

    def submit_array(self, submission: SubmissionUnit, log_dir: Path) -> ArrayJobResult:
        """Submit array job via sbatch."""
        work_dir = self.prepare_work_dir(submission, log_dir)
        script_path = self.write_script(submission, work_dir, "array.sh")

        cmd = self.build_submit_command(script_path)
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, check=True
            )
        except FileNotFoundError as e:
            raise SubmissionError("sbatch not found; is Slurm available on this host?") from e
        except subprocess.CalledProcessError as e:
            message = (e.stderr or e.stdout or "").strip() or f"sbatch exited with status {e.returncode}"
            raise SchedulerRejected(message, returncode=e.returncode) from e

        job_id = parse_sbatch_output(result.stdout)
        if job_id is None:
            raise SubmissionError(f"Failed to parse job ID from sbatch output: {result.stdout}")

        logger.info(
            "Submitted %s as job %s (%d tasks)", submission.name, job_id, len(submission.task_indices)
        )
        return ArrayJobResult(
            job_id=job_id, scheduler=self, submission=submission, work_dir=work_dir
        )

    def build_submit_command(self, script_path: Path) -> list[str]:
        """Build sbatch command line."""
        return ["sbatch", "--parsable", str(script_path)]

    def generate_script(self, submission: SubmissionUnit, work_dir: Path) -> str:
        """Generate sbatch script using template."""
        directives = self._build_directives(submission, work_dir)
        return render_template(
            "slurm/templates/array.sh.j2",
            submission=submission,
            scheduler=self,
            directives=directives,
            work_dir=work_dir,
        )

    def _build_directives(self, submission: SubmissionUnit, work_dir: Path) -> list[str]:
        """Build #SBATCH directives."""
        resources = submission.resources
        directives = [
            self.job_name_arg.to_directive(submission.name),
            self.array_arg.to_directive(submission.array_spec.range_str),
            self.time_arg.to_directive(resources.time),
            self.mem_arg.to_directive(resources.mem),
            self.cpus_arg.to_directive(resources.cpus),
            self.account_arg.to_directive(resources.project),
            self.partition_arg.to_directive(resources.partition),
            self.output_arg.to_directive(work_dir / OUTPUT_PATTERN),
        ]

        # Raw args
        for arg in self.extra_args + list(resources.extra_args):
            directives.append(f"#SBATCH {arg}")

        return [d for d in directives if d is not None]

    def get_array_status(
        self, job_id: str, indices: Sequence[int] | None = None
    ) -> dict[int, TaskStatus]:
        """Get array task states from sacct and squeue.

        squeue is authoritative for live tasks; sacct fills in tasks that
        have left the queue.
        """
        states: dict[int, str] = {}
        if self.use_sacct:
            states.update(self._query_sacct(job_id))
        states.update(self._query_squeue(job_id))

        if indices is None:
            indices = sorted(states)

        return {
            idx: state_to_status(states[idx]) if idx in states else TaskStatus.UNKNOWN
            for idx in indices
        }

    def _query_squeue(self, job_id: str) -> dict[int, str]:
        cmd = ["squeue", "-h", "-r", "-j", job_id, "-o", "%i|%T"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise SchedulerError("squeue not found; is Slurm available on this host?") from e

        if result.returncode != 0:
            # squeue errors once the job has left the queue entirely
            logger.debug("squeue -j %s: %s", job_id, result.stderr.strip())
            return {}
        return parse_squeue_output(result.stdout, job_id)

    def _query_sacct(self, job_id: str) -> dict[int, str]:
        cmd = ["sacct", "-n", "-P", "-X", "-j", job_id, "-o", "JobID,State"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.debug("sacct not found; relying on squeue only")
            return {}

        if result.returncode != 0:
            logger.debug("sacct -j %s: %s", job_id, result.stderr.strip())
            return {}
        return parse_sacct_output(result.stdout, job_id)

    def get_output_path(self, work_dir: Path, job_id: str, index: int) -> Path:
        """Resolve the --output pattern for one task."""
        return work_dir / f"task_{index:05d}.{job_id}.out"
