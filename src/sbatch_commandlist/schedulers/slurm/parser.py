"""Slurm output parsing utilities."""

import re

from sbatch_commandlist.core.exceptions import InvalidInput
from sbatch_commandlist.core.job_array import ArraySpec
from sbatch_commandlist.core.result import TaskStatus

# 12345_7, 12345_[0-9,12%4]
_ARRAY_TASK_RE = re.compile(r"^(\d+)_(?:(\d+)|\[([^\]]+)\])$")


def parse_sbatch_output(output: str) -> str | None:
    """Parse ``sbatch --parsable`` output to extract the job ID.

    Expected format:
    12345
    12345;cluster
    """
    lines = [line.strip() for line in output.strip().splitlines() if line.strip()]
    if not lines:
        return None

    job_id = lines[-1].split(";", 1)[0]
    if job_id.isdigit():
        return job_id

    # Not --parsable: "Submitted batch job 12345"
    match = re.search(r"Submitted batch job (\d+)", output)
    if match:
        return match.group(1)

    return None


def expand_task_id(task_id: str, job_id: str) -> list[int]:
    """Expand a Slurm array task ID into indices.

    ``12345_7`` -> [7]; ``12345_[0-3,8]`` -> [0, 1, 2, 3, 8]. IDs that do
    not belong to *job_id*, and job steps such as ``12345_7.batch``, give [].
    """
    match = _ARRAY_TASK_RE.match(task_id.strip())
    if not match or match.group(1) != job_id:
        return []
    if match.group(2) is not None:
        return [int(match.group(2))]
    try:
        return ArraySpec.parse(match.group(3)).indices
    except InvalidInput:
        return []


def _parse_pipe_table(output: str, job_id: str) -> dict[int, str]:
    """Parse ``<task id>|<state>`` lines into index -> state."""
    states: dict[int, str] = {}

    for line in output.strip().splitlines():
        parts = line.strip().split("|")
        if len(parts) < 2:
            continue
        # "CANCELLED by 1234" -> "CANCELLED"
        state = parts[1].split()[0] if parts[1].strip() else ""
        for index in expand_task_id(parts[0], job_id):
            states[index] = state

    return states


def parse_squeue_output(output: str, job_id: str) -> dict[int, str]:
    """Parse ``squeue -h -r -j <id> -o "%i|%T"`` output.

    Format:
    12345_0|RUNNING
    12345_1|PENDING
    """
    return _parse_pipe_table(output, job_id)


def parse_sacct_output(output: str, job_id: str) -> dict[int, str]:
    """Parse ``sacct -n -P -X -j <id> -o JobID,State`` output.

    Format:
    12345_0|COMPLETED
    12345_1|FAILED
    12345_2|CANCELLED by 1000
    12345_[3-9]|PENDING
    """
    return _parse_pipe_table(output, job_id)


def state_to_status(state: str) -> TaskStatus:
    """Convert a Slurm job state to TaskStatus.

    Slurm states:
    - PENDING, CONFIGURING, REQUEUED, REQUEUE_HOLD, RESV_DEL_HOLD, SUSPENDED: waiting
    - RUNNING, COMPLETING, STAGE_OUT, SIGNALING, RESIZING: running
    - COMPLETED: finished with exit code 0
    - FAILED, NODE_FAIL, BOOT_FAIL, OUT_OF_MEMORY, DEADLINE, PREEMPTED: failed
    - CANCELLED: cancelled
    - TIMEOUT: hit the time limit
    """
    state = state.upper().rstrip("+")

    if state in ("RUNNING", "COMPLETING", "STAGE_OUT", "SIGNALING", "RESIZING"):
        return TaskStatus.RUNNING
    elif state in (
        "PENDING",
        "CONFIGURING",
        "REQUEUED",
        "REQUEUE_HOLD",
        "REQUEUE_FED",
        "RESV_DEL_HOLD",
        "SUSPENDED",
        "STOPPED",
    ):
        return TaskStatus.PENDING
    elif state == "COMPLETED":
        return TaskStatus.COMPLETED
    elif state in ("FAILED", "NODE_FAIL", "BOOT_FAIL", "OUT_OF_MEMORY", "DEADLINE", "PREEMPTED"):
        return TaskStatus.FAILED
    elif state == "CANCELLED":
        return TaskStatus.CANCELLED
    elif state == "TIMEOUT":
        return TaskStatus.TIMEOUT

    return TaskStatus.UNKNOWN
