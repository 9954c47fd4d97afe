"""Core models and abstractions for sbatch-commandlist."""

from .commandlist import CommandList
from .exceptions import (
    CommandListError,
    ConfigError,
    ConfigNotFoundError,
    InvalidInput,
    SchedulerError,
    SchedulerRejected,
    SubmissionError,
    ValidationError,
)
from .job_array import ArraySpec
from .monitor import ArrayMonitor, MonitorOutcome
from .result import ArrayJobResult, ArrayStatus, TaskStatus
from .splitter import MAX_GROUPS, Group, split
from .submission import ResourceConfig, SubmissionUnit, build_submission

__all__ = [
    # Exceptions
    "CommandListError",
    "ConfigError",
    "ConfigNotFoundError",
    "InvalidInput",
    "SchedulerError",
    "SchedulerRejected",
    "SubmissionError",
    "ValidationError",
    # Types
    "ArrayJobResult",
    "ArrayMonitor",
    "ArraySpec",
    "ArrayStatus",
    "CommandList",
    "Group",
    "MAX_GROUPS",
    "MonitorOutcome",
    "ResourceConfig",
    "SubmissionUnit",
    "TaskStatus",
    # Operations
    "build_submission",
    "split",
]
