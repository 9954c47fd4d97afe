"""sbatch-commandlist: run a list of shell commands as one balanced array job."""

from sbatch_commandlist.core.commandlist import CommandList
from sbatch_commandlist.core.config import (
    CommandListConfig,
    RunConfig,
    get_config,
    load_config,
    reload_config,
)
from sbatch_commandlist.core.exceptions import (
    CommandListError,
    ConfigError,
    ConfigNotFoundError,
    InvalidInput,
    SchedulerError,
    SchedulerRejected,
    SubmissionError,
    ValidationError,
)
from sbatch_commandlist.core.job_array import ArraySpec
from sbatch_commandlist.core.monitor import ArrayMonitor, MonitorOutcome
from sbatch_commandlist.core.result import ArrayJobResult, ArrayStatus, TaskStatus
from sbatch_commandlist.core.splitter import MAX_GROUPS, Group, split
from sbatch_commandlist.core.submission import ResourceConfig, SubmissionUnit, build_submission
from sbatch_commandlist.schedulers import get_scheduler, list_schedulers, register_scheduler

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "CommandList",
    "Group",
    "MAX_GROUPS",
    "split",
    "ResourceConfig",
    "SubmissionUnit",
    "build_submission",
    "ArraySpec",
    "ArrayJobResult",
    "ArrayStatus",
    "TaskStatus",
    "ArrayMonitor",
    "MonitorOutcome",
    # Config
    "load_config",
    "get_config",
    "reload_config",
    "CommandListConfig",
    "RunConfig",
    # Schedulers
    "get_scheduler",
    "register_scheduler",
    "list_schedulers",
    # Exceptions
    "CommandListError",
    "ValidationError",
    "InvalidInput",
    "SchedulerError",
    "SubmissionError",
    "SchedulerRejected",
    "ConfigError",
    "ConfigNotFoundError",
]
