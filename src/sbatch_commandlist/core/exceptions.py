"""Custom exceptions for sbatch-commandlist."""


class CommandListError(Exception):
    """Base exception for sbatch-commandlist."""


class ValidationError(CommandListError):
    """Validation error for user-supplied parameters."""


class InvalidInput(ValidationError):
    """Empty command list, bad group bound or malformed resource value.

    Raised before anything is handed to the scheduler.
    """


class SchedulerError(CommandListError):
    """Error related to scheduler operations."""


class SubmissionError(SchedulerError):
    """Error during job submission."""


class SchedulerRejected(SubmissionError):
    """The scheduler refused the submission.

    ``message`` holds the scheduler's own output verbatim. Resubmitting is
    left to the user.
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.returncode = returncode


class ConfigError(CommandListError):
    """Error in configuration."""


class ConfigNotFoundError(ConfigError):
    """Configuration file not found."""
