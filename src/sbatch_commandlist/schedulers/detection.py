"""Pick a scheduler backend for the current host."""

import os
import shutil

ENV_VAR = "COMMANDLIST_SCHEDULER"

# Backend -> executables that must all be on PATH
_REQUIRED_COMMANDS: dict[str, tuple[str, ...]] = {
    "slurm": ("sbatch", "squeue"),
}


def detect_scheduler() -> str:
    """Return the backend name to use when none was requested.

    ``$COMMANDLIST_SCHEDULER`` wins; otherwise Slurm when its submit and
    queue commands are installed, else ``"local"``.
    """
    if override := os.environ.get(ENV_VAR):
        return override.strip().lower()

    for name, commands in _REQUIRED_COMMANDS.items():
        if all(shutil.which(cmd) for cmd in commands):
            return name

    return "local"
