"""Configuration loading and management."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable

from sbatch_commandlist.core.exceptions import ConfigError, ConfigNotFoundError, InvalidInput
from sbatch_commandlist.core.project import DEFAULT_PROJECT_PATTERN
from sbatch_commandlist.core.splitter import MAX_GROUPS
from sbatch_commandlist.core.timeutil import parse_duration

CONFIG_NAME = "commandlist.toml"
PYPROJECT_TOOL = "sbatch-commandlist"

_NUMERIC_FIELDS = (("max_jobs", int), ("cpus", int), ("max_running", int), ("poll_interval", float))


@dataclass
class CommandListConfig:
    """Loaded configuration."""

    defaults: dict[str, Any] = field(default_factory=dict)
    schedulers: dict[str, dict[str, Any]] = field(default_factory=dict)

    _source_path: Path | None = field(default=None, repr=False)

    def get_scheduler_config(self, scheduler: str) -> dict[str, Any]:
        """Get scheduler-specific configuration."""
        return self.schedulers.get(scheduler, {})

    @property
    def source_path(self) -> Path | None:
        return self._source_path


@dataclass(frozen=True)
class RunConfig:
    """User-supplied parameters of one split-and-submit run.

    Attributes:
        max_jobs: Upper bound on the number of groups
        min_group_duration: Floor on each group's estimated runtime
        command_duration: Estimated runtime of one command (None = unknown)
        time: Wall-clock limit per group
        mem: Memory per group
        project: Billing identifier override (None = infer from path)
        partition: Partition name
        cpus: CPUs per group
        max_running: Concurrency cap (None = no cap)
        poll_interval: Seconds between monitor polls
        log_dir: Where group files, scripts and task logs are written
        project_pattern: Regex used to infer the project from the path
    """

    max_jobs: int = MAX_GROUPS
    min_group_duration: timedelta = timedelta(minutes=30)
    command_duration: timedelta | None = None
    time: str = "12:00:00"
    mem: str = "8GB"
    project: str | None = None
    partition: str | None = None
    cpus: int = 1
    max_running: int | None = None
    poll_interval: float = 30.0
    log_dir: Path = Path("commandlist_logs")
    project_pattern: str = DEFAULT_PROJECT_PATTERN

    @classmethod
    def from_config(cls, config: CommandListConfig) -> RunConfig:
        """Build from the ``[defaults]`` table, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in config.defaults.items() if k in known}
        return cls().with_overrides(**values)

    def with_overrides(self, **overrides: Any) -> RunConfig:
        """Return a copy with every non-None override applied.

        Values may come straight from TOML, so numbers are accepted where a
        string is expected: ``mem = 8192`` is megabytes and a bare number for
        a duration or time limit is minutes, as in Slurm.

        Raises:
            InvalidInput: If a value has the wrong type or cannot be parsed.
        """
        values = {k: v for k, v in overrides.items() if v is not None}

        for key in ("time", "mem", "min_group_duration", "command_duration"):
            if key in values and not isinstance(values[key], timedelta):
                values[key] = _as_text(key, values[key])
        for key in ("min_group_duration", "command_duration"):
            if isinstance(values.get(key), str):
                values[key] = parse_duration(values[key])
        for key, convert in _NUMERIC_FIELDS:
            if key in values:
                values[key] = _as_number(key, values[key], convert)
        for key in ("project", "partition", "project_pattern"):
            if key in values:
                values[key] = _as_text(key, values[key])
        if "log_dir" in values:
            values["log_dir"] = Path(_as_text("log_dir", values["log_dir"]))

        return replace(self, **values)


def _as_text(key: str, value: Any) -> str:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidInput(f"Invalid value for {key}: {value!r}")
    return str(value)


def _as_number(key: str, value: Any, convert: Callable[[Any], Any]) -> Any:
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid value for {key}: {value!r}")
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Invalid value for {key}: {value!r}") from e


def find_config_file() -> Path | None:
    """Find configuration file in priority order.

    Search order:
    1. ./commandlist.toml (current directory)
    2. ./pyproject.toml [tool.sbatch-commandlist] section
    3. Git repository root commandlist.toml
    4. ~/.config/sbatch-commandlist/config.toml
    """
    cwd = Path.cwd()
    if (cwd / CONFIG_NAME).exists():
        return cwd / CONFIG_NAME

    if (cwd / "pyproject.toml").exists():
        try:
            with open(cwd / "pyproject.toml", "rb") as f:
                pyproject = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            pyproject = {}
        if PYPROJECT_TOOL in pyproject.get("tool", {}):
            return cwd / "pyproject.toml"

    git_root = _find_git_root(cwd)
    if git_root and (git_root / CONFIG_NAME).exists():
        return git_root / CONFIG_NAME

    user_config = user_config_path()
    if user_config.exists():
        return user_config

    return None


def user_config_path() -> Path:
    """Location of the per-user configuration file."""
    return Path.home() / ".config" / "sbatch-commandlist" / "config.toml"


def _find_git_root(start: Path) -> Path | None:
    """Find git repository root."""
    current = start.resolve()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    return None


def load_config(path: Path | str | None = None) -> CommandListConfig:
    """Load configuration from file.

    Args:
        path: Explicit config path or None to auto-discover

    Raises:
        ConfigNotFoundError: If an explicit *path* does not exist
        ConfigError: If the file is not valid TOML
    """
    if path is None:
        path = find_config_file()
    elif not Path(path).exists():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    if path is None:
        return CommandListConfig()  # Empty config, use defaults

    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    # Handle pyproject.toml
    if path.name == "pyproject.toml":
        data = data.get("tool", {}).get(PYPROJECT_TOOL, {})

    config = CommandListConfig(
        defaults=dict(data.get("defaults", {})),
        schedulers=data.get("schedulers", {}),
    )
    config._source_path = path

    return config


# Global config cache
_cached_config: CommandListConfig | None = None


def get_config() -> CommandListConfig:
    """Get the global configuration (cached)."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(path: Path | str | None = None) -> CommandListConfig:
    """Reload configuration (clears cache)."""
    global _cached_config
    _cached_config = load_config(path)
    return _cached_config
