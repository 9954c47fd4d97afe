"""Pytest configuration and fixtures."""

import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import sbatch_commandlist.core.config as config_module


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Keep the global config cache from leaking between tests."""
    config_module._cached_config = config_module.CommandListConfig()
    yield
    config_module._cached_config = None


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo CLI logging setup so caplog sees package records."""
    yield
    logger = logging.getLogger("sbatch_commandlist")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def commands_file(temp_dir):
    """A command list of 25 short commands."""
    path = temp_dir / "cmds.txt"
    path.write_text("".join(f"echo task {i}\n" for i in range(25)))
    return path


@pytest.fixture
def mock_slurm_commands():
    """Mock Slurm commands (sbatch, squeue, sacct)."""
    with patch("subprocess.run") as mock_run:
        def side_effect(cmd, *args, **kwargs):
            result = MagicMock()
            result.returncode = 0
            result.stdout = ""
            result.stderr = ""

            if cmd[0] == "sbatch":
                result.stdout = "12345\n"
            elif cmd[0] == "squeue":
                result.stdout = "12345_2|RUNNING\n12345_3|PENDING\n"
            elif cmd[0] == "sacct":
                result.stdout = (
                    "12345_0|COMPLETED\n"
                    "12345_1|FAILED\n"
                    "12345_2|RUNNING\n"
                    "12345_3|PENDING\n"
                )

            return result

        mock_run.side_effect = side_effect
        yield mock_run


@pytest.fixture
def sample_config(temp_dir):
    """Create a sample configuration file."""
    config_content = '''
[defaults]
max_jobs = 50
time = "2:00:00"
mem = "16GB"
min_group_duration = "20m"
poll_interval = 5

[schedulers.slurm]
extra_args = ["--qos=short"]
use_sacct = false
'''
    config_file = temp_dir / "commandlist.toml"
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def clean_env():
    """Clean environment variables that might affect tests."""
    env_vars = ["COMMANDLIST_SCHEDULER", "SLURM_ARRAY_TASK_ID", "COMMANDLIST_TASK_ID"]
    old_values = {var: os.environ.get(var) for var in env_vars}

    for var in env_vars:
        if var in os.environ:
            del os.environ[var]

    yield

    for var, value in old_values.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]
