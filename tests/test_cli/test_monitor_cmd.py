"""Tests for CLI monitor command."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from sbatch_commandlist.cli.main import cli
from sbatch_commandlist.core.result import TaskStatus


@pytest.fixture
def runner():
    return CliRunner()


def _scheduler(*polls):
    sched = MagicMock()
    sched.name = "mock"
    sched.get_array_status.side_effect = list(polls)
    sched.get_output_path.side_effect = lambda work_dir, job_id, index: Path(work_dir) / f"task_{index}.out"
    return sched


def _patch_scheduler(mock_sched):
    return patch("sbatch_commandlist.schedulers.get_scheduler", return_value=mock_sched)


class TestMonitorCommand:
    """Tests for 'commandlist monitor'."""

    def test_follows_until_finished(self, runner):
        """Test polling until every task is terminal."""
        sched = _scheduler(
            {0: TaskStatus.PENDING, 1: TaskStatus.PENDING},
            {0: TaskStatus.RUNNING, 1: TaskStatus.PENDING},
            {0: TaskStatus.COMPLETED, 1: TaskStatus.COMPLETED},
        )
        with _patch_scheduler(sched):
            result = runner.invoke(cli, ["monitor", "55", "--interval", "0"])

        assert result.exit_code == 0
        assert "0/2 done" in result.output
        assert "All 2 tasks completed successfully" in result.output
        assert sched.get_array_status.call_count == 3

    def test_failures_exit_nonzero(self, runner):
        """Failed tasks are listed with a resubmission hint."""
        sched = _scheduler(
            {0: TaskStatus.COMPLETED, 1: TaskStatus.FAILED, 2: TaskStatus.TIMEOUT, 3: TaskStatus.COMPLETED},
        )
        with _patch_scheduler(sched):
            result = runner.invoke(cli, ["monitor", "55", "-i", "0"])

        assert result.exit_code == 1
        assert "2 of 4 tasks failed" in result.output
        assert "--tasks 1-2" in result.output

    def test_interrupt_leaves_job_running(self, runner):
        """Ctrl-C stops following without touching the job."""
        sched = _scheduler({0: TaskStatus.RUNNING}, KeyboardInterrupt())
        with _patch_scheduler(sched):
            result = runner.invoke(cli, ["monitor", "55", "-i", "0"])

        assert result.exit_code == 0
        assert "Stopped following job 55" in result.output
        assert "scancel 55" in result.output

    def test_slurm_backend(self, runner):
        """Test monitoring through the Slurm query commands."""

        def run(cmd, *args, **kwargs):
            if cmd[0] == "sacct":
                return MagicMock(returncode=0, stdout="9_0|COMPLETED\n9_1|COMPLETED\n", stderr="")
            return MagicMock(returncode=0, stdout="", stderr="")

        with patch("subprocess.run", side_effect=run):
            result = runner.invoke(cli, ["-s", "slurm", "monitor", "9", "-i", "0"])

        assert result.exit_code == 0
        assert "All 2 tasks completed successfully" in result.output

    def test_unknown_job_id(self, runner):
        """A job Slurm knows nothing about is reported, not declared successful."""

        def run(cmd, *args, **kwargs):
            if cmd[0] == "squeue":
                return MagicMock(returncode=1, stdout="", stderr="Invalid job id specified")
            return MagicMock(returncode=0, stdout="", stderr="")

        with patch("subprocess.run", side_effect=run):
            result = runner.invoke(cli, ["-s", "slurm", "monitor", "999", "-i", "0"])

        assert result.exit_code == 1
        assert "No tasks found for job 999" in result.output
        assert "completed successfully" not in result.output

    def test_task_leaving_queue_is_not_success(self, runner):
        """A task that disappears from the listing keeps the job unfinished."""
        sched = _scheduler(
            {0: TaskStatus.RUNNING, 1: TaskStatus.RUNNING},
            {1: TaskStatus.COMPLETED},
            {0: TaskStatus.COMPLETED, 1: TaskStatus.COMPLETED},
        )
        with _patch_scheduler(sched):
            result = runner.invoke(cli, ["monitor", "55", "-i", "0"])

        assert result.exit_code == 0
        assert "1/2 done" in result.output
        assert "All 2 tasks completed successfully" in result.output
        assert sched.get_array_status.call_count == 3

    def test_invalid_config_value(self, runner, temp_dir):
        """A mistyped config value is a usage error."""
        config_file = temp_dir / "commandlist.toml"
        config_file.write_text("[defaults]\nmax_jobs = \"many\"\n")

        with _patch_scheduler(_scheduler()):
            result = runner.invoke(cli, ["-c", str(config_file), "monitor", "55"])

        assert result.exit_code == 2
        assert "max_jobs" in result.output
