"""Tests for Slurm scheduler."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sbatch_commandlist.core.config import reload_config
from sbatch_commandlist.core.exceptions import SchedulerError, SchedulerRejected, SubmissionError
from sbatch_commandlist.core.result import TaskStatus
from sbatch_commandlist.core.splitter import split
from sbatch_commandlist.core.submission import ResourceConfig, build_submission
from sbatch_commandlist.schedulers.slurm import SlurmScheduler


@pytest.fixture
def submission():
    resources = ResourceConfig(time="2:00:00", mem="16GB", project="proj42", partition="core")
    return build_submission(split([f"echo {i}" for i in range(10)], 4), resources, name="demo")


class TestSlurmScript:
    """Tests for sbatch script generation."""

    def test_directives(self, submission):
        """Test that resources become #SBATCH directives."""
        script = SlurmScheduler().generate_script(submission, Path("/work/demo_1"))

        assert script.startswith("#!/bin/bash\n")
        assert "#SBATCH --job-name=demo" in script
        assert "#SBATCH --array=0-3" in script
        assert "#SBATCH --time=02:00:00" in script
        assert "#SBATCH --mem=16G" in script
        assert "#SBATCH --account=proj42" in script
        assert "#SBATCH --partition=core" in script
        assert "#SBATCH --cpus-per-task=1" in script
        assert "#SBATCH --output=/work/demo_1/task_%5a.%A.out" in script

    def test_script_runs_group_file(self, submission):
        script = SlurmScheduler().generate_script(submission, Path("/work/demo_1"))

        assert "SLURM_ARRAY_TASK_ID" in script
        assert "group_%05d.txt" in script
        assert 'bash -c "$command"' in script

    def test_no_account_without_project(self):
        submission = build_submission(split(["a"], 1), ResourceConfig())
        script = SlurmScheduler().generate_script(submission, Path("/w"))

        assert "--account" not in script
        assert "--partition" not in script

    def test_concurrency_cap_and_selection(self):
        submission = build_submission(
            split([str(i) for i in range(20)], 10), ResourceConfig(max_running=3), selection=[1, 2, 7]
        )
        script = SlurmScheduler().generate_script(submission, Path("/w"))

        assert "#SBATCH --array=1-2,7%3" in script

    def test_extra_args_from_config(self, submission, sample_config):
        reload_config(sample_config)
        script = SlurmScheduler().generate_script(submission, Path("/w"))

        assert "#SBATCH --qos=short" in script

    def test_arg_rendering(self):
        """Test that descriptors render #SBATCH directives."""
        scheduler = SlurmScheduler()

        assert scheduler.mem_arg.to_directive("8G") == "#SBATCH --mem=8G"
        assert scheduler.account_arg.to_directive(None) is None
        assert scheduler.cpus_arg.to_directive(4) == "#SBATCH --cpus-per-task=4"

    def test_submit_command(self):
        cmd = SlurmScheduler().build_submit_command(Path("/w/array.sh"))
        assert cmd == ["sbatch", "--parsable", "/w/array.sh"]


class TestSlurmSubmit:
    """Tests for submission through sbatch."""

    def test_submit_array(self, submission, temp_dir, mock_slurm_commands):
        """Test submitting writes group files and returns a handle."""
        result = SlurmScheduler().submit_array(submission, temp_dir / "logs")

        assert result.job_id == "12345"
        assert result.submission is submission
        assert result.indices == [0, 1, 2, 3]
        assert result.work_dir.parent == (temp_dir / "logs").absolute()

        groups = sorted(result.work_dir.glob("group_*.txt"))
        assert [p.name for p in groups] == [
            "group_00000.txt",
            "group_00001.txt",
            "group_00002.txt",
            "group_00003.txt",
        ]
        assert groups[0].read_text() == "echo 0\necho 1\necho 2\n"
        assert (result.work_dir / "array.sh").exists()

        cmd = mock_slurm_commands.call_args[0][0]
        assert cmd[:2] == ["sbatch", "--parsable"]

    def test_submit_rejected(self, submission, temp_dir):
        """Test that a non-zero sbatch exit becomes SchedulerRejected."""
        error = subprocess.CalledProcessError(
            1, ["sbatch"], output="", stderr="sbatch: error: Invalid account\n"
        )
        with patch("subprocess.run", side_effect=error):
            with pytest.raises(SchedulerRejected) as excinfo:
                SlurmScheduler().submit_array(submission, temp_dir)

        assert "Invalid account" in str(excinfo.value)
        assert excinfo.value.returncode == 1

    def test_submit_without_slurm(self, submission, temp_dir):
        with patch("subprocess.run", side_effect=FileNotFoundError("sbatch")):
            with pytest.raises(SubmissionError):
                SlurmScheduler().submit_array(submission, temp_dir)

    def test_unparseable_job_id(self, submission, temp_dir):
        with patch("subprocess.run", return_value=MagicMock(stdout="hmm\n", returncode=0)):
            with pytest.raises(SubmissionError):
                SlurmScheduler().submit_array(submission, temp_dir)


class TestSlurmStatus:
    """Tests for array status queries."""

    def test_status(self, mock_slurm_commands):
        """Test merging sacct and squeue results."""
        states = SlurmScheduler().get_array_status("12345", [0, 1, 2, 3, 4])

        assert states == {
            0: TaskStatus.COMPLETED,
            1: TaskStatus.FAILED,
            2: TaskStatus.RUNNING,
            3: TaskStatus.PENDING,
            4: TaskStatus.UNKNOWN,
        }

    def test_status_all_known_tasks(self, mock_slurm_commands):
        states = SlurmScheduler().get_array_status("12345")
        assert sorted(states) == [0, 1, 2, 3]

    def test_squeue_overrides_sacct(self):
        """squeue is authoritative for tasks still in the queue."""

        def run(cmd, *args, **kwargs):
            if cmd[0] == "squeue":
                return MagicMock(returncode=0, stdout="5_0|RUNNING\n", stderr="")
            return MagicMock(returncode=0, stdout="5_0|PENDING\n", stderr="")

        with patch("subprocess.run", side_effect=run):
            assert SlurmScheduler().get_array_status("5", [0]) == {0: TaskStatus.RUNNING}

    def test_without_sacct(self, sample_config, mock_slurm_commands):
        """With use_sacct = false only squeue is consulted."""
        reload_config(sample_config)
        states = SlurmScheduler().get_array_status("12345", [0, 1, 2])

        assert states == {0: TaskStatus.UNKNOWN, 1: TaskStatus.UNKNOWN, 2: TaskStatus.RUNNING}
        called = [call[0][0][0] for call in mock_slurm_commands.call_args_list]
        assert "sacct" not in called

    def test_squeue_error_after_job_left_queue(self):
        def run(cmd, *args, **kwargs):
            if cmd[0] == "squeue":
                return MagicMock(returncode=1, stdout="", stderr="Invalid job id specified")
            return MagicMock(returncode=0, stdout="5_0|COMPLETED\n", stderr="")

        with patch("subprocess.run", side_effect=run):
            assert SlurmScheduler().get_array_status("5", [0]) == {0: TaskStatus.COMPLETED}

    def test_squeue_missing(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("squeue")):
            with pytest.raises(SchedulerError):
                SlurmScheduler().get_array_status("5", [0])

    def test_output_path(self):
        path = SlurmScheduler().get_output_path(Path("/w"), "12345", 7)
        assert path == Path("/w/task_00007.12345.out")
