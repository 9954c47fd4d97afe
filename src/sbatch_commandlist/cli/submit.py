"""Standalone submit command - split a command list and run it as an array job.

Reproduces the ``sbatch_commandlist`` interface, including its single-dash
long options (``-commands``, ``-mem``, ``-project``). Every option also has
a conventional ``--`` form.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import rich_click as click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sbatch_commandlist.core.splitter import MAX_GROUPS

if TYPE_CHECKING:
    from sbatch_commandlist.core.config import RunConfig
    from sbatch_commandlist.core.submission import SubmissionUnit
    from sbatch_commandlist.schedulers.base import BaseScheduler

console = Console()

# Groups shown in the dry-run table before eliding
_PREVIEW_ROWS = 10


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "-commands", "--commands", "commands_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File with one shell command per line",
)
@click.option("-t", "--time", "time_limit", default=None, help="Time limit per group [default: 12:00:00]")
@click.option("-mem", "--mem", default=None, help="Memory per group [default: 8GB]")
@click.option("-project", "--project", default=None, help="Project to charge [default: from storage path]")
@click.option(
    "--max_jobs", "--max-jobs", "max_jobs",
    type=click.IntRange(min=1),
    default=None,
    help=f"Maximum number of groups [default: {MAX_GROUPS}]",
)
@click.option("--min-duration", default=None, help="Minimum estimated runtime per group (e.g. 30m)")
@click.option("--command-time", default=None, help="Estimated runtime of one command (e.g. 90s)")
@click.option("--max-running", type=click.IntRange(min=1), default=None, help="Max groups running at once")
@click.option("-p", "--partition", default=None, help="Partition")
@click.option("--cpus", type=click.IntRange(min=1), default=None, help="CPUs per group")
@click.option("-N", "--name", "job_name", default=None, help="Job name [default: command file name]")
@click.option("--tasks", default=None, help="Only launch these groups (e.g. 3,17-19)")
@click.option("--log-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Directory for group files and logs")
@click.option("--interval", type=click.FloatRange(min=0), default=None, help="Seconds between status polls")
@click.option("--no-wait", is_flag=True, help="Exit right after submission")
@click.option("--dry-run", is_flag=True, help="Show what would be submitted")
@click.option("-s", "--scheduler", "scheduler_name", default=None, help="Force scheduler (slurm, local)")
@click.option("-c", "--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None, help="Path to configuration file")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def submit(
    commands_file: Path,
    time_limit: str | None,
    mem: str | None,
    project: str | None,
    max_jobs: int | None,
    min_duration: str | None,
    command_time: str | None,
    max_running: int | None,
    partition: str | None,
    cpus: int | None,
    job_name: str | None,
    tasks: str | None,
    log_dir: Path | None,
    interval: float | None,
    no_wait: bool,
    dry_run: bool,
    scheduler_name: str | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Split a command list into balanced groups and submit them as one array job.

    \b
    Each line of the command file is one independent shell command:
        sbatch_commandlist -commands cmds.txt
        sbatch_commandlist -commands cmds.txt -t 2:00:00 -mem 16GB --max_jobs 50
        sbatch_commandlist -commands cmds.txt --command-time 2m --min-duration 30m

    After submission the job is followed until every group finishes.
    Ctrl-C stops following; the array job keeps running.
    """
    from sbatch_commandlist.cli.main import Context, apply_config, configure_logging, load_scheduler
    from sbatch_commandlist.core.commandlist import CommandList
    from sbatch_commandlist.core.config import RunConfig, get_config
    from sbatch_commandlist.core.exceptions import InvalidInput, SubmissionError
    from sbatch_commandlist.core.job_array import ArraySpec
    from sbatch_commandlist.core.project import resolve_project
    from sbatch_commandlist.core.splitter import split
    from sbatch_commandlist.core.submission import ResourceConfig, build_submission

    # Fall back to group-level options when run as ``commandlist submit``
    parent = click.get_current_context().find_object(Context)
    if parent is not None:
        scheduler_name = scheduler_name or parent.scheduler
        verbose = verbose or parent.verbose
    configure_logging(verbose)
    apply_config(config_path)

    try:
        run_config = RunConfig.from_config(get_config()).with_overrides(
            max_jobs=max_jobs,
            min_group_duration=min_duration,
            command_duration=command_time,
            time=time_limit,
            mem=mem,
            partition=partition,
            cpus=cpus,
            max_running=max_running,
            poll_interval=interval,
            log_dir=log_dir,
        )
        if run_config.max_jobs > MAX_GROUPS:
            console.print(
                f"[yellow]At most {MAX_GROUPS} groups are allowed; "
                f"using {MAX_GROUPS} instead of {run_config.max_jobs}[/yellow]"
            )

        commands = CommandList.read(commands_file)
        groups = split(
            commands,
            min(run_config.max_jobs, MAX_GROUPS),
            run_config.min_group_duration,
            run_config.command_duration,
        )
        resources = ResourceConfig(
            time=run_config.time,
            mem=run_config.mem,
            project=resolve_project(
                project, run_config.project, Path.cwd(), run_config.project_pattern
            ),
            max_running=run_config.max_running,
            partition=run_config.partition,
            cpus=run_config.cpus,
        )
        selection = ArraySpec.parse(tasks).indices if tasks else None
        submission = build_submission(
            groups, resources, name=job_name or commands.name, selection=selection
        )
    except InvalidInput as e:
        raise click.UsageError(str(e)) from e

    scheduler = load_scheduler(scheduler_name)
    _show_plan(submission, scheduler, run_config)

    if dry_run:
        _show_dry_run(submission, scheduler, run_config)
        return

    try:
        result = scheduler.submit_array(submission, run_config.log_dir)
    except SubmissionError as e:
        console.print(f"[red]Submission failed ({scheduler.name}):[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(f"Submitted array job [bold cyan]{result.job_id}[/bold cyan]")
    if result.work_dir is not None:
        console.print(f"  Logs: {escape(str(result.work_dir))}")

    if no_wait:
        return

    from sbatch_commandlist.cli.monitor import follow

    follow(result, run_config.poll_interval)


def _show_plan(submission: SubmissionUnit, scheduler: BaseScheduler, run_config: RunConfig) -> None:
    """Print a one-paragraph summary of the split."""
    sizes = sorted({len(g) for g in submission.groups}, reverse=True)
    size_str = " or ".join(str(s) for s in sizes)
    resources = submission.resources
    console.print(
        f"[bold]{submission.command_count}[/bold] commands -> "
        f"[bold]{submission.group_count}[/bold] groups of {size_str} "
        f"({scheduler.name}, time {resources.time}, mem {resources.mem}, "
        f"project {escape(resources.project or '-')})"
    )
    if run_config.command_duration is not None:
        smallest = min(len(g) for g in submission.groups)
        estimate = run_config.command_duration * smallest
        console.print(f"  Estimated runtime of the smallest group: {_format_duration(estimate)}")
    if submission.selection is not None:
        console.print(f"  Launching tasks {submission.array_spec.range_str} only")


def _show_dry_run(submission: SubmissionUnit, scheduler: BaseScheduler, run_config: RunConfig) -> None:
    """Display what would be submitted."""
    table = Table(title="Groups")
    table.add_column("Task", style="cyan", justify="right")
    table.add_column("Commands", justify="right")
    table.add_column("Lines")
    table.add_column("First command")

    groups = submission.groups
    shown = groups if len(groups) <= _PREVIEW_ROWS else groups[: _PREVIEW_ROWS - 1]
    for group in shown:
        table.add_row(
            str(group.index),
            str(len(group)),
            f"{group.start + 1}-{group.end}",
            escape(group.commands[0]),
        )
    if len(shown) < len(groups):
        last = groups[-1]
        table.add_row("...", "", "", "")
        table.add_row(str(last.index), str(len(last)), f"{last.start + 1}-{last.end}", escape(last.commands[0]))

    console.print(Panel.fit(f"[bold]Scheduler:[/bold] {scheduler.name}", title="Dry Run", border_style="blue"))
    console.print(table)

    console.print("\n[bold]Generated script:[/bold]")
    work_dir = Path(run_config.log_dir).absolute() / f"{submission.name}_<timestamp>"
    script = scheduler.generate_script(submission, work_dir)
    syntax = Syntax(script, "bash", theme="monokai", line_numbers=True)
    console.print(syntax)


def _format_duration(value: timedelta) -> str:
    minutes, seconds = divmod(int(value.total_seconds()), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m{seconds:02d}s"


def main() -> None:
    """Console script entry point for ``sbatch_commandlist``."""
    submit()
