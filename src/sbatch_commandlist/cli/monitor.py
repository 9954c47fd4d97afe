"""Monitor command - follow an array job until every task finishes."""

from __future__ import annotations

from datetime import datetime

import rich_click as click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sbatch_commandlist.cli.main import Context, load_scheduler, pass_context
from sbatch_commandlist.cli.status import summary_line
from sbatch_commandlist.core.exceptions import InvalidInput, SchedulerError
from sbatch_commandlist.core.job_array import ArraySpec
from sbatch_commandlist.core.monitor import MonitorOutcome
from sbatch_commandlist.core.result import ArrayJobResult, ArrayStatus

console = Console()


@click.command()
@click.argument("job_id")
@click.option(
    "--interval",
    "-i",
    default=None,
    type=click.FloatRange(min=0),
    help="Seconds between status polls [default: from config, 30]",
)
@pass_context
def monitor(ctx: Context, job_id: str, interval: float | None) -> None:
    """Follow an already submitted array job.

    Re-polls the scheduler's current view of JOB_ID. Press Ctrl-C to stop
    following; the job keeps running.
    """
    from sbatch_commandlist.core.config import RunConfig, get_config

    try:
        run_config = RunConfig.from_config(get_config())
    except InvalidInput as e:
        raise click.UsageError(str(e)) from e
    scheduler = load_scheduler(ctx.scheduler)
    result = ArrayJobResult(job_id=job_id, scheduler=scheduler)

    follow(result, interval if interval is not None else run_config.poll_interval)


def follow(result: ArrayJobResult, poll_interval: float) -> None:
    """Print progress for *result* until it finishes or Ctrl-C.

    Exits with status 1 when any task ended unsuccessfully.
    """
    array_monitor = result.monitor(poll_interval=poll_interval)
    last_line: str | None = None

    console.print("[dim]Following job; Ctrl-C stops following, the job keeps running.[/dim]")
    try:
        for snapshot in array_monitor:
            if not snapshot.tasks:
                break
            line = summary_line(snapshot)
            if line != last_line:
                console.print(f"[dim]{datetime.now():%H:%M:%S}[/dim] {line}")
                last_line = line
    except KeyboardInterrupt:
        pass
    except SchedulerError as e:
        console.print(f"[red]Status query failed:[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    if array_monitor.last is not None and not array_monitor.last.tasks:
        console.print(f"[red]No tasks found for job {escape(result.job_id)}[/red]")
        raise SystemExit(1)

    if array_monitor.outcome is not MonitorOutcome.FINISHED:
        console.print()
        console.print(f"[yellow]Stopped following job {result.job_id}; it is still active.[/yellow]")
        console.print(f"  Check it with: squeue -j {result.job_id}")
        console.print(f"  Cancel it with: scancel {result.job_id}")
        return

    snapshot = array_monitor.last
    if snapshot is None or not snapshot.failed:
        console.print(f"[green]All {snapshot.total if snapshot else 0} tasks completed successfully[/green]")
        return

    _report_failures(result, snapshot)
    raise SystemExit(1)


def _report_failures(result: ArrayJobResult, snapshot: ArrayStatus) -> None:
    """List failed groups and how to resubmit them."""
    table = Table(title=f"Failed tasks of job {result.job_id}")
    table.add_column("Task", style="cyan", justify="right")
    table.add_column("Status")
    table.add_column("Commands")
    table.add_column("Log")

    for index in snapshot.failed:
        commands = ""
        if result.submission is not None:
            group = result.submission.group_for_task(index)
            commands = f"{group.start + 1}-{group.end}"
        log = ""
        if result.work_dir is not None:
            log = str(result.scheduler.get_output_path(result.work_dir, result.job_id, index))
        table.add_row(str(index), snapshot.tasks[index].name, commands, escape(log))

    console.print(table)
    selection = ArraySpec.from_indices(snapshot.failed).range_str
    console.print(
        f"[red]{len(snapshot.failed)} of {snapshot.total} tasks failed.[/red] "
        f"Resubmit them with: --tasks {selection}"
    )
