"""Status command - show the state of every array task."""

import rich_click as click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sbatch_commandlist.cli.main import Context, load_scheduler, pass_context
from sbatch_commandlist.core.result import ArrayStatus, TaskStatus

console = Console()


@click.command()
@click.argument("job_id")
@click.option("--failed", "-f", "failed_only", is_flag=True, help="Only show failed tasks")
@pass_context
def status(
    ctx: Context,
    job_id: str,
    failed_only: bool,
) -> None:
    """Check the status of a command-list array job.

    JOB_ID is the array job ID printed at submission.
    """
    from sbatch_commandlist.core.exceptions import SchedulerError
    from sbatch_commandlist.core.result import ArrayJobResult

    scheduler = load_scheduler(ctx.scheduler)
    try:
        snapshot = ArrayJobResult(job_id=job_id, scheduler=scheduler).status()
    except SchedulerError as e:
        console.print(f"[red]Status query failed:[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    if not snapshot.tasks:
        console.print(f"[yellow]No tasks found for job {job_id}[/yellow]")
        return

    table = Table(title=f"Job {job_id}")
    table.add_column("Task", style="cyan", justify="right")
    table.add_column("Status")

    for index, task_status in sorted(snapshot.tasks.items()):
        if failed_only and not task_status.is_failure:
            continue
        table.add_row(str(index), _status_style(task_status.name))

    console.print(table)
    console.print(summary_line(snapshot))


def summary_line(snapshot: ArrayStatus) -> str:
    """One-line progress summary with per-state counts."""
    counts = snapshot.counts
    parts = [f"[bold]{snapshot.done}/{snapshot.total}[/bold] done"]
    for task_status in TaskStatus:
        if counts.get(task_status):
            parts.append(f"{counts[task_status]} {_status_style(task_status.name).lower()}")
    return " | ".join(parts)


def _status_style(status: str) -> str:
    """Apply color to status string."""
    colors = {
        "PENDING": "[yellow]PENDING[/yellow]",
        "RUNNING": "[blue]RUNNING[/blue]",
        "COMPLETED": "[green]COMPLETED[/green]",
        "FAILED": "[red]FAILED[/red]",
        "CANCELLED": "[magenta]CANCELLED[/magenta]",
        "TIMEOUT": "[red]TIMEOUT[/red]",
        "UNKNOWN": "[dim]UNKNOWN[/dim]",
    }
    return colors.get(status, status)
