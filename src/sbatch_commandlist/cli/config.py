"""Config command - manage configuration."""

from pathlib import Path

import rich_click as click
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from sbatch_commandlist.cli.main import Context, pass_context

console = Console()

DEFAULT_CONFIG = '''# sbatch-commandlist configuration

[defaults]
# Group limits
max_jobs = 200
min_group_duration = "30m"
# command_duration = "2m"   # per-command estimate; enables group reduction

# Per-group resources
time = "12:00:00"
mem = "8GB"
cpus = 1
# partition = "core"
# project = "naiss2024-1-123"   # default: inferred from /proj/<project>/...
# max_running = 50

# Monitoring and output
poll_interval = 30
log_dir = "commandlist_logs"

[schedulers.slurm]
# Extra #SBATCH lines, passed through verbatim
extra_args = []
# Set to false on clusters without job accounting
use_sacct = true
'''


@click.group()
def config_cmd() -> None:
    """Manage configuration."""
    pass


@config_cmd.command("show")
@pass_context
def show(ctx: Context) -> None:
    """Show current configuration."""
    from sbatch_commandlist.core.config import RunConfig, find_config_file, load_config
    from sbatch_commandlist.core.exceptions import InvalidInput

    config_path = ctx.config_path or find_config_file()

    if config_path is None:
        console.print("[yellow]No configuration file found[/yellow]")
        console.print("Using default settings")
        console.print("\nSearch locations:")
        console.print("  1. ./commandlist.toml")
        console.print("  2. ./pyproject.toml \\[tool.sbatch-commandlist]")
        console.print("  3. <git root>/commandlist.toml")
        console.print("  4. ~/.config/sbatch-commandlist/config.toml")
    else:
        console.print(f"[bold]Config file:[/bold] {config_path}")
        console.print()

        # Read and display the config file
        content = config_path.read_text()
        syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
        console.print(syntax)

    try:
        run_config = RunConfig.from_config(load_config(config_path))
    except InvalidInput as e:
        raise click.UsageError(str(e)) from e
    console.print("\n[bold]Effective settings:[/bold]")
    for name, value in vars(run_config).items():
        console.print(f"  {name} = {escape(str(value))}")


@config_cmd.command("init")
@click.option("--global", "-g", "global_config", is_flag=True, help="Create global config")
@pass_context
def init(ctx: Context, global_config: bool) -> None:
    """Create a new configuration file."""
    from sbatch_commandlist.core.config import CONFIG_NAME, user_config_path

    if global_config:
        config_path = user_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        config_path = Path.cwd() / CONFIG_NAME

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            console.print("[yellow]Cancelled[/yellow]")
            return

    config_path.write_text(DEFAULT_CONFIG)
    console.print(f"[green]Created {config_path}[/green]")


@config_cmd.command("path")
@pass_context
def path(ctx: Context) -> None:
    """Show path to active configuration file."""
    from sbatch_commandlist.core.config import find_config_file

    config_path = ctx.config_path or find_config_file()

    if config_path:
        console.print(str(config_path))
    else:
        console.print("[yellow]No configuration file found[/yellow]")
