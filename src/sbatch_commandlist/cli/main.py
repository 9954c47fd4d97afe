"""Main CLI entry point using rich-click."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import rich_click as click
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from sbatch_commandlist.schedulers.base import BaseScheduler

# Configure rich-click
click.rich_click.SHOW_ARGUMENTS = True

# Global console for Rich output
console = Console()


# Context object to pass state between commands
class Context:
    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.scheduler: Optional[str] = None
        self.verbose: bool = False


pass_context = click.make_pass_decorator(Context, ensure=True)


def configure_logging(verbose: bool) -> None:
    """Route package log records to stderr through Rich."""
    logger = logging.getLogger("sbatch_commandlist")
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def apply_config(config_path: Optional[Path]) -> None:
    """Make *config_path* the active configuration, if given."""
    if config_path is not None:
        from sbatch_commandlist.core.config import reload_config

        reload_config(config_path)


def load_scheduler(name: Optional[str]) -> "BaseScheduler":
    """Instantiate the named (or detected) scheduler, as a usage error if unknown."""
    from sbatch_commandlist.schedulers import get_scheduler

    try:
        return get_scheduler(name)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--scheduler") from e


@click.group()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--scheduler", "-s",
    type=str,
    help="Force scheduler (slurm, local)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(package_name="sbatch-commandlist")
@pass_context
def cli(ctx: Context, config: Optional[Path], scheduler: Optional[str], verbose: bool) -> None:
    """Run a list of shell commands as one Slurm array job.

    Splits a command file into at most 200 balanced groups, submits one
    array task per group and follows the array until it finishes.
    """
    ctx.config_path = config
    ctx.scheduler = scheduler
    ctx.verbose = verbose
    configure_logging(verbose)
    apply_config(config)


# Import and register subcommands
from sbatch_commandlist.cli.submit import submit
from sbatch_commandlist.cli.status import status
from sbatch_commandlist.cli.monitor import monitor
from sbatch_commandlist.cli.config import config_cmd

cli.add_command(submit)
cli.add_command(status)
cli.add_command(monitor)
cli.add_command(config_cmd, name="config")


def main() -> None:
    """Entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
