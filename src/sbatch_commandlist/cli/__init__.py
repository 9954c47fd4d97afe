"""Command-line interface for sbatch-commandlist."""

from sbatch_commandlist.cli.main import cli, main

__all__ = ["cli", "main"]
