"""Slurm scheduler backend."""

from .scheduler import SlurmScheduler

__all__ = ["SlurmScheduler"]
