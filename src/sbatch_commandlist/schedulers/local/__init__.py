"""Local scheduler backend."""

from .scheduler import LocalScheduler

__all__ = ["LocalScheduler"]
