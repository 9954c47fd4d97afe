"""Scheduler backends: registry, lookup and auto-detection.

Backends are registered by import path and only imported when requested,
so a missing optional backend never breaks the others.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

from sbatch_commandlist.schedulers.detection import detect_scheduler

if TYPE_CHECKING:
    from sbatch_commandlist.schedulers.base import BaseScheduler

# name -> "module:Class"
_SCHEDULERS: dict[str, str] = {
    "slurm": "sbatch_commandlist.schedulers.slurm:SlurmScheduler",
    "local": "sbatch_commandlist.schedulers.local:LocalScheduler",
}


def _load_class(import_path: str) -> type[BaseScheduler]:
    module_path, class_name = import_path.rsplit(":", 1)
    return getattr(importlib.import_module(module_path), class_name)


def get_scheduler(name: str | None = None) -> BaseScheduler:
    """Instantiate a scheduler backend.

    Args:
        name: Registered backend name; None picks one with
            :func:`detect_scheduler`

    Raises:
        ValueError: If *name* is not registered
    """
    name = (name or detect_scheduler()).lower()
    try:
        import_path = _SCHEDULERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown scheduler: {name}. Available: {', '.join(list_schedulers())}"
        ) from None
    return _load_class(import_path)()


def register_scheduler(name: str, import_path: str) -> None:
    """Register an additional backend, e.g. ``"mypkg.pbs:PBSScheduler"``."""
    if ":" not in import_path:
        raise ValueError(f"Expected 'module:Class', got {import_path!r}")
    _SCHEDULERS[name.lower()] = import_path


def list_schedulers() -> list[str]:
    """Names of all registered backends."""
    return sorted(_SCHEDULERS)


__all__ = ["get_scheduler", "register_scheduler", "list_schedulers", "detect_scheduler"]
