"""Submission descriptors for command-list array jobs."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from sbatch_commandlist.core.exceptions import InvalidInput
from sbatch_commandlist.core.job_array import ArraySpec
from sbatch_commandlist.core.splitter import Group
from sbatch_commandlist.core.timeutil import normalize_memory, normalize_time_limit
from sbatch_commandlist.core.types import TaskMap


@dataclass(frozen=True)
class ResourceConfig:
    """Per-group resource request.

    Attributes:
        time: Wall-clock limit per group (e.g. "12:00:00")
        mem: Memory per group (e.g. "8GB", "16G")
        project: Billing/account identifier (None = scheduler default)
        max_running: Max simultaneously running groups (None = no cap)
        partition: Partition/queue name
        cpus: CPUs per group
        extra_args: Raw scheduler arguments (passthrough)
    """

    time: str = "12:00:00"
    mem: str = "8GB"
    project: str | None = None
    max_running: int | None = None
    partition: str | None = None
    cpus: int = 1
    extra_args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Stored in scheduler syntax: "8GB" -> "8G", "90" -> "01:30:00"
        object.__setattr__(self, "time", normalize_time_limit(self.time))
        object.__setattr__(self, "mem", normalize_memory(self.mem))
        if self.max_running is not None and self.max_running < 1:
            raise InvalidInput(f"Concurrency cap must be at least 1, got {self.max_running}")
        if self.cpus < 1:
            raise InvalidInput(f"CPUs per group must be at least 1, got {self.cpus}")
        object.__setattr__(self, "extra_args", tuple(self.extra_args))


@dataclass(frozen=True)
class SubmissionUnit:
    """One array-job descriptor, ready to hand to a scheduler.

    Task index *i* runs ``groups[i]``. ``selection`` limits which task
    indices are launched; the task map always covers every group.
    """

    name: str
    groups: tuple[Group, ...]
    resources: ResourceConfig
    selection: tuple[int, ...] | None = None
    task_map: Mapping[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        task_map: TaskMap = {g.index: g.index for g in self.groups}
        object.__setattr__(self, "task_map", MappingProxyType(task_map))

    @property
    def group_count(self) -> int:
        return len(self.groups)

    @property
    def task_indices(self) -> list[int]:
        """Task indices that will actually be launched."""
        if self.selection is None:
            return list(range(self.group_count))
        return list(self.selection)

    @property
    def array_spec(self) -> ArraySpec:
        """Array range covering the launched tasks, with the concurrency cap."""
        return ArraySpec.from_indices(self.task_indices, max_concurrent=self.resources.max_running)

    @property
    def command_count(self) -> int:
        return sum(len(g) for g in self.groups)

    def group_for_task(self, task_index: int) -> Group:
        """Group run by array task *task_index*."""
        return self.groups[self.task_map[task_index]]


def build_submission(
    groups: Sequence[Group],
    resources: ResourceConfig,
    name: str = "commandlist",
    selection: Iterable[int] | None = None,
) -> SubmissionUnit:
    """Build the array-job descriptor for *groups*.

    Args:
        groups: Output of :func:`~sbatch_commandlist.core.splitter.split`
        resources: Per-group resource request
        name: Job name
        selection: Optional subset of task indices to launch

    Raises:
        InvalidInput: If *groups* is empty, not indexed ``0..k-1`` in order,
            or *selection* names an unknown task.
    """
    if not groups:
        raise InvalidInput("Cannot build a submission without groups")

    for expected, group in enumerate(groups):
        if group.index != expected:
            raise InvalidInput(f"Group at position {expected} has index {group.index}")

    chosen: tuple[int, ...] | None = None
    if selection is not None:
        chosen = tuple(sorted(set(selection)))
        if not chosen:
            raise InvalidInput("Task selection is empty")
        unknown = [i for i in chosen if not 0 <= i < len(groups)]
        if unknown:
            raise InvalidInput(
                f"Task selection {unknown} outside 0-{len(groups) - 1}"
            )

    return SubmissionUnit(name=name, groups=tuple(groups), resources=resources, selection=chosen)
