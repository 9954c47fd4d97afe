"""Partitioning a command list into balanced array-job groups."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from sbatch_commandlist.core.exceptions import InvalidInput

#: Hard cap on the number of array tasks per submission.
MAX_GROUPS = 200


@dataclass(frozen=True)
class Group:
    """A contiguous slice of the command list run by one array task.

    Attributes:
        index: Group index in ``[0, group_count)``
        start: Offset of the first command in the full list
        commands: The commands, in list order
    """

    index: int
    start: int
    commands: tuple[str, ...]

    @property
    def end(self) -> int:
        """Offset one past the last command."""
        return self.start + len(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    def estimated_duration(self, command_duration: timedelta) -> timedelta:
        """Estimated runtime if every command takes *command_duration*."""
        return command_duration * len(self.commands)


def group_count_for(
    n_commands: int,
    max_groups: int,
    min_group_duration: timedelta | None = None,
    command_duration: timedelta | None = None,
) -> int:
    """Number of groups :func:`split` produces for *n_commands* commands.

    Starts from ``min(max_groups, n_commands)``. When both a per-command
    estimate and a minimum group duration are given, the count is lowered
    until the smallest group (``n // count`` commands) is estimated to run
    at least *min_group_duration*, down to a single group.
    """
    if n_commands < 1:
        raise InvalidInput("Command list is empty")
    if max_groups < 1:
        raise InvalidInput(f"Maximum group count must be at least 1, got {max_groups}")

    count = min(max_groups, n_commands)

    if min_group_duration is None or command_duration is None:
        return count
    if command_duration <= timedelta(0):
        raise InvalidInput(f"Per-command duration estimate must be positive, got {command_duration}")

    per_group = max(1, math.ceil(min_group_duration / command_duration))
    return max(1, min(count, n_commands // per_group))


def split(
    commands: Sequence[str],
    max_groups: int = MAX_GROUPS,
    min_group_duration: timedelta | None = None,
    command_duration: timedelta | None = None,
) -> list[Group]:
    """Split *commands* into contiguous, as-equal-as-possible groups.

    Group sizes differ by at most one; the larger groups come first.
    Deterministic and free of side effects.

    Args:
        commands: Ordered commands to distribute
        max_groups: Upper bound on the number of groups
        min_group_duration: Floor on each group's estimated runtime
        command_duration: Estimated runtime of a single command. Without it
            no reduction below ``max_groups`` happens.

    Returns:
        Groups indexed ``0..count-1`` whose concatenation is *commands*

    Raises:
        InvalidInput: If *commands* is empty or *max_groups* < 1
    """
    count = group_count_for(len(commands), max_groups, min_group_duration, command_duration)
    base, larger = divmod(len(commands), count)

    groups: list[Group] = []
    start = 0
    for index in range(count):
        size = base + 1 if index < larger else base
        groups.append(Group(index=index, start=start, commands=tuple(commands[start : start + size])))
        start += size
    return groups
