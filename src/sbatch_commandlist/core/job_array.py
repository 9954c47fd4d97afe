"""Array index selection syntax."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Iterator

from sbatch_commandlist.core.exceptions import InvalidInput

_ITEM_RE = re.compile(r"^(\d+)(?:-(\d+)(?::(\d+))?)?$")


@dataclass(frozen=True)
class IndexRange:
    """One item of an index selection: ``a``, ``a-b`` or ``a-b:s``."""

    start: int
    end: int
    step: int = 1

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        s = f"{self.start}-{self.end}"
        if self.step != 1:
            s += f":{self.step}"
        return s

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1, self.step))


@dataclass(frozen=True)
class ArraySpec:
    """An array index selection with optional concurrency cap.

    Renders to the scheduler's range syntax, e.g. ``0-99:2,150%10``.

    Attributes:
        ranges: Selection items, in the order given
        max_concurrent: Max simultaneously running tasks (throttling)
    """

    ranges: tuple[IndexRange, ...] = field(default_factory=tuple)
    max_concurrent: int | None = None

    @classmethod
    def parse(cls, spec: str) -> ArraySpec:
        """Parse ``a-b``, ``i,j,k`` and ``a-b:s`` items with an optional ``%N``.

        Raises:
            InvalidInput: On malformed items, reversed ranges or a zero step.
        """
        text = spec.strip().replace(" ", "")
        max_concurrent = None
        if "%" in text:
            text, _, cap = text.partition("%")
            if not cap.isdigit() or int(cap) < 1:
                raise InvalidInput(f"Invalid concurrency limit in array spec: {spec!r}")
            max_concurrent = int(cap)

        if not text:
            raise InvalidInput(f"Empty array spec: {spec!r}")

        ranges = []
        for item in text.split(","):
            match = _ITEM_RE.match(item)
            if not match:
                raise InvalidInput(f"Invalid array spec item {item!r} in {spec!r}")
            start = int(match.group(1))
            end = int(match.group(2)) if match.group(2) is not None else start
            step = int(match.group(3)) if match.group(3) is not None else 1
            if end < start:
                raise InvalidInput(f"Array range {item!r} ends before it starts")
            if step < 1:
                raise InvalidInput(f"Array range step must be at least 1 in {item!r}")
            ranges.append(IndexRange(start, end, step))

        return cls(ranges=tuple(ranges), max_concurrent=max_concurrent)

    @classmethod
    def from_indices(cls, indices: Iterable[int], max_concurrent: int | None = None) -> ArraySpec:
        """Build the most compact selection covering *indices*.

        Consecutive runs collapse to ``a-b``; isolated indices stay single.
        """
        ordered = sorted(set(indices))
        ranges: list[IndexRange] = []
        for idx in ordered:
            if ranges and ranges[-1].step == 1 and idx == ranges[-1].end + 1:
                ranges[-1] = IndexRange(ranges[-1].start, idx)
            else:
                ranges.append(IndexRange(idx, idx))
        return cls(ranges=tuple(ranges), max_concurrent=max_concurrent)

    @property
    def range_str(self) -> str:
        """Format as scheduler range string."""
        s = ",".join(str(r) for r in self.ranges)
        if self.max_concurrent:
            s += f"%{self.max_concurrent}"
        return s

    @property
    def indices(self) -> list[int]:
        """Selected indices, sorted and without duplicates."""
        return sorted({idx for r in self.ranges for idx in r})

    @property
    def count(self) -> int:
        """Number of selected tasks."""
        return len(self.indices)

    def __str__(self) -> str:
        return self.range_str
