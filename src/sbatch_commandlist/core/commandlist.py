"""Reading command lists from text sources."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import overload

from sbatch_commandlist.core.exceptions import InvalidInput
from sbatch_commandlist.core.types import PathLike


@dataclass(frozen=True)
class CommandList(Sequence[str]):
    """Ordered, immutable sequence of independent shell commands.

    Attributes:
        commands: The commands, in file order
        source: Where the commands were read from (None if built in memory)
    """

    commands: tuple[str, ...]
    source: Path | None = None

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: Path | None = None) -> CommandList:
        """Build a command list from raw text lines.

        Blank lines and ``#`` comment lines are skipped. Trailing newlines
        are stripped; the command text is otherwise kept as written.
        """
        commands = []
        for line in lines:
            command = line.rstrip("\r\n")
            stripped = command.strip()
            if not stripped or stripped.startswith("#"):
                continue
            commands.append(command)
        return cls(commands=tuple(commands), source=source)

    @classmethod
    def read(cls, path: PathLike) -> CommandList:
        """Read a command list file, one command per line.

        Raises:
            InvalidInput: If the file cannot be read or holds no commands.
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                command_list = cls.from_lines(f, source=path)
        except OSError as e:
            raise InvalidInput(f"Cannot read command list {path}: {e.strerror}") from e

        if not command_list:
            raise InvalidInput(f"Command list {path} contains no commands")
        return command_list

    @property
    def name(self) -> str:
        """Short name derived from the source file, used for job names."""
        if self.source is None:
            return "commandlist"
        return self.source.stem or "commandlist"

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[str, ...]: ...

    def __getitem__(self, index: int | slice) -> str | tuple[str, ...]:
        return self.commands[index]

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[str]:
        return iter(self.commands)
