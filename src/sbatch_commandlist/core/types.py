"""Type aliases for sbatch-commandlist."""

from pathlib import Path
from typing import TypeAlias

# Path types
PathLike: TypeAlias = str | Path

# Array task index -> group index
TaskMap: TypeAlias = dict[int, int]
