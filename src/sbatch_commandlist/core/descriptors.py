"""Descriptor pattern for scheduler arguments."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class SchedulerArg(ABC, Generic[T]):
    """Base class for scheduler-specific argument renderers.

    Each scheduler backend has subclasses that know how to render a
    resource value into that scheduler's script directive syntax.

    Example:
        class SlurmJobNameArg(SlurmArg):
            def __init__(self):
                super().__init__("job-name", doc="Job name")

        SlurmJobNameArg().to_directive("align")  # "#SBATCH --job-name=align"
    """

    def __init__(self, flag: str, *, doc: str = ""):
        self.flag = flag
        self.doc = doc

    @abstractmethod
    def to_directive(self, value: T | None) -> str | None:
        """Convert value to a script directive.

        Args:
            value: The resource value (may be None)

        Returns:
            Directive string (e.g., "#SBATCH --mem=8G") or None if value is None
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} flag='{self.flag}'>"
