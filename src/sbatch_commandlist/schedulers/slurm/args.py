"""Slurm-specific argument descriptors."""

from sbatch_commandlist.core.descriptors import SchedulerArg


class SlurmArg(SchedulerArg):
    """Base Slurm argument.

    Slurm uses #SBATCH --flag=value format for directives.
    """

    def to_directive(self, value) -> str | None:
        if value is None:
            return None
        return f"#SBATCH --{self.flag}={value}"


class SlurmArrayArg(SlurmArg):
    """Array job argument."""

    def __init__(self):
        super().__init__("array", doc="Array index selection (e.g., 0-199%20)")


class SlurmTimeArg(SlurmArg):
    """Time limit argument ([D-]HH:MM:SS)."""

    def __init__(self):
        super().__init__("time", doc="Wall-clock limit per task")


class SlurmMemArg(SlurmArg):
    """Memory per task argument."""

    def __init__(self):
        super().__init__("mem", doc="Memory per task")


class SlurmAccountArg(SlurmArg):
    """Billing account argument."""

    def __init__(self):
        super().__init__("account", doc="Project/account to charge")


class SlurmPartitionArg(SlurmArg):
    """Partition argument."""

    def __init__(self):
        super().__init__("partition", doc="Partition name")


class SlurmCpusArg(SlurmArg):
    """CPUs per task argument."""

    def __init__(self):
        super().__init__("cpus-per-task", doc="CPUs per task")


class SlurmJobNameArg(SlurmArg):
    """Job name argument."""

    def __init__(self):
        super().__init__("job-name", doc="Job name")


class SlurmOutputArg(SlurmArg):
    """Stdout path argument (stderr is merged)."""

    def __init__(self):
        super().__init__("output", doc="Stdout file pattern")
