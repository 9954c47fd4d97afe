"""Parsing of wall-clock limits, memory sizes and durations."""

import re
from datetime import timedelta

from sbatch_commandlist.core.exceptions import InvalidInput

_RELATIVE_RE = re.compile(r"^(\d+(?:\.\d+)?)([smhd])$")

_UNITS: dict[str, str] = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}

# Slurm --time formats: MM, MM:SS, HH:MM:SS, D-HH, D-HH:MM, D-HH:MM:SS
_SLURM_TIME_RE = re.compile(
    r"^(?:(?P<days>\d+)-(?P<dh>\d+)(?::(?P<dm>\d+)(?::(?P<ds>\d+))?)?"
    r"|(?P<h>\d+):(?P<m>\d+):(?P<s>\d+)"
    r"|(?P<mm>\d+)(?::(?P<ss>\d+))?)$"
)

_MEM_RE = re.compile(r"^(\d+)\s*([KMGT])?B?$", re.IGNORECASE)


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``"30m"``, ``"2h"``, ``"90s"`` or ``"1d"``.

    Slurm-style clock values (``"00:30:00"``, ``"1-12:00:00"``) are accepted
    too, so the same option can take either form.

    Raises:
        InvalidInput: If *value* matches neither format.
    """
    text = value.strip()
    match = _RELATIVE_RE.match(text)
    if match:
        amount = float(match.group(1))
        unit = _UNITS[match.group(2)]
        return timedelta(**{unit: amount})

    try:
        return parse_time_limit(text)
    except InvalidInput:
        pass

    raise InvalidInput(
        f"Invalid duration: {value!r}. "
        "Use a relative duration (e.g. 90s, 30m, 2h) or a clock value (e.g. 00:30:00)."
    )


def parse_time_limit(value: str) -> timedelta:
    """Parse a Slurm wall-clock limit into a :class:`timedelta`.

    Accepted formats follow ``sbatch --time``: ``MM``, ``MM:SS``,
    ``HH:MM:SS``, ``D-HH``, ``D-HH:MM`` and ``D-HH:MM:SS``.

    Raises:
        InvalidInput: If *value* is not a valid limit or is zero.
    """
    match = _SLURM_TIME_RE.match(value.strip())
    if not match:
        raise InvalidInput(f"Invalid time limit: {value!r}. Use e.g. 12:00:00 or 1-00:00:00.")

    g = {k: int(v) for k, v in match.groupdict().items() if v is not None}
    if "days" in g:
        limit = timedelta(
            days=g["days"], hours=g["dh"], minutes=g.get("dm", 0), seconds=g.get("ds", 0)
        )
    elif "h" in g:
        limit = timedelta(hours=g["h"], minutes=g["m"], seconds=g["s"])
    else:
        limit = timedelta(minutes=g["mm"], seconds=g.get("ss", 0))

    if limit <= timedelta(0):
        raise InvalidInput(f"Time limit must be positive: {value!r}")
    return limit


def format_time_limit(limit: timedelta) -> str:
    """Format a :class:`timedelta` as ``[D-]HH:MM:SS``."""
    total = int(limit.total_seconds())
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    clock = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{days}-{clock}" if days else clock


def normalize_time_limit(value: str) -> str:
    """Validate a time limit and return it in canonical ``[D-]HH:MM:SS`` form."""
    return format_time_limit(parse_time_limit(value))


def normalize_memory(value: str) -> str:
    """Validate a memory request and return it in Slurm ``--mem`` syntax.

    ``"8GB"``, ``"8G"``, ``"8gb"`` all become ``"8G"``; a bare number is
    megabytes, as in Slurm.

    Raises:
        InvalidInput: If *value* is not a positive size.
    """
    match = _MEM_RE.match(value.strip())
    if not match:
        raise InvalidInput(f"Invalid memory size: {value!r}. Use e.g. 8GB, 16G or 4096M.")

    amount = int(match.group(1))
    if amount <= 0:
        raise InvalidInput(f"Memory size must be positive: {value!r}")
    unit = (match.group(2) or "M").upper()
    return f"{amount}{unit}"
