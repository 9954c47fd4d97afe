"""Billing identifier resolution."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from sbatch_commandlist.core.exceptions import InvalidInput
from sbatch_commandlist.core.types import PathLike

logger = logging.getLogger(__name__)

# /proj/<id>/..., /crex/proj/<id>/..., /proj/nobackup/<id>/...
DEFAULT_PROJECT_PATTERN = r"^/(?:crex/)?proj/(?:nobackup/)?([A-Za-z0-9][A-Za-z0-9_.-]*)"


def infer_project(path: PathLike, pattern: str = DEFAULT_PROJECT_PATTERN) -> str | None:
    """Infer the billing identifier from a storage path.

    Args:
        path: Usually the working directory
        pattern: Regex whose first group captures the identifier

    Returns:
        The identifier, or None if the path does not match
    """
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise InvalidInput(f"Invalid project pattern {pattern!r}: {e}") from e
    if regex.groups < 1:
        raise InvalidInput(f"Project pattern {pattern!r} needs a capture group")

    # Try the path as given first; symlinked project dirs resolve elsewhere
    candidates = [Path(path).absolute(), Path(path).resolve()]
    for candidate in candidates:
        match = regex.match(candidate.as_posix())
        if match:
            return match.group(1)
    return None


def resolve_project(
    override: str | None,
    configured: str | None,
    workdir: PathLike,
    pattern: str = DEFAULT_PROJECT_PATTERN,
) -> str | None:
    """Pick the billing identifier.

    Order: explicit override, configured default, inference from *workdir*.
    Returns None (and warns) when nothing applies; the scheduler then uses
    its own default or rejects the job.
    """
    if override:
        return override
    if configured:
        return configured

    project = infer_project(workdir, pattern)
    if project is None:
        logger.warning(
            "Could not infer a project from %s; submitting without an account", workdir
        )
    else:
        logger.debug("Inferred project %s from %s", project, workdir)
    return project
