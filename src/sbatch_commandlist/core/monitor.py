"""Polling a submitted array job until every group finishes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from sbatch_commandlist.core.result import ArrayJobResult, ArrayStatus

logger = logging.getLogger(__name__)


class MonitorOutcome(Enum):
    """How a monitor's sequence ended."""

    FINISHED = auto()  # Every task reached a terminal state
    INTERRUPTED = auto()  # Stopped locally; the job keeps running


class ArrayMonitor:
    """Lazy sequence of :class:`ArrayStatus` snapshots for one array job.

    Each iteration polls the scheduler, yields a snapshot, and sleeps
    ``poll_interval`` seconds unless every task is terminal. Iterating
    always yields at least one snapshot. A snapshot without any task never
    counts as finished. A new iteration re-polls the current state; nothing
    is replayed.

    Stopping early (Ctrl-C while waiting, ``break``, or closing the
    generator) only ends local polling and sets ``outcome`` to
    ``MonitorOutcome.INTERRUPTED``. The submitted job is never touched.

    Example:
        monitor = result.monitor(poll_interval=10)
        for snapshot in monitor:
            print(snapshot.done, "/", snapshot.total)
        if monitor.outcome is MonitorOutcome.INTERRUPTED:
            ...
    """

    def __init__(
        self,
        result: ArrayJobResult,
        poll_interval: float = 30.0,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.result = result
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.outcome: MonitorOutcome | None = None
        self.last: ArrayStatus | None = None
        self._sleep = sleep
        self._clock = clock

    def __iter__(self) -> Iterator[ArrayStatus]:
        self.outcome = None
        start = self._clock()
        try:
            while True:
                snapshot = self.result.status()
                self.last = snapshot
                logger.debug(
                    "Job %s: %d/%d tasks terminal", snapshot.job_id, snapshot.done, snapshot.total
                )
                yield snapshot

                if snapshot.is_finished:
                    self.outcome = MonitorOutcome.FINISHED
                    return

                if self.timeout is not None and (self._clock() - start) > self.timeout:
                    raise TimeoutError(
                        f"Job {self.result.job_id} did not finish within {self.timeout}s"
                    )
                self._sleep(self.poll_interval)
        except KeyboardInterrupt:
            logger.info("Monitoring of job %s interrupted; job left running", self.result.job_id)
        finally:
            if self.outcome is None:
                self.outcome = MonitorOutcome.INTERRUPTED
