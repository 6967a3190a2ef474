"""Job — the unit of work the scheduler places on cores.

A job is created when the trace player reports an arrival and lives
until the player reports its completion.  In between it bounces between
two owners:

    WAITING ⇄ RUNNING → COMPLETED

- **WAITING** — parked in the scheduler's ordered waiting queue.
- **RUNNING** — occupying exactly one core slot.
- **COMPLETED** — finished; its statistics have been folded into the
  scheduler's accumulators and nothing references it any more.

Time accounting is lazy: there is no per-tick loop.  At every event the
scheduler ages each running job by the time elapsed since the previous
event, so ``remaining_time`` is only exact at event boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class JobState(StrEnum):
    """Lifecycle states of a job."""

    WAITING = "waiting"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class Job:
    """A simulated job.

    Attributes:
        job_id: Caller-assigned identifier, unique for the whole run.
        arrival_time: Simulated time the job arrived.
        run_time: Total CPU time the job needs.
        priority: Scheduling priority (lower value = more important).
        remaining_time: CPU time still owed; starts equal to ``run_time``.
        start_time: Time of first dispatch, or None if never started.
        state: Current lifecycle state.

    """

    job_id: int
    arrival_time: int
    run_time: int
    priority: int = 0
    remaining_time: int = field(init=False)
    start_time: int | None = None
    state: JobState = JobState.WAITING

    def __post_init__(self) -> None:
        """Every job starts owing its full run time."""
        self.remaining_time = self.run_time

    @property
    def started(self) -> bool:
        """Return True once the job has been dispatched at least once."""
        return self.start_time is not None

    def age(self, elapsed: int) -> None:
        """Charge *elapsed* units of CPU time against the remaining time."""
        self.remaining_time -= elapsed

    def _transition(self, action: str, expected: JobState, target: JobState) -> None:
        """Enforce a state transition.

        Raises:
            RuntimeError: If the job is not in the expected state.

        """
        if self.state is not expected:
            msg = f"Cannot {action}: job {self.job_id} is {self.state}, expected {expected}"
            raise RuntimeError(msg)
        self.state = target

    def dispatch(self, time: int) -> None:
        """Transition WAITING → RUNNING, recording the first start time."""
        self._transition("dispatch", JobState.WAITING, JobState.RUNNING)
        if self.start_time is None:
            self.start_time = time

    def evict(self, time: int) -> None:
        """Transition RUNNING → WAITING after losing the core to a new arrival.

        A job evicted at the very instant it started never really ran,
        so it forgets its start time and gets a fresh one when it is
        dispatched again.
        """
        self._transition("evict", JobState.RUNNING, JobState.WAITING)
        if self.start_time == time:
            self.start_time = None

    def requeue(self) -> None:
        """Transition RUNNING → WAITING at the end of a time quantum."""
        self._transition("requeue", JobState.RUNNING, JobState.WAITING)

    def complete(self) -> None:
        """Transition RUNNING → COMPLETED."""
        self._transition("complete", JobState.RUNNING, JobState.COMPLETED)

    def waiting_time(self, finish: int) -> int:
        """Return time spent not running: ``finish - arrival - run_time``."""
        return finish - self.arrival_time - self.run_time

    def turnaround_time(self, finish: int) -> int:
        """Return ``finish - arrival``."""
        return finish - self.arrival_time

    @property
    def response_time(self) -> int | None:
        """Return ``start - arrival``, or None if never dispatched."""
        if self.start_time is None:
            return None
        return self.start_time - self.arrival_time

    def __str__(self) -> str:
        """Format as ``job N (state, remaining=R)``."""
        return f"job {self.job_id} ({self.state}, remaining={self.remaining_time})"
