"""Scheduling policies — how waiting jobs are ordered and who may preempt.

Six disciplines ship out of the box:

- **FCFS** (First Come, First Served): earliest arrival first.  A long
  job at the front starves everyone behind it (convoy effect).
- **SJF** (Shortest Job First): least remaining time first, ties by
  arrival.  Non-preemptive: a running job is never interrupted.
- **PSJF** (Preemptive SJF, a.k.a. SRTF): like SJF, but a newcomer with
  strictly less remaining time evicts a running job.
- **PRI** (Priority): lowest priority value first, ties by arrival.
- **PPRI** (Preemptive Priority): like PRI with preemption on arrival.
- **RR** (Round Robin): plain rotation.  The driver fires
  ``quantum_expired`` and the running job goes to the back of the queue.

Design: tagged variant
    ``Scheme`` is a closed enum.  Each member resolves, once, to a frozen
    ``Policy`` carrying its comparator and preemption flag, so the
    scheduler never switches on the scheme while handling an event.

Every comparator returns 0 when a job meets itself (same id), whatever
its other fields say.  That keeps a job from ever preempting itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from py_sched.job import Job


class Scheme(StrEnum):
    """The six supported scheduling disciplines."""

    FCFS = "fcfs"
    SJF = "sjf"
    PSJF = "psjf"
    PRI = "pri"
    PPRI = "ppri"
    RR = "rr"

    @classmethod
    def parse(cls, text: object) -> Scheme:
        """Return the scheme named *text* (case-insensitive).

        Raises:
            ValueError: If *text* is not a string or names no known scheme.

        """
        if not isinstance(text, str):
            msg = f"Scheme name must be a string, got {type(text).__name__}"
            raise ValueError(msg)  # noqa: TRY004
        try:
            return cls(text.strip().lower())
        except ValueError:
            known = ", ".join(s.name for s in cls)
            msg = f"Unknown scheme {text!r} (expected one of: {known})"
            raise ValueError(msg) from None

    @property
    def policy(self) -> Policy:
        """Return this scheme's policy table entry."""
        return policy_for(self)

    @property
    def comparator(self) -> Callable[[Job, Job], int]:
        """Return this scheme's job comparator."""
        return policy_for(self).comparator

    @property
    def preemptive(self) -> bool:
        """Return True if a new arrival may evict a running job."""
        return policy_for(self).preemptive


@dataclass(frozen=True)
class Policy:
    """A policy table entry.

    Attributes:
        scheme: The discipline this entry belongs to.
        comparator: Three-way job ordering (negative = runs first).
        preemptive: Whether arrivals may evict running jobs.

    """

    scheme: Scheme
    comparator: Callable[[Job, Job], int]
    preemptive: bool


def compare_fcfs(a: Job, b: Job) -> int:
    """Order by arrival time."""
    if a.job_id == b.job_id:
        return 0
    return a.arrival_time - b.arrival_time


def compare_sjf(a: Job, b: Job) -> int:
    """Order by remaining time, then arrival time."""
    if a.job_id == b.job_id:
        return 0
    if a.remaining_time != b.remaining_time:
        return a.remaining_time - b.remaining_time
    return a.arrival_time - b.arrival_time


def compare_priority(a: Job, b: Job) -> int:
    """Order by priority value (lower wins), then arrival time."""
    if a.job_id == b.job_id:
        return 0
    if a.priority != b.priority:
        return a.priority - b.priority
    return a.arrival_time - b.arrival_time


def compare_rr(a: Job, b: Job) -> int:
    """Rank any other job ahead, so newcomers queue at the back."""
    if a.job_id == b.job_id:
        return 0
    return -1


_POLICIES: dict[Scheme, Policy] = {
    Scheme.FCFS: Policy(Scheme.FCFS, compare_fcfs, preemptive=False),
    Scheme.SJF: Policy(Scheme.SJF, compare_sjf, preemptive=False),
    Scheme.PSJF: Policy(Scheme.PSJF, compare_sjf, preemptive=True),
    Scheme.PRI: Policy(Scheme.PRI, compare_priority, preemptive=False),
    Scheme.PPRI: Policy(Scheme.PPRI, compare_priority, preemptive=True),
    Scheme.RR: Policy(Scheme.RR, compare_rr, preemptive=False),
}


def policy_for(scheme: Scheme | str) -> Policy:
    """Return the policy table entry for *scheme*.

    Args:
        scheme: A ``Scheme`` member or a scheme name such as ``"psjf"``.

    Raises:
        ValueError: If *scheme* is a string naming no known scheme.

    """
    if not isinstance(scheme, Scheme):
        scheme = Scheme.parse(scheme)
    return _POLICIES[scheme]
