"""py-sched — a discrete-event CPU scheduling simulator core.

Re-exports public symbols so callers can write::

    from py_sched import Scheduler, Scheme

    scheduler = Scheduler()
    scheduler.start_up(cores=2, scheme=Scheme.PSJF)
"""

from py_sched.job import Job, JobState
from py_sched.logging import LogEntry, Logger, LogLevel
from py_sched.policy import Policy, Scheme, policy_for
from py_sched.queue import OrderedQueue
from py_sched.scheduler import (
    DuplicateArrivalError,
    DuplicateJobError,
    InvalidCoreError,
    LifecycleError,
    NonMonotonicTimeError,
    Scheduler,
    SchedulerError,
    SchedulerState,
    UnknownJobError,
)

__all__ = [
    "DuplicateArrivalError",
    "DuplicateJobError",
    "InvalidCoreError",
    "Job",
    "JobState",
    "LifecycleError",
    "LogEntry",
    "LogLevel",
    "Logger",
    "NonMonotonicTimeError",
    "OrderedQueue",
    "Policy",
    "Scheduler",
    "SchedulerError",
    "SchedulerState",
    "Scheme",
    "UnknownJobError",
    "policy_for",
]
