"""CPU scheduler — decides which job runs on which core.

The scheduler is driven by an external trace player that owns simulated
time.  The player calls ``start_up`` once, then reports three kinds of
event in non-decreasing time order:

- ``new_job`` — a job arrived; place it on an idle core, preempt a
  running job (preemptive policies only), or park it in the queue.
- ``job_finished`` — a core's job completed; record its statistics and
  hand the core to the front of the waiting queue.
- ``quantum_expired`` — a Round Robin time slice ran out; rotate the
  core's job to the back of the queue if anyone is waiting.

Afterwards the player reads the averages and calls ``clean_up``.

Design: Strategy pattern
    The Scheduler is the *context*; the ``Policy`` looked up from the
    ``Scheme`` is the *strategy*.  The scheduler only asks the policy two
    things — how to order jobs, and whether arrivals may preempt.

Time accounting is lazy.  Each event first advances the clock and
charges the elapsed time to every job currently on a core; there is no
per-tick loop.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from py_sched.job import Job
from py_sched.logging import Logger, LogLevel
from py_sched.policy import Scheme, policy_for
from py_sched.queue import OrderedQueue

if TYPE_CHECKING:
    from py_sched.policy import Policy

_SOURCE = "scheduler"


class SchedulerError(Exception):
    """Base class for violations of the scheduler's calling contract."""


class InvalidCoreError(SchedulerError):
    """Raise when a core index is outside ``[0, num_cores)``."""


class UnknownJobError(SchedulerError):
    """Raise when an event names a job that is not on the given core."""


class DuplicateJobError(SchedulerError):
    """Raise when a job id is submitted a second time."""


class NonMonotonicTimeError(SchedulerError):
    """Raise when an event's time is earlier than the scheduler clock."""


class DuplicateArrivalError(SchedulerError):
    """Raise when two jobs report the same arrival time."""


class LifecycleError(SchedulerError):
    """Raise when a call arrives in the wrong phase of the simulation.

    Examples: an event before ``start_up``, a second ``start_up``, or
    reading averages while jobs are still pending.
    """


class SchedulerState(StrEnum):
    """Lifecycle of a scheduler instance.

    NEW → RUNNING → SHUT_DOWN, driven by ``start_up`` and ``clean_up``.
    """

    NEW = "new"
    RUNNING = "running"
    SHUT_DOWN = "shut_down"


class Scheduler:
    """The multi-core scheduler core.

    Owns the core slots, the waiting queue, the clock, and the running
    statistics.  All state lives on the instance, so independent
    schedulers can coexist in one process.

    Not thread-safe: the simulation is driven by a single caller, and
    concurrent calls on one instance must be serialised externally.
    """

    def __init__(self, *, logger: Logger | None = None) -> None:
        """Create a scheduler in the NEW state.

        Args:
            logger: Where to record scheduling decisions.  A private
                logger is created when omitted.

        """
        self._state = SchedulerState.NEW
        self._logger = logger if logger is not None else Logger()
        self._policy: Policy | None = None
        self._num_cores = 0
        self._cores: list[Job | None] = []
        self._queue: OrderedQueue[Job] | None = None
        self._clock = 0
        self._last_arrival: int | None = None
        self._seen_ids: set[int] = set()

        # Statistics, folded in as each job completes
        self._submitted = 0
        self._completed = 0
        self._total_waiting = 0
        self._total_turnaround = 0
        self._total_response = 0
        self._dispatches = 0
        self._preemptions = 0

    # -- Lifecycle -------------------------------------------------------------

    def start_up(self, *, cores: int, scheme: Scheme | str) -> None:
        """Allocate *cores* idle slots and bind the scheduling policy.

        Args:
            cores: Number of cores to simulate (at least 1).
            scheme: A ``Scheme`` member or its name (e.g. ``"rr"``).

        Raises:
            LifecycleError: If the scheduler was already started.
            ValueError: If *cores* is not positive or *scheme* is unknown.

        """
        if self._state is not SchedulerState.NEW:
            msg = f"Cannot start_up: scheduler is {self._state}, expected new"
            raise LifecycleError(msg)
        if isinstance(cores, bool) or not isinstance(cores, int):
            msg = f"cores must be an integer, got {type(cores).__name__}"
            raise ValueError(msg)  # noqa: TRY004
        if cores < 1:
            msg = f"cores must be at least 1, got {cores}"
            raise ValueError(msg)
        policy = policy_for(scheme)

        self._policy = policy
        self._num_cores = cores
        self._cores = [None] * cores
        self._queue = OrderedQueue(policy.comparator)
        self._clock = 0
        self._state = SchedulerState.RUNNING
        self._logger.log(
            LogLevel.INFO,
            f"Started {policy.scheme.name} on {cores} core(s)",
            source=_SOURCE,
            time=self._clock,
        )

    def clean_up(self, *, force: bool = False) -> None:
        """Release the waiting queue and core slots.

        Args:
            force: Discard jobs that are still waiting or running instead
                of refusing to shut down.

        Raises:
            LifecycleError: If the scheduler is not running, or jobs are
                still pending and *force* is False.

        """
        self._require_running("clean_up")
        assert self._queue is not None  # noqa: S101
        pending = self.pending_count
        if pending and not force:
            msg = f"Cannot clean_up: {pending} job(s) still pending"
            raise LifecycleError(msg)

        for job in [*self._running_jobs(), *self._queue]:
            self._logger.log(
                LogLevel.WARNING,
                f"Discarded job {job.job_id} ({job.state}, remaining={job.remaining_time})",
                source=_SOURCE,
                time=self._clock,
            )
        self._queue.clear()
        self._cores = [None] * self._num_cores
        self._state = SchedulerState.SHUT_DOWN
        self._logger.log(
            LogLevel.INFO,
            f"Shut down after {self._completed} completed job(s)",
            source=_SOURCE,
            time=self._clock,
        )

    # -- Events ----------------------------------------------------------------

    def new_job(self, job_id: int, time: int, run_time: int, priority: int = 0) -> int | None:
        """Handle a job arrival.

        Args:
            job_id: Unique id for the new job.
            time: Arrival time (also the current simulated time).
            run_time: CPU time the job needs (positive).
            priority: Priority value, lower is more important.

        Returns:
            The core index the job was placed on, or None if it waits.

        Raises:
            DuplicateJobError: If *job_id* was submitted before.
            DuplicateArrivalError: If another job arrived at *time*.
            NonMonotonicTimeError: If *time* is before the clock.
            LifecycleError: If the scheduler is not running.
            ValueError: If *run_time* is not positive.

        """
        self._require_running("new_job")
        assert self._policy is not None  # noqa: S101
        if run_time <= 0:
            msg = f"run_time must be positive, got {run_time}"
            raise ValueError(msg)
        if job_id in self._seen_ids:
            msg = f"Job {job_id} was already submitted"
            raise DuplicateJobError(msg)
        self._check_time(time)
        if time == self._last_arrival:
            msg = f"Job {job_id} arrives at {time}, the same time as the previous arrival"
            raise DuplicateArrivalError(msg)

        self._advance(time)
        self._seen_ids.add(job_id)
        self._last_arrival = time
        self._submitted += 1
        job = Job(job_id=job_id, arrival_time=time, run_time=run_time, priority=priority)

        idle = self._first_idle_core()
        if idle is not None:
            self._place(job, idle)
            return idle

        if self._policy.preemptive:
            target = self._preemption_target(job)
            if target is not None:
                victim = self._cores[target]
                assert victim is not None  # noqa: S101
                victim.evict(time)
                self._enqueue(victim)
                self._preemptions += 1
                self._logger.log(
                    LogLevel.DEBUG,
                    f"Job {job_id} preempted job {victim.job_id} on core {target}",
                    source=_SOURCE,
                    time=time,
                )
                self._place(job, target)
                return target

        self._enqueue(job)
        return None

    def job_finished(self, core_id: int, job_id: int, time: int) -> int | None:
        """Handle the completion of the job running on *core_id*.

        Returns:
            The id of the job now running on the core, or None if the
            core stays idle.

        Raises:
            InvalidCoreError: If *core_id* is out of range.
            UnknownJobError: If *job_id* is not the job on that core.
            NonMonotonicTimeError: If *time* is before the clock.
            LifecycleError: If the scheduler is not running.

        """
        self._require_running("job_finished")
        self._check_core(core_id)
        job = self._cores[core_id]
        if job is None:
            msg = f"Cannot finish job {job_id}: core {core_id} is idle"
            raise UnknownJobError(msg)
        if job.job_id != job_id:
            msg = f"Cannot finish job {job_id}: core {core_id} is running job {job.job_id}"
            raise UnknownJobError(msg)
        self._check_time(time)

        self._advance(time)
        response = job.response_time
        assert response is not None  # noqa: S101
        self._total_waiting += job.waiting_time(time)
        self._total_turnaround += job.turnaround_time(time)
        self._total_response += response
        self._completed += 1
        job.complete()
        self._cores[core_id] = None
        self._logger.log(
            LogLevel.DEBUG,
            f"Job {job_id} finished on core {core_id}",
            source=_SOURCE,
            time=time,
        )

        next_job = self._dequeue()
        if next_job is None:
            return None
        self._place(next_job, core_id)
        return next_job.job_id

    def quantum_expired(self, core_id: int, time: int) -> int:
        """Handle the end of a time slice on *core_id*.

        If anyone is waiting, the current job goes back into the queue
        and the front of the queue takes the core.

        Returns:
            The id of the job running on the core afterwards.

        Raises:
            InvalidCoreError: If *core_id* is out of range.
            UnknownJobError: If the core is idle.
            NonMonotonicTimeError: If *time* is before the clock.
            LifecycleError: If the scheduler is not running.

        """
        self._require_running("quantum_expired")
        self._check_core(core_id)
        current = self._cores[core_id]
        if current is None:
            msg = f"Cannot expire quantum: core {core_id} is idle"
            raise UnknownJobError(msg)
        self._check_time(time)

        self._advance(time)
        if not self._queue:
            return current.job_id

        current.requeue()
        self._cores[core_id] = None
        self._enqueue(current)
        next_job = self._dequeue()
        assert next_job is not None  # noqa: S101
        if next_job is not current:
            self._preemptions += 1
        self._place(next_job, core_id)
        return next_job.job_id

    # -- Statistics ------------------------------------------------------------

    def average_waiting_time(self) -> float:
        """Return the mean of ``finish - arrival - run_time`` over completed jobs."""
        self._require_drained("average_waiting_time")
        return self._mean(self._total_waiting)

    def average_turnaround_time(self) -> float:
        """Return the mean of ``finish - arrival`` over completed jobs."""
        self._require_drained("average_turnaround_time")
        return self._mean(self._total_turnaround)

    def average_response_time(self) -> float:
        """Return the mean of ``first dispatch - arrival`` over completed jobs."""
        self._require_drained("average_response_time")
        return self._mean(self._total_response)

    def perf_metrics(self) -> dict[str, float | int]:
        """Return counters and running averages, even mid-simulation."""
        if self._state is SchedulerState.NEW:
            msg = "Cannot read perf_metrics: scheduler has not been started"
            raise LifecycleError(msg)
        return {
            "clock": self._clock,
            "total_submitted": self._submitted,
            "total_completed": self._completed,
            "pending": self.pending_count,
            "dispatches": self._dispatches,
            "preemptions": self._preemptions,
            "avg_wait_time": self._mean(self._total_waiting),
            "avg_turnaround_time": self._mean(self._total_turnaround),
            "avg_response_time": self._mean(self._total_response),
        }

    # -- Introspection ---------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        """Return the lifecycle state."""
        return self._state

    @property
    def scheme(self) -> Scheme | None:
        """Return the active scheme, or None before ``start_up``."""
        return self._policy.scheme if self._policy is not None else None

    @property
    def logger(self) -> Logger:
        """Return the decision log."""
        return self._logger

    @property
    def num_cores(self) -> int:
        """Return the number of core slots (0 before ``start_up``)."""
        return self._num_cores

    @property
    def clock(self) -> int:
        """Return the time of the most recent event."""
        return self._clock

    @property
    def submitted_count(self) -> int:
        """Return the number of jobs ever submitted."""
        return self._submitted

    @property
    def completed_count(self) -> int:
        """Return the number of jobs that have finished."""
        return self._completed

    @property
    def pending_count(self) -> int:
        """Return the number of jobs running or waiting."""
        waiting = len(self._queue) if self._queue is not None else 0
        return len(self._running_jobs()) + waiting

    @property
    def dispatch_count(self) -> int:
        """Return how many times a job was placed on a core."""
        return self._dispatches

    @property
    def preemption_count(self) -> int:
        """Return how many times a running job lost its core early."""
        return self._preemptions

    def core_jobs(self) -> list[int | None]:
        """Return the job id on each core, None for idle cores."""
        return [job.job_id if job is not None else None for job in self._cores]

    def waiting_jobs(self) -> list[Job]:
        """Return a snapshot of the waiting queue, front first."""
        if self._queue is None:
            return []
        return list(self._queue)

    def job_on(self, core_id: int) -> Job | None:
        """Return the job running on *core_id*, or None if idle.

        Raises:
            InvalidCoreError: If *core_id* is out of range.

        """
        self._check_core(core_id)
        return self._cores[core_id]

    # -- Private helpers -------------------------------------------------------

    def _require_running(self, action: str) -> None:
        """Raise if the scheduler is not between start_up and clean_up."""
        if self._state is SchedulerState.NEW:
            msg = f"Cannot {action}: scheduler has not been started"
            raise LifecycleError(msg)
        if self._state is SchedulerState.SHUT_DOWN:
            msg = f"Cannot {action}: scheduler has been cleaned up"
            raise LifecycleError(msg)

    def _require_drained(self, action: str) -> None:
        """Raise unless the scheduler is running with no pending jobs."""
        self._require_running(action)
        pending = self.pending_count
        if pending:
            msg = f"Cannot {action}: {pending} job(s) still pending"
            raise LifecycleError(msg)

    def _check_core(self, core_id: int) -> None:
        if not 0 <= core_id < self._num_cores:
            msg = f"Core {core_id} out of range [0, {self._num_cores})"
            raise InvalidCoreError(msg)

    def _check_time(self, time: int) -> None:
        if time < self._clock:
            msg = f"Time {time} is before the current clock {self._clock}"
            raise NonMonotonicTimeError(msg)

    def _advance(self, time: int) -> None:
        """Move the clock to *time*, charging the gap to every running job."""
        elapsed = time - self._clock
        if elapsed:
            for job in self._running_jobs():
                job.age(elapsed)
        self._clock = time

    def _running_jobs(self) -> list[Job]:
        return [job for job in self._cores if job is not None]

    def _first_idle_core(self) -> int | None:
        """Return the lowest-indexed idle core, or None if all are busy."""
        for index, job in enumerate(self._cores):
            if job is None:
                return index
        return None

    def _preemption_target(self, job: Job) -> int | None:
        """Return the core whose job *job* should evict, or None.

        Every core whose job ranks strictly behind the newcomer is a
        candidate; the last candidate in index order wins.
        """
        assert self._policy is not None  # noqa: S101
        cmp = self._policy.comparator
        target: int | None = None
        for index, running in enumerate(self._cores):
            if running is not None and cmp(job, running) < 0:
                target = index
        return target

    def _place(self, job: Job, core_id: int) -> None:
        job.dispatch(self._clock)
        self._cores[core_id] = job
        self._dispatches += 1
        self._logger.log(
            LogLevel.DEBUG,
            f"Dispatched job {job.job_id} to core {core_id}",
            source=_SOURCE,
            time=self._clock,
        )

    def _enqueue(self, job: Job) -> None:
        assert self._queue is not None  # noqa: S101
        position = self._queue.offer(job)
        self._logger.log(
            LogLevel.DEBUG,
            f"Queued job {job.job_id} at position {position}",
            source=_SOURCE,
            time=self._clock,
        )

    def _dequeue(self) -> Job | None:
        assert self._queue is not None  # noqa: S101
        return self._queue.poll()

    def _mean(self, total: int) -> float:
        return total / self._completed if self._completed else 0.0

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        scheme = self.scheme.name if self.scheme is not None else None
        return (
            f"Scheduler(state={self._state}, scheme={scheme}, "
            f"cores={self.core_jobs()}, waiting={len(self.waiting_jobs())})"
        )
