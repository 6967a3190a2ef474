"""Property tests over seeded random traces.

A tiny trace player drives the scheduler the way the external simulator
would: it always fires the earliest pending event (completions first on
ties, then expired quanta, then arrivals) and checks the scheduler's
invariants after every call.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from py_sched.policy import Scheme
from py_sched.scheduler import Scheduler

if TYPE_CHECKING:
    from collections.abc import Callable

SEEDS = range(8)
JOBS_PER_TRACE = 12
QUANTUM = 3

_FINISH = 0
_QUANTUM = 1
_ARRIVAL = 2


@dataclass(frozen=True)
class Arrival:
    """One job in a trace."""

    job_id: int
    time: int
    run_time: int
    priority: int


@dataclass
class Replay:
    """What the trace player observed."""

    scheduler: Scheduler
    finish: dict[int, int]
    order: list[int]


def _trace(seed: int) -> list[Arrival]:
    """Return a random trace with strictly increasing arrival times."""
    rng = random.Random(seed)
    time = 0
    jobs: list[Arrival] = []
    for job_id in range(1, JOBS_PER_TRACE + 1):
        time += rng.randint(1, 4)
        jobs.append(Arrival(job_id, time, rng.randint(1, 9), rng.randint(0, 4)))
    return jobs


def _check_invariants(scheduler: Scheduler) -> None:
    """Assert the partition identity and exclusive ownership."""
    running = [job_id for job_id in scheduler.core_jobs() if job_id is not None]
    waiting = [job.job_id for job in scheduler.waiting_jobs()]
    assert len(running) <= scheduler.num_cores
    assert len(running) + len(waiting) + scheduler.completed_count == scheduler.submitted_count
    assert not set(running) & set(waiting)


def _replay(
    scheme: Scheme,
    cores: int,
    jobs: list[Arrival],
    *,
    quantum: int | None = None,
    on_event: Callable[[Scheduler, int, list[int | None], int], None] | None = None,
) -> Replay:
    """Drive *jobs* through a fresh scheduler until every job completes."""
    scheduler = Scheduler()
    scheduler.start_up(cores=cores, scheme=scheme)
    finish: dict[int, int] = {}
    order: list[int] = []
    slice_start: list[int | None] = [None] * cores
    next_arrival = 0

    while next_arrival < len(jobs) or scheduler.pending_count:
        candidates: list[tuple[int, int, int]] = []
        for core in range(cores):
            job = scheduler.job_on(core)
            if job is None:
                continue
            candidates.append((scheduler.clock + job.remaining_time, _FINISH, core))
            started = slice_start[core]
            if quantum is not None and started is not None:
                candidates.append((started + quantum, _QUANTUM, core))
        if next_arrival < len(jobs):
            candidates.append((jobs[next_arrival].time, _ARRIVAL, -1))

        time, kind, core = min(candidates)
        before = scheduler.core_jobs()
        waiting_before = len(scheduler.waiting_jobs())
        if kind == _FINISH:
            job = scheduler.job_on(core)
            assert job is not None
            scheduler.job_finished(core, job.job_id, time)
            finish[job.job_id] = time
            order.append(job.job_id)
        elif kind == _QUANTUM:
            scheduler.quantum_expired(core, time)
            slice_start[core] = time
        else:
            arrival = jobs[next_arrival]
            next_arrival += 1
            scheduler.new_job(arrival.job_id, arrival.time, arrival.run_time, arrival.priority)

        after = scheduler.core_jobs()
        for index, (old, new) in enumerate(zip(before, after, strict=True)):
            if old != new:
                slice_start[index] = time if new is not None else None
        _check_invariants(scheduler)
        if on_event is not None:
            on_event(scheduler, kind, before, waiting_before)

    return Replay(scheduler=scheduler, finish=finish, order=order)


@pytest.mark.parametrize("seed", SEEDS)
@pytest.mark.parametrize("scheme", list(Scheme))
@pytest.mark.parametrize("cores", [1, 2, 3])
class TestEveryScheme:
    """Properties that hold for every scheme and core count."""

    def test_all_jobs_complete(self, seed: int, scheme: Scheme, cores: int) -> None:
        """Every submitted job finishes and the scheduler drains."""
        jobs = _trace(seed)
        replay = _replay(scheme, cores, jobs, quantum=QUANTUM if scheme is Scheme.RR else None)
        assert replay.scheduler.completed_count == len(jobs)
        assert replay.scheduler.pending_count == 0
        replay.scheduler.clean_up()

    def test_averages_match_recomputation(self, seed: int, scheme: Scheme, cores: int) -> None:
        """Averages equal a direct recomputation from the finish times."""
        jobs = _trace(seed)
        replay = _replay(scheme, cores, jobs, quantum=QUANTUM if scheme is Scheme.RR else None)
        waiting = [replay.finish[j.job_id] - j.time - j.run_time for j in jobs]
        turnaround = [replay.finish[j.job_id] - j.time for j in jobs]
        assert replay.scheduler.average_waiting_time() == pytest.approx(sum(waiting) / len(jobs))
        assert replay.scheduler.average_turnaround_time() == pytest.approx(
            sum(turnaround) / len(jobs)
        )
        assert all(w >= 0 for w in waiting)


class TestOrderingProperties:
    """Scheme-specific ordering properties on a single core."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_fcfs_finishes_in_arrival_order(self, seed: int) -> None:
        """Without preemption one core serves jobs in arrival order."""
        jobs = _trace(seed)
        replay = _replay(Scheme.FCFS, 1, jobs)
        assert replay.order == [j.job_id for j in jobs]

    @pytest.mark.parametrize("seed", SEEDS)
    @pytest.mark.parametrize("scheme", [Scheme.FCFS, Scheme.SJF, Scheme.PRI])
    def test_non_preemptive_response_equals_waiting(self, seed: int, scheme: Scheme) -> None:
        """Jobs that run uninterrupted have response time equal to waiting time."""
        replay = _replay(scheme, 2, _trace(seed))
        assert replay.scheduler.average_response_time() == pytest.approx(
            replay.scheduler.average_waiting_time()
        )
        assert replay.scheduler.preemption_count == 0

    @pytest.mark.parametrize("seed", SEEDS)
    def test_psjf_running_job_is_never_longer(self, seed: int) -> None:
        """After every event the running job needs no more time than any waiting job."""

        def check(scheduler: Scheduler, _kind: int, _before: list[int | None], _waiting: int) -> None:
            running = scheduler.job_on(0)
            if running is None:
                return
            for waiting in scheduler.waiting_jobs():
                assert running.remaining_time <= waiting.remaining_time

        _replay(Scheme.PSJF, 1, _trace(seed), on_event=check)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_sjf_dispatches_shortest(self, seed: int) -> None:
        """Whenever a core is handed over, the shortest waiting job gets it."""

        def check(scheduler: Scheduler, kind: int, _before: list[int | None], _waiting: int) -> None:
            running = scheduler.job_on(0)
            if kind != _FINISH or running is None:
                return
            for waiting in scheduler.waiting_jobs():
                assert running.remaining_time <= waiting.remaining_time

        _replay(Scheme.SJF, 1, _trace(seed), on_event=check)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_ppri_running_job_is_most_important(self, seed: int) -> None:
        """After every event the running job's priority value is the lowest present."""

        def check(scheduler: Scheduler, _kind: int, _before: list[int | None], _waiting: int) -> None:
            running = scheduler.job_on(0)
            if running is None:
                return
            for waiting in scheduler.waiting_jobs():
                assert running.priority <= waiting.priority

        _replay(Scheme.PPRI, 1, _trace(seed), on_event=check)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_rr_rotates_when_queue_non_empty(self, seed: int) -> None:
        """A core never keeps its job past an expired quantum if anyone waits."""

        def check(scheduler: Scheduler, kind: int, before: list[int | None], waiting: int) -> None:
            if kind == _QUANTUM and waiting:
                assert scheduler.core_jobs() != before

        _replay(Scheme.RR, 1, _trace(seed), quantum=QUANTUM, on_event=check)
