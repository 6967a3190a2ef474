"""Decision log for replaying a simulation after the fact.

A finished simulation leaves three averages behind, which rarely explain
*why* a trace scored the way it did.  The scheduler therefore writes a
line for every decision it makes: which core a job went to, who got
preempted and by whom, where a job landed in the waiting queue, and
which jobs a forced shutdown threw away.

Entries carry the simulated clock of the event that produced them, not
wall-clock time, so a log reads as a timeline of the trace itself.
Slicing that timeline by severity, by component (``"scheduler"`` or the
HTTP adapter's ``"web"``), or by a window of simulated time is enough to
answer most "what happened at t=42?" questions.

Levels are an IntEnum so a minimum-level cut is a plain ``>=``.  Entries
are frozen: a replay must see exactly what the scheduler decided.
"""

from dataclasses import asdict, dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """How much a log line matters when replaying a run.

    DEBUG covers routine decisions (dispatch, queueing, preemption),
    INFO the start and end of a simulation, WARNING discarded jobs and
    rejected requests.
    """

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One scheduling decision.

    Attributes:
        level: How much the decision matters.
        message: What was decided, e.g. ``"Job 2 preempted job 1 on core 0"``.
        source: The component that decided ("scheduler" or "web").
        time: Simulated clock value of the triggering event.

    """

    level: LogLevel
    message: str
    source: str
    time: int = 0

    def __str__(self) -> str:
        """Format as ``[LEVEL] t=N source: message``."""
        return f"[{self.level.name}] t={self.time} {self.source}: {self.message}"

    def to_dict(self) -> dict[str, str | int]:
        """Return a JSON-friendly dict with the level spelled by name."""
        data = asdict(self)
        data["level"] = self.level.name
        return data


class Logger:
    """Timeline of scheduling decisions, oldest first.

    One logger may be shared by several schedulers (the HTTP adapter
    keeps one across sessions); entries are never reordered or edited.
    """

    def __init__(self) -> None:
        """Create an empty timeline."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of every entry in the order it was logged."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        time: int = 0,
    ) -> None:
        """Record a decision made at simulated *time*."""
        self._entries.append(LogEntry(level=level, message=message, source=source, time=time))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        since: int | None = None,
        until: int | None = None,
    ) -> list[LogEntry]:
        """Return the entries matching every given criterion.

        Args:
            min_level: Keep entries at or above this level.
            source: Keep entries from this component only.
            since: Keep entries whose simulated time is at least this.
            until: Keep entries whose simulated time is at most this.

        Returns:
            Matching entries, oldest first.

        """
        return [
            e
            for e in self._entries
            if (min_level is None or e.level >= min_level)
            and (source is None or e.source == source)
            and (since is None or e.time >= since)
            and (until is None or e.time <= until)
        ]

    def clear(self) -> None:
        """Forget every entry."""
        self._entries.clear()
