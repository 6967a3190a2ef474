"""Tests for the scheduler event log.

The logger records structured entries for scheduling decisions, stamped
with the simulated clock, so a run can be inspected afterwards.
"""

from py_sched.logging import LogEntry, Logger, LogLevel
from py_sched.scheduler import Scheduler


def _logged_run() -> Logger:
    """Run a short PSJF trace and return its log."""
    logger = Logger()
    scheduler = Scheduler(logger=logger)
    scheduler.start_up(cores=1, scheme="psjf")
    scheduler.new_job(1, 0, 5)
    scheduler.new_job(2, 2, 1)
    scheduler.job_finished(0, 2, 3)
    scheduler.job_finished(0, 1, 6)
    scheduler.clean_up()
    return logger


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_has_fields(self) -> None:
        """A log entry should store level, message, source, and time."""
        entry = LogEntry(level=LogLevel.INFO, message="started", source="scheduler", time=4)
        assert entry.level is LogLevel.INFO
        assert entry.message == "started"
        assert entry.source == "scheduler"
        assert entry.time == 4

    def test_entry_str(self) -> None:
        """String representation should include level, time, and message."""
        entry = LogEntry(level=LogLevel.WARNING, message="discarded", source="scheduler", time=9)
        text = str(entry)
        assert "WARNING" in text
        assert "t=9" in text
        assert "discarded" in text

    def test_entry_to_dict_names_level(self) -> None:
        """The dict form spells the level by name for JSON."""
        entry = LogEntry(level=LogLevel.DEBUG, message="m", source="web")
        assert entry.to_dict() == {"level": "DEBUG", "message": "m", "source": "web", "time": 0}


class TestLogger:
    """Verify the logger."""

    def test_log_stores_entries(self) -> None:
        """Logged entries should be retrievable in order."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="test")
        logger.log(LogLevel.INFO, "second", source="test", time=3)
        assert [e.message for e in logger.entries] == ["first", "second"]
        assert logger.entries[1].time == 3

    def test_filter_by_level_and_source(self) -> None:
        """Filtering by minimum level and source narrows the entries."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "noise", source="scheduler")
        logger.log(LogLevel.WARNING, "careful", source="scheduler")
        logger.log(LogLevel.ERROR, "bad request", source="web")
        assert [e.message for e in logger.filter(min_level=LogLevel.WARNING)] == [
            "careful",
            "bad request",
        ]
        assert [e.message for e in logger.filter(source="web")] == ["bad request"]

    def test_filter_by_time_window(self) -> None:
        """since/until select a slice of the simulated timeline."""
        logger = _logged_run()
        window = logger.filter(since=2, until=3)
        assert window
        assert all(2 <= e.time <= 3 for e in window)
        assert any("preempted" in e.message for e in window)
        assert logger.filter(since=7) == []

    def test_entries_is_a_copy(self) -> None:
        """Mutating the returned list does not affect the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "kept", source="test")
        logger.entries.clear()
        assert len(logger.entries) == 1

    def test_clear(self) -> None:
        """clear empties the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "gone", source="test")
        logger.clear()
        assert logger.entries == []


class TestSchedulerLogging:
    """Verify what the scheduler records."""

    def test_start_and_shutdown_logged_at_info(self) -> None:
        """Start-up and clean-up are the INFO-level milestones."""
        info = _logged_run().filter(min_level=LogLevel.INFO)
        assert [e.message for e in info] == [
            "Started PSJF on 1 core(s)",
            "Shut down after 2 completed job(s)",
        ]

    def test_preemption_logged_with_time(self) -> None:
        """A preemption is recorded with the simulated time it happened."""
        preemptions = [e for e in _logged_run().entries if "preempted" in e.message]
        assert len(preemptions) == 1
        assert preemptions[0].time == 2
        assert preemptions[0].message == "Job 2 preempted job 1 on core 0"

    def test_every_entry_comes_from_scheduler(self) -> None:
        """Scheduler entries share one source."""
        logger = _logged_run()
        assert logger.filter(source="scheduler") == logger.entries

    def test_default_logger_is_private(self) -> None:
        """Without an explicit logger each scheduler keeps its own."""
        first, second = Scheduler(), Scheduler()
        first.start_up(cores=1, scheme="fcfs")
        assert len(first.logger.entries) == 1
        assert second.logger.entries == []
