"""Flask application factory for the scheduler HTTP adapter.

The ``create_app`` function returns a Flask app bound to a single
scheduler session:

- ``POST /api/start`` — start the scheduler (``cores``, ``scheme``).
- ``POST /api/jobs`` — report an arrival; returns the chosen core.
- ``POST /api/finish`` — report a completion; returns the next job.
- ``POST /api/quantum`` — report an expired quantum; returns the job.
- ``GET /api/status`` — clock, per-core job ids, and waiting ids.
- ``GET /api/stats`` — counters and averages.
- ``POST /api/cleanup`` — shut the session down.
- ``GET /api/log`` — the decision log.

Starting again after a clean-up opens a fresh session.
"""

from __future__ import annotations

from typing import Any

from flask import Flask, Response, jsonify, request

from py_sched.logging import Logger, LogLevel
from py_sched.policy import Scheme
from py_sched.scheduler import Scheduler, SchedulerError, SchedulerState

DEFAULT_CORES = 1
DEFAULT_SCHEME = Scheme.FCFS

_HTTP_BAD_REQUEST = 400
_HTTP_CONFLICT = 409
_SOURCE = "web"


def _int_field(data: dict[str, Any], name: str, *, default: int | None = None) -> int:
    """Return ``data[name]`` as an int, or *default* when absent.

    Raises:
        ValueError: If the field is missing (with no default) or not an int.

    """
    value = data.get(name, default)
    if value is None:
        msg = f"Missing '{name}' field"
        raise ValueError(msg)
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"Field '{name}' must be an integer"
        raise ValueError(msg)
    return value


def _bool_field(data: dict[str, Any], name: str, *, default: bool) -> bool:
    """Return ``data[name]`` as a bool, or *default* when absent.

    Raises:
        ValueError: If the field is present but not a JSON boolean.

    """
    value = data.get(name, default)
    if not isinstance(value, bool):
        msg = f"Field '{name}' must be a boolean"
        raise ValueError(msg)
    return value


def _json_body() -> dict[str, Any]:
    """Return the request's JSON object, or an empty dict."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def create_app(*, logger: Logger | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        logger: Log shared by the adapter and every scheduler session.
            A fresh logger is created when omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    log = logger if logger is not None else Logger()
    session: dict[str, Scheduler] = {"scheduler": Scheduler(logger=log)}

    app = Flask(__name__)

    def current() -> Scheduler:
        """Return the active scheduler session."""
        return session["scheduler"]

    @app.errorhandler(SchedulerError)
    def scheduler_error(error: SchedulerError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Report a contract violation as 409 Conflict."""
        log.log(
            LogLevel.WARNING,
            f"Rejected {request.path}: {error}",
            source=_SOURCE,
            time=current().clock,
        )
        return jsonify({"error": str(error), "kind": type(error).__name__}), _HTTP_CONFLICT

    @app.errorhandler(ValueError)
    def value_error(error: ValueError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Report a malformed request as 400 Bad Request."""
        return jsonify({"error": str(error)}), _HTTP_BAD_REQUEST

    @app.route("/api/start", methods=["POST"])
    def start() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Start the scheduler.

        Expects JSON body: ``{"cores": N, "scheme": "psjf"}``; both are
        optional and default to ``DEFAULT_CORES`` / ``DEFAULT_SCHEME``.
        """
        data = _json_body()
        cores = _int_field(data, "cores", default=DEFAULT_CORES)
        scheme_name = data.get("scheme", DEFAULT_SCHEME.value)
        if not isinstance(scheme_name, str):
            msg = "Field 'scheme' must be a string"
            raise ValueError(msg)
        scheme = Scheme.parse(scheme_name)
        if current().state is SchedulerState.SHUT_DOWN:
            session["scheduler"] = Scheduler(logger=log)
        current().start_up(cores=cores, scheme=scheme)
        return jsonify({"cores": cores, "scheme": scheme.name})

    @app.route("/api/jobs", methods=["POST"])
    def new_job() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Report a job arrival.

        Expects JSON body: ``{"job_id", "time", "run_time", "priority"}``.

        Returns:
            JSON with ``core`` — the core index, or null if the job waits.

        """
        data = _json_body()
        core = current().new_job(
            _int_field(data, "job_id"),
            _int_field(data, "time"),
            _int_field(data, "run_time"),
            _int_field(data, "priority", default=0),
        )
        return jsonify({"core": core})

    @app.route("/api/finish", methods=["POST"])
    def job_finished() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Report a job completion.

        Returns:
            JSON with ``next_job`` — the job now on the core, or null.

        """
        data = _json_body()
        next_job = current().job_finished(
            _int_field(data, "core"),
            _int_field(data, "job_id"),
            _int_field(data, "time"),
        )
        return jsonify({"next_job": next_job})

    @app.route("/api/quantum", methods=["POST"])
    def quantum_expired() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Report an expired time quantum.

        Returns:
            JSON with ``job`` — the job now on the core.

        """
        data = _json_body()
        job = current().quantum_expired(_int_field(data, "core"), _int_field(data, "time"))
        return jsonify({"job": job})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the session's state, clock, cores, and waiting queue."""
        scheduler = current()
        scheme = scheduler.scheme
        return jsonify(
            {
                "state": scheduler.state.value,
                "scheme": scheme.name if scheme is not None else None,
                "clock": scheduler.clock,
                "cores": scheduler.core_jobs(),
                "waiting": [job.job_id for job in scheduler.waiting_jobs()],
            }
        )

    @app.route("/api/stats")
    def stats() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return counters and running averages."""
        return jsonify(current().perf_metrics())

    @app.route("/api/cleanup", methods=["POST"])
    def clean_up() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Shut the session down; ``{"force": true}`` discards pending jobs."""
        force = _bool_field(_json_body(), "force", default=False)
        current().clean_up(force=force)
        return jsonify({"state": current().state.value})

    @app.route("/api/log")
    def decision_log() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return every log entry, oldest first."""
        return jsonify([entry.to_dict() for entry in log.entries])

    return app


def main() -> None:
    """Run the adapter's development server.

    This is the ``py-sched-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
