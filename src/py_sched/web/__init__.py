"""HTTP adapter for the scheduler core.

This package provides a Flask application that exposes the scheduler's
callback contract over HTTP, so a trace player written in any language
can drive a simulation.  It is an **optional** extra — install with::

    pip install py-sched[web]

The ``create_app`` factory in ``app.py`` holds one scheduler session and
serves JSON endpoints for start-up, the three events, statistics, the
decision log, and clean-up.
"""
