"""Utility helpers (logging, scheduling, common functions).

Shared utilities for the project.

Submodules:
    logging    – setup_logging(), JsonFormatter, log_execution_time.
    math       – clamp() and round_half_up().
    scheduler  – clock + cancellable timers driving the session engine.
"""
