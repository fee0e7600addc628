"""
Provides common, stateless utility functions used across the application.

This module is a collection of simple, reusable helpers for clocks and for
rendering durations. It has no dependencies beyond the standard library.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Returns the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def get_timestamp() -> str:
    """
    Generates an ISO-8601 timestamp string for logs and stored records.

    Returns:
        The current UTC time, e.g. '2025-08-07T13:48:30.123456+00:00'.
    """
    return utc_now().isoformat()


def format_time_display(seconds: int) -> str:
    """
    Formats a duration for the heating display.

    Only durations strictly between 60 and 100 seconds render as M:SS;
    everything else, including exactly 60 and anything from 100 up, renders
    as raw seconds ('60s', '150s').
    """
    if 60 < seconds < 100:
        minutes, rest = divmod(seconds, 60)
        return f"{minutes}:{rest:02d}"
    return f"{seconds}s"


def format_program_duration(seconds: int) -> str:
    """
    Formats a program duration for the program list.

    Unlike the heating display, every duration above 60 seconds renders as
    M:SS ('840' -> '14:00').
    """
    if seconds > 60:
        minutes, rest = divmod(seconds, 60)
        return f"{minutes}:{rest:02d}"
    return f"{seconds}s"
