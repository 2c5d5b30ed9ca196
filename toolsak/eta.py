"""Estimate the time left for a task from the progress made so far."""

from __future__ import annotations

from datetime import timedelta

FALLBACK_ETA = timedelta(days=7)


def calculate_eta(total: int, completed: int, elapsed: timedelta) -> timedelta:
    """Return the estimated time needed to finish the remaining units.

    The average time per completed unit is truncated to the clock's resolution
    and multiplied by the number of units left. A finished task gives zero.
    Invalid input (a non-positive total, count or elapsed time) gives seven days.
    """
    if total <= 0 or completed <= 0 or elapsed <= timedelta(0):
        return FALLBACK_ETA

    if completed >= total:
        return timedelta(0)

    remaining = total - completed
    average_per_unit = elapsed // completed
    return average_per_unit * remaining