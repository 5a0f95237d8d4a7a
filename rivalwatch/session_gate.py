"""Decide whether the current session is a race worth reporting."""

from typing import Optional

MIN_RACE_CARS = 2


def is_race_active(session_type: Optional[str], classified_count: int) -> bool:
    """
    True for a race session with at least two classified cars.

    Practice, qualifying and warmup sessions are never active. An unresolved
    session type (None) counts as not active.
    """
    if not session_type or 'Race' not in session_type:
        return False
    return classified_count >= MIN_RACE_CARS
