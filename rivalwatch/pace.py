"""Recency-weighted lap pace."""

from typing import Optional

from rivalwatch.models import CarState


def weighted_pace(car: CarState, window_size: int, decay_factor: float = 0.7) -> Optional[float]:
    """
    Weighted average of a car's most recent lap times.

    The newest lap in the window has weight 1, each older lap is scaled by
    another factor of decay_factor.

    Args:
        car: Car whose lap history is used
        window_size: Number of most recent laps to consider
        decay_factor: Weight multiplier per lap of age

    Returns:
        Pace in seconds per lap, or None if there is no lap history
    """
    laps = car.recent_laps(window_size)
    if not laps:
        return None

    count = len(laps)
    weights = [decay_factor ** (count - 1 - i) for i in range(count)]
    total_weight = sum(weights)
    if total_weight == 0:
        return None

    weighted_sum = sum(lap.lap_time * weight for lap, weight in zip(laps, weights))
    return weighted_sum / total_weight
