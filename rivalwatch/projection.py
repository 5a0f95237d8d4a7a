"""
Catch-up projection between the subject and one rival.

Gaps are measured in fractions of a lap from lap counters and lap distance,
then converted to seconds with the average pace of the two cars.
"""

from typing import Optional

from rivalwatch.models import CarSnapshot, CarState, RivalProjection
from rivalwatch.pace import weighted_pace

MIN_PACE_DIFFERENCE = 0.001  # s/lap, below this the cars are considered equal pace


def distance_delta(subject: CarState, rival: CarState, is_ahead: bool) -> float:
    """
    Track distance between two cars as a fraction of a lap.

    A car just across the start/finish line has a higher lap counter and a
    small lap fraction, so the raw difference can land on the wrong side by
    almost a whole lap. Anything past half a lap the wrong way is wrapped back.
    """
    lap_diff = rival.current_lap - subject.current_lap
    pos_diff = rival.lap_fraction - subject.lap_fraction
    total = lap_diff + pos_diff

    if is_ahead:
        if total < -0.5:
            total += 1.0
    else:
        if total > 0.5:
            total -= 1.0

    return abs(total)


def laps_to_catch(time_delta: float, pace_advantage: float, is_ahead: bool) -> Optional[float]:
    """Laps until the gap closes, or None if the gap is not closing."""
    if abs(pace_advantage) < MIN_PACE_DIFFERENCE:
        return None

    if is_ahead:
        if pace_advantage <= 0:
            return None
        laps = time_delta / pace_advantage
    else:
        if pace_advantage >= 0:
            return None
        laps = time_delta / abs(pace_advantage)

    return laps if laps > 0 else None


def project(
    subject: CarState,
    rival: CarState,
    is_ahead: bool,
    window_size: int = 5,
    decay_factor: float = 0.7,
    subject_snapshot: Optional[CarSnapshot] = None,
) -> RivalProjection:
    """
    Build the projection for one rival.

    If either car has no lap history yet, only the identities are filled in.
    subject_snapshot lets a caller reuse one subject snapshot across rivals.
    """
    subject_pace = weighted_pace(subject, window_size, decay_factor)
    rival_pace = weighted_pace(rival, window_size, decay_factor)

    if subject_snapshot is None:
        subject_snapshot = subject.snapshot(subject_pace)
    rival_snapshot = rival.snapshot(rival_pace)

    if subject_pace is None or rival_pace is None:
        return RivalProjection(subject=subject_snapshot, rival=rival_snapshot, is_ahead=is_ahead)

    pace_advantage = rival_pace - subject_pace
    distance = distance_delta(subject, rival, is_ahead)
    time_delta = distance * ((subject_pace + rival_pace) / 2.0)

    return RivalProjection(
        subject=subject_snapshot,
        rival=rival_snapshot,
        is_ahead=is_ahead,
        pace_advantage=pace_advantage,
        distance_delta=distance,
        time_delta=time_delta,
        laps_to_catch=laps_to_catch(time_delta, pace_advantage, is_ahead),
    )
