"""
Data structures shared by the rival tracker.

LapRecord, CarSnapshot, RivalProjection and RaceUpdate are frozen: they are
handed to consumers and must never change underneath them. CarState is the
only mutable record and is owned by the CarStateStore.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Tuple

MAX_LAP_HISTORY = 20     # Laps kept per car (oldest evicted first)
MAX_CARS = 64            # iRacing supports up to 64 car indices
UNKNOWN_DRIVER = "Unknown"


# ============================================================================
# INGEST INPUT
# ============================================================================

@dataclass
class CarSample:
    """One car's values from a telemetry snapshot. None means 'not reported this tick'."""
    position: Optional[int] = None          # overall classified position, <= 0 = not running
    class_position: Optional[int] = None
    class_id: Optional[int] = None
    lap: Optional[int] = None
    last_lap_time: Optional[float] = None   # seconds, <= 0 = no valid lap
    lap_fraction: Optional[float] = None    # 0.0 - 1.0
    name: Optional[str] = None


@dataclass
class TelemetrySnapshot:
    """Everything the tracker needs from one tick of the simulator."""
    subject_car_id: Optional[int] = None
    session_num: Optional[int] = None      # index into SessionInfo.Sessions
    session_time: Optional[float] = None
    session_type: Optional[str] = None
    cars: Dict[int, CarSample] = field(default_factory=dict)


# ============================================================================
# CAR STATE
# ============================================================================

@dataclass(frozen=True)
class LapRecord:
    """A completed lap."""
    lap_number: int
    lap_time: float         # seconds
    session_time: float     # session clock when the lap was recorded


@dataclass(frozen=True)
class CarSnapshot:
    """Read-only copy of a car's state at the moment a result was built."""
    car_id: int
    name: str
    class_id: int
    position_in_class: int
    current_lap: int
    lap_fraction: float
    is_subject: bool
    last_lap_time: Optional[float] = None
    laps_recorded: int = 0
    pace: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'carIdx': self.car_id,
            'name': self.name,
            'classId': self.class_id,
            'classPosition': self.position_in_class,
            'lap': self.current_lap,
            'lapDistPct': round(self.lap_fraction, 4),
            'isPlayer': self.is_subject,
            'lastLapTime': self.last_lap_time,
            'lapsRecorded': self.laps_recorded,
            'pace': round(self.pace, 3) if self.pace is not None else None,
        }


@dataclass
class CarState:
    """Live record for one car, mutated every tick by the CarStateStore."""
    car_id: int
    name: str = UNKNOWN_DRIVER
    class_id: int = 0
    is_subject: bool = False
    position_in_class: int = 0
    current_lap: int = 0
    lap_fraction: float = 0.0
    last_lap_time: Optional[float] = None
    lap_history: Deque[LapRecord] = field(default_factory=lambda: deque(maxlen=MAX_LAP_HISTORY))

    @property
    def is_classified(self) -> bool:
        return self.position_in_class > 0

    def add_lap(self, lap_number: int, lap_time: float, session_time: float) -> bool:
        """
        Append a completed lap to the history.

        Laps without a positive duration are ignored. The deque drops the
        oldest entry once MAX_LAP_HISTORY is reached.

        Returns:
            True if the lap was recorded
        """
        if lap_time is None or lap_time <= 0:
            return False
        self.lap_history.append(LapRecord(lap_number, lap_time, session_time))
        self.last_lap_time = lap_time
        return True

    def recent_laps(self, n: int) -> List[LapRecord]:
        """Last n laps, oldest first."""
        if n <= 0:
            return []
        return list(self.lap_history)[-n:]

    def snapshot(self, pace: Optional[float] = None) -> CarSnapshot:
        return CarSnapshot(
            car_id=self.car_id,
            name=self.name,
            class_id=self.class_id,
            position_in_class=self.position_in_class,
            current_lap=self.current_lap,
            lap_fraction=self.lap_fraction,
            is_subject=self.is_subject,
            last_lap_time=self.last_lap_time,
            laps_recorded=len(self.lap_history),
            pace=pace,
        )


# ============================================================================
# RESULTS
# ============================================================================

def _round(value: Optional[float], digits: int) -> Optional[float]:
    return round(value, digits) if value is not None else None


@dataclass(frozen=True)
class RivalProjection:
    """Gap and catch-up estimate between the subject and one rival."""
    subject: CarSnapshot
    rival: CarSnapshot
    is_ahead: bool
    pace_advantage: float = 0.0             # rival pace - subject pace, positive = subject faster
    distance_delta: Optional[float] = None  # fraction of a lap
    time_delta: Optional[float] = None      # seconds
    laps_to_catch: Optional[float] = None

    @property
    def has_pace(self) -> bool:
        return self.distance_delta is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'driver': self.rival.to_dict(),
            'isAhead': self.is_ahead,
            'paceAdvantage': round(self.pace_advantage, 3),
            'distanceDelta': _round(self.distance_delta, 4),
            'timeDelta': _round(self.time_delta, 3),
            'lapsToCatch': _round(self.laps_to_catch, 3),
        }


@dataclass(frozen=True)
class RaceUpdate:
    """Result of one tick."""
    is_race_active: bool
    subject: Optional[CarSnapshot] = None
    rivals_ahead: Tuple[RivalProjection, ...] = ()
    rivals_behind: Tuple[RivalProjection, ...] = ()
    session_time: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isRaceActive': self.is_race_active,
            'player': self.subject.to_dict() if self.subject else None,
            'opponentsAhead': [p.to_dict() for p in self.rivals_ahead],
            'opponentsBehind': [p.to_dict() for p in self.rivals_behind],
            'sessionTime': self.session_time,
        }
