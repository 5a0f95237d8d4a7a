"""
Per-car state for the connected session.

Detects lap completions by watching each car's lap counter and keeps a
bounded lap history per car.
"""

import logging
from typing import Dict, Iterator, List, Optional

from rivalwatch.models import MAX_CARS, UNKNOWN_DRIVER, CarSample, CarState, TelemetrySnapshot

logger = logging.getLogger(__name__)


class CarStateStore:
    """
    Owns every CarState for the session, keyed by car index.

    Cars that drop off the leaderboard (position <= 0, e.g. in the pits or not
    started) keep their last known state until they come back.
    """

    def __init__(self):
        self._cars: Dict[int, CarState] = {}
        self._last_lap_seen: Dict[int, int] = {}  # car_idx -> last observed lap counter
        self.subject_car_id: Optional[int] = None

    def __len__(self) -> int:
        return len(self._cars)

    def __contains__(self, car_id: int) -> bool:
        return car_id in self._cars

    def __iter__(self) -> Iterator[CarState]:
        return iter(self.cars())

    def reset(self):
        """Forget every car (disconnect or new session)."""
        self._cars.clear()
        self._last_lap_seen.clear()
        self.subject_car_id = None
        logger.debug("🔄 CarStateStore reset")

    def get(self, car_id: int) -> Optional[CarState]:
        return self._cars.get(car_id)

    def subject(self) -> Optional[CarState]:
        if self.subject_car_id is None:
            return None
        return self._cars.get(self.subject_car_id)

    def cars(self) -> List[CarState]:
        """All known cars ordered by car index."""
        return [self._cars[car_id] for car_id in sorted(self._cars)]

    def classified_count(self) -> int:
        return sum(1 for car in self._cars.values() if car.is_classified)

    def ingest(self, snapshot: TelemetrySnapshot):
        """Apply one telemetry snapshot to the stored cars."""
        if snapshot.subject_car_id is not None:
            if self.subject_car_id is None:
                # Player seen before its index was reported
                car = self._cars.get(snapshot.subject_car_id)
                if car is not None:
                    car.is_subject = True
            self.subject_car_id = snapshot.subject_car_id
        session_time = snapshot.session_time if snapshot.session_time is not None else 0.0

        for car_id, sample in snapshot.cars.items():
            if not 0 <= car_id < MAX_CARS:
                logger.debug(f"Ignoring car index {car_id} (outside 0-{MAX_CARS - 1})")
                continue
            if sample is None or sample.position is None or sample.position <= 0:
                continue
            self._update_car(car_id, sample, session_time)

    def _update_car(self, car_id: int, sample: CarSample, session_time: float):
        car = self._cars.get(car_id)
        if car is None:
            car = CarState(
                car_id=car_id,
                name=sample.name or UNKNOWN_DRIVER,
                class_id=sample.class_id if sample.class_id is not None else 0,
                is_subject=car_id == self.subject_car_id,
            )
            self._cars[car_id] = car
            logger.debug(f"🏎️ Tracking car {car_id} ({car.name}, class {car.class_id})")
        elif car.name == UNKNOWN_DRIVER and sample.name:
            car.name = sample.name

        if sample.class_position is not None:
            car.position_in_class = sample.class_position
        if sample.lap_fraction is not None:
            car.lap_fraction = sample.lap_fraction

        if sample.lap is None:
            return

        previous_lap = self._last_lap_seen.get(car_id)
        if previous_lap is not None and sample.lap > previous_lap:
            lap_time = sample.last_lap_time
            if lap_time is not None and lap_time > 0:
                car.add_lap(sample.lap - 1, lap_time, session_time)
                logger.debug(f"⏱️ Car {car_id} lap {sample.lap - 1}: {lap_time:.3f}s")
            else:
                logger.debug(f"Car {car_id} completed lap {sample.lap - 1} without a valid time")

        self._last_lap_seen[car_id] = sample.lap
        car.current_lap = sample.lap
