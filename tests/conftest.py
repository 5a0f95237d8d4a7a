"""
Pytest configuration and shared fixtures for rivalwatch tests.
"""
import pytest

from rivalwatch.models import CarSample, CarState, TelemetrySnapshot


# =============================================================================
# Car Fixtures
# =============================================================================

@pytest.fixture
def make_car():
    """
    Factory for CarState objects with an optional list of lap times.

    Returns:
        callable(car_id, position, lap_times=(), **fields) -> CarState
    """
    def _make(car_id, position, lap_times=(), class_id=1, lap=10, fraction=0.5, **fields):
        car = CarState(
            car_id=car_id,
            name=fields.pop('name', f"Driver {car_id}"),
            class_id=class_id,
            position_in_class=position,
            current_lap=lap,
            lap_fraction=fraction,
            **fields,
        )
        for i, lap_time in enumerate(lap_times):
            car.add_lap(i + 1, lap_time, 100.0 * (i + 1))
        return car
    return _make


# =============================================================================
# Snapshot Fixtures
# =============================================================================

@pytest.fixture
def make_snapshot():
    """
    Factory for TelemetrySnapshot objects.

    Cars are given as {car_id: dict of CarSample fields}; `position`
    defaults to the class position so tests only need to set one.
    """
    def _make(cars, subject=0, session_type="Race", session_time=0.0, session_num=None):
        samples = {}
        for car_id, values in cars.items():
            values = dict(values)
            values.setdefault('position', values.get('class_position'))
            values.setdefault('class_id', 1)
            samples[car_id] = CarSample(**values)
        return TelemetrySnapshot(
            subject_car_id=subject,
            session_num=session_num,
            session_time=session_time,
            session_type=session_type,
            cars=samples,
        )
    return _make


@pytest.fixture
def three_car_grid():
    """
    Three cars of class 1 on lap 5: car 0 (player) P2, car 1 P1, car 2 P3.

    Returns:
        dict: car_id -> CarSample fields
    """
    return {
        0: {'class_position': 2, 'lap': 5, 'lap_fraction': 0.40, 'last_lap_time': 0.0, 'name': 'Player'},
        1: {'class_position': 1, 'lap': 5, 'lap_fraction': 0.45, 'last_lap_time': 0.0, 'name': 'Leader'},
        2: {'class_position': 3, 'lap': 5, 'lap_fraction': 0.35, 'last_lap_time': 0.0, 'name': 'Chaser'},
    }
