"""
iRacing snapshot source.

Reads the per-car arrays from the iRacing SDK (pyirsdk) and turns them into a
TelemetrySnapshot. Every SDK read is guarded: a missing or broken value becomes
None instead of an exception, and the tracker treats None as "no update".
"""

import logging
from typing import Any, Dict, List, Optional

import irsdk

from rivalwatch.models import MAX_CARS, CarSample, TelemetrySnapshot

logger = logging.getLogger(__name__)


class IRacingSnapshotSource:
    """Connection to iRacing that yields one TelemetrySnapshot per call."""

    def __init__(self, ir: Optional[Any] = None):
        self.ir = ir if ir is not None else irsdk.IRSDK()
        self.connected = False

    @property
    def is_connected(self) -> bool:
        return self.connected and bool(self.ir.is_initialized and self.ir.is_connected)

    def connect(self) -> bool:
        """Start the SDK. Returns True once iRacing is reachable."""
        try:
            self.connected = bool(self.ir.startup())
        except Exception as e:
            logger.debug(f"iRacing startup failed: {e}")
            self.connected = False
        if self.connected:
            logger.info("✅ Connected to iRacing")
        return self.connected

    def disconnect(self):
        self.ir.shutdown()
        self.connected = False
        logger.info("❌ Disconnected from iRacing")

    # =========================================================================
    # SDK READ HELPERS
    # =========================================================================

    def _var(self, name: str, default: Any = None) -> Any:
        """Telemetry variable, or default when the SDK does not report it."""
        try:
            value = self.ir[name]
        except (KeyError, AttributeError, TypeError):
            return default
        return default if value is None else value

    def _section(self, name: str) -> Dict[str, Any]:
        """Top-level YAML section of the session string, empty if missing."""
        section = self._var(name)
        return section if isinstance(section, dict) else {}

    def _session_type(self, session_num: Optional[int]) -> Optional[str]:
        sessions = self._section('SessionInfo').get('Sessions')
        if session_num is None or not isinstance(sessions, list):
            return None
        if not 0 <= session_num < len(sessions):
            return None
        session = sessions[session_num]
        session_type = session.get('SessionType') if isinstance(session, dict) else None
        return session_type if isinstance(session_type, str) else None

    def _subject_car_id(self) -> Optional[int]:
        car_idx = self._section('DriverInfo').get('DriverCarIdx')
        return car_idx if car_idx is not None else self._var('PlayerCarIdx')

    def _drivers(self) -> Dict[int, Dict[str, Any]]:
        """Competing drivers by car index (spectators and the pace car excluded)."""
        return {
            driver['CarIdx']: driver
            for driver in self._section('DriverInfo').get('Drivers') or []
            if driver.get('CarIdx') is not None
            and not driver.get('CarIsPaceCar')
            and not driver.get('IsSpectator')
        }

    @staticmethod
    def _at(values: List[Any], idx: int) -> Any:
        return values[idx] if idx < len(values) else None

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def next_snapshot(self) -> Optional[TelemetrySnapshot]:
        """Read the latest telemetry, or None if iRacing is not available."""
        if not self.is_connected:
            return None

        try:
            self.ir.freeze_var_buffer_latest()
            return self._read_snapshot()
        except Exception as e:
            logger.debug(f"Error reading snapshot: {e}")
            return None
        finally:
            self.ir.unfreeze_var_buffer_latest()

    def _read_snapshot(self) -> TelemetrySnapshot:
        positions = self._var('CarIdxPosition', [])
        class_positions = self._var('CarIdxClassPosition', [])
        laps = self._var('CarIdxLap', [])
        last_lap_times = self._var('CarIdxLastLapTime', [])
        lap_dist_pcts = self._var('CarIdxLapDistPct', [])

        cars: Dict[int, CarSample] = {}
        for car_idx, driver in self._drivers().items():
            if not 0 <= car_idx < MAX_CARS:
                continue
            lap_fraction = self._at(lap_dist_pcts, car_idx)
            # -1 = not in world
            if lap_fraction is not None and not 0 <= lap_fraction < 1:
                lap_fraction = None
            cars[car_idx] = CarSample(
                position=self._at(positions, car_idx),
                class_position=self._at(class_positions, car_idx),
                class_id=driver.get('CarClassID'),
                lap=self._at(laps, car_idx),
                last_lap_time=self._at(last_lap_times, car_idx),
                lap_fraction=lap_fraction,
                name=driver.get('UserName'),
            )

        session_num = self._var('SessionNum')
        return TelemetrySnapshot(
            subject_car_id=self._subject_car_id(),
            session_num=session_num,
            session_time=self._var('SessionTime'),
            session_type=self._session_type(session_num),
            cars=cars,
        )
