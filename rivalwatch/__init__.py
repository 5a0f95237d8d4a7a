"""iRacing rival tracker: same-class gaps, pace and catch-up projections."""

from rivalwatch.car_store import CarStateStore
from rivalwatch.config import Settings, SettingsError, load_settings
from rivalwatch.models import (
    CarSample,
    CarSnapshot,
    CarState,
    LapRecord,
    RaceUpdate,
    RivalProjection,
    TelemetrySnapshot,
)
from rivalwatch.pace import weighted_pace
from rivalwatch.projection import distance_delta, project
from rivalwatch.rivals import select_rivals
from rivalwatch.session_gate import is_race_active
from rivalwatch.tracker import RaceTracker

__version__ = "0.2.0"
