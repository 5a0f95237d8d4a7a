"""
Settings for the rival tracker.

Defaults live in module constants. An optional JSON file may override them,
using either snake_case keys or the PascalCase names of the original overlay
settings file (LapsToConsider, WeightDecayFactor, ...). Values are checked
strictly: a float where an int is expected, a bool or a null is rejected
rather than coerced.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# ============================================================================
# CONSTANTS
# ============================================================================

DEFAULT_LAPS_TO_CONSIDER = 5
DEFAULT_WEIGHT_DECAY = 0.7
DEFAULT_OPPONENTS_AHEAD = 3
DEFAULT_OPPONENTS_BEHIND = 3
DEFAULT_LAPS_PRECISION = 2
DEFAULT_UPDATE_INTERVAL_MS = 100   # 10Hz tick
WEBSOCKET_HOST = "0.0.0.0"
WEBSOCKET_PORT = 8767
RECONNECT_DELAY = 5.0              # Seconds to wait before reconnecting to iRacing


class SettingsError(ValueError):
    """Raised when a settings value is out of range or of the wrong type."""


class Settings(BaseModel):
    """Tracker settings. Aliases are the keys of the original appsettings.json."""

    model_config = ConfigDict(strict=True, populate_by_name=True, extra='ignore', frozen=True)

    laps_to_consider: int = Field(default=DEFAULT_LAPS_TO_CONSIDER, ge=1, alias='LapsToConsider')
    weight_decay_factor: float = Field(default=DEFAULT_WEIGHT_DECAY, gt=0.0, le=1.0, alias='WeightDecayFactor')
    num_opponents_ahead: int = Field(default=DEFAULT_OPPONENTS_AHEAD, ge=0, alias='NumOpponentsAhead')
    num_opponents_behind: int = Field(default=DEFAULT_OPPONENTS_BEHIND, ge=0, alias='NumOpponentsBehind')
    laps_precision: int = Field(default=DEFAULT_LAPS_PRECISION, ge=0, alias='LapsPrecision')
    update_interval_ms: int = Field(default=DEFAULT_UPDATE_INTERVAL_MS, gt=0, alias='UpdateIntervalMs')
    websocket_host: str = Field(default=WEBSOCKET_HOST, min_length=1, alias='WebSocketHost')
    websocket_port: int = Field(default=WEBSOCKET_PORT, gt=0, lt=65536, alias='WebSocketPort')

    @property
    def update_interval(self) -> float:
        """Tick period in seconds."""
        return self.update_interval_ms / 1000.0

    def replace(self, **overrides: Any) -> 'Settings':
        """Validated copy with the non-None overrides applied."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return settings_from_dict(values)


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )


def settings_from_dict(data: Dict[str, Any]) -> Settings:
    """Build validated Settings from a parsed JSON object."""
    known = set()
    for name, info in Settings.model_fields.items():
        known.add(name)
        known.add(info.alias)
    for key in data:
        if key not in known:
            logger.warning(f"⚠️ Unknown setting ignored: {key}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {_describe(e)}") from e


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a JSON file.

    The file may hold the values at top level or under an "AppSettings"
    section. A missing path gives the defaults.
    """
    if not path:
        return Settings()
    if not os.path.exists(path):
        logger.warning(f"⚠️ Settings file not found: {path} - using defaults")
        return Settings()

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SettingsError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")

    section = data.get('AppSettings', data)
    if not isinstance(section, dict):
        raise SettingsError(f"AppSettings in {path} must be a JSON object")

    settings = settings_from_dict(section)
    logger.info(f"📋 Settings loaded from {path}")
    return settings
