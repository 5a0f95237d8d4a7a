"""
Text rows for an overlay or console view of a RaceUpdate.

Trend is 'faster' when the player is quicker than the rival, 'slower' when
the rival is quicker and 'neutral' when the difference is negligible.
"""

from dataclasses import dataclass
from typing import List, Optional

from rivalwatch.models import CarSnapshot, RaceUpdate, RivalProjection
from rivalwatch.projection import MIN_PACE_DIFFERENCE

STATUS_WAITING = "Waiting for iRacing..."
STATUS_INACTIVE = "Not in race session"
STATUS_NO_PLAYER = "No player data"
STATUS_ACTIVE = "Race Active"
PLAYER_WAITING = "Waiting for race..."


@dataclass(frozen=True)
class RivalRow:
    name_text: str
    catch_text: str
    details_text: str
    trend: str


@dataclass(frozen=True)
class RaceView:
    status_text: str
    player_text: str
    ahead: List[RivalRow]
    behind: List[RivalRow]


def format_player(player: CarSnapshot) -> str:
    if player.pace is not None:
        return f"YOU - P{player.position_in_class} | Pace: {player.pace:.2f}s"
    return f"YOU - P{player.position_in_class}"


def format_catch(projection: RivalProjection, precision: int = 2) -> str:
    laps = projection.laps_to_catch
    if laps is not None and laps > 0:
        label = "Catch in" if projection.is_ahead else "Catches in"
        return f"{label}: {laps:.{precision}f} laps"
    if not projection.has_pace:
        return "N/A"
    if projection.is_ahead:
        return "Won't catch" if projection.pace_advantage <= 0 else "N/A"
    return "Won't catch" if projection.pace_advantage >= 0 else "N/A"


def format_pace_advantage(pace_advantage: float) -> str:
    text = f"{abs(pace_advantage):.3f}s/lap"
    if pace_advantage > 0:
        return f"+{text}"
    if pace_advantage < 0:
        return f"-{text}"
    return "±0.000s/lap"


def trend(projection: RivalProjection) -> str:
    if abs(projection.pace_advantage) < MIN_PACE_DIFFERENCE:
        return 'neutral'
    return 'faster' if projection.pace_advantage > 0 else 'slower'


def format_rival(projection: RivalProjection, precision: int = 2) -> RivalRow:
    rival = projection.rival
    gap = f"Gap: {projection.time_delta:.2f}s" if projection.time_delta is not None else "Gap: --"
    return RivalRow(
        name_text=f"P{rival.position_in_class} - {rival.name}",
        catch_text=format_catch(projection, precision),
        details_text=f"{format_pace_advantage(projection.pace_advantage)} | {gap}",
        trend=trend(projection),
    )


def build_view(update: Optional[RaceUpdate], precision: int = 2) -> RaceView:
    """Turn a RaceUpdate into display text. None means no sim connection."""
    if update is None:
        return RaceView(STATUS_WAITING, PLAYER_WAITING, [], [])
    if not update.is_race_active:
        return RaceView(STATUS_INACTIVE, PLAYER_WAITING, [], [])
    if update.subject is None:
        return RaceView(STATUS_NO_PLAYER, PLAYER_WAITING, [], [])
    return RaceView(
        status_text=STATUS_ACTIVE,
        player_text=format_player(update.subject),
        ahead=[format_rival(p, precision) for p in update.rivals_ahead],
        behind=[format_rival(p, precision) for p in update.rivals_behind],
    )


def render_text(view: RaceView) -> str:
    """Plain multi-line rendering, used for console logging."""
    lines = [view.status_text, view.player_text]
    for label, rows in (("AHEAD", view.ahead), ("BEHIND", view.behind)):
        if rows:
            lines.append(f"-- {label} --")
        for row in rows:
            lines.append(f"{row.name_text} | {row.catch_text} | {row.details_text}")
    return "\n".join(lines)
