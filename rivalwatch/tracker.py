"""
One tick of the rival tracker: ingest, gate, select, project.

RaceTracker holds the only state that lives across ticks (the CarStateStore).
tick() is synchronous and returns a frozen RaceUpdate, so the caller decides
how to deliver it.
"""

import logging
from typing import Optional

from rivalwatch.car_store import CarStateStore
from rivalwatch.config import Settings
from rivalwatch.models import RaceUpdate, TelemetrySnapshot
from rivalwatch.pace import weighted_pace
from rivalwatch.projection import project
from rivalwatch.rivals import select_rivals
from rivalwatch.session_gate import is_race_active

logger = logging.getLogger(__name__)


class RaceTracker:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.store = CarStateStore()
        self.race_active = False
        self.session_num: Optional[int] = None

    def reset(self):
        """Drop all car state (disconnect or session change)."""
        self.store.reset()
        self.race_active = False
        self.session_num = None
        logger.info("🔄 Rival tracker reset")

    def tick(self, snapshot: Optional[TelemetrySnapshot]) -> Optional[RaceUpdate]:
        """
        Process one snapshot.

        Returns:
            RaceUpdate for this tick, or None when no snapshot was available
            (the stored state is left unchanged)
        """
        if snapshot is None:
            return None

        if snapshot.session_num is not None:
            if self.session_num is not None and snapshot.session_num != self.session_num:
                logger.info(f"🏁 Session changed: {self.session_num} -> {snapshot.session_num}")
                self.reset()
            self.session_num = snapshot.session_num

        self.store.ingest(snapshot)

        active = is_race_active(snapshot.session_type, self.store.classified_count())
        if active != self.race_active:
            logger.info(f"🏁 Race active: {active} (session: {snapshot.session_type})")
            self.race_active = active

        if not active:
            return RaceUpdate(is_race_active=False, session_time=snapshot.session_time)

        subject = self.store.subject()
        if subject is None:
            logger.debug("Race active but player car not tracked yet")
            return RaceUpdate(is_race_active=True, session_time=snapshot.session_time)

        settings = self.settings
        window = settings.laps_to_consider
        decay = settings.weight_decay_factor

        subject_snapshot = subject.snapshot(weighted_pace(subject, window, decay))
        ahead, behind = select_rivals(
            subject,
            self.store.cars(),
            settings.num_opponents_ahead,
            settings.num_opponents_behind,
        )

        return RaceUpdate(
            is_race_active=True,
            subject=subject_snapshot,
            rivals_ahead=tuple(
                project(subject, car, True, window, decay, subject_snapshot) for car in ahead
            ),
            rivals_behind=tuple(
                project(subject, car, False, window, decay, subject_snapshot) for car in behind
            ),
            session_time=snapshot.session_time,
        )
