"""Round and rest clock shared by both match modes."""

from __future__ import annotations

import enum
import logging
from typing import Optional

from simulation.config import STANDARD_RULES, MatchRules

logger = logging.getLogger(__name__)


class SchedulerPhase(str, enum.Enum):
    IDLE = "Idle"
    ROUND_ACTIVE = "RoundActive"
    RESTING = "Resting"
    ENDED = "Ended"


class ScheduleListener:
    """Callbacks the scheduler drives. The owning match implements these."""

    def round_started(self, round_number: int) -> None:
        pass

    def round_ended(self, round_number: int) -> None:
        pass

    def fight_ended(self) -> None:
        pass


class RoundScheduler:
    """Round / rest state machine advanced by ``tick(dt)``.

    Time left over after a phase boundary carries into the next phase, so a
    single large tick behaves like many small ones.
    """

    def __init__(self, listener: Optional[ScheduleListener] = None, rules: MatchRules = STANDARD_RULES):
        self.listener = listener or ScheduleListener()
        self.rules = rules
        self.phase = SchedulerPhase.IDLE
        self.current_round = 0
        self.round_timer = 0.0
        self.rest_timer = 0.0
        self._fight_end_fired = False

    @property
    def is_round_active(self) -> bool:
        return self.phase == SchedulerPhase.ROUND_ACTIVE

    @property
    def is_resting(self) -> bool:
        return self.phase == SchedulerPhase.RESTING

    @property
    def has_ended(self) -> bool:
        return self.phase == SchedulerPhase.ENDED

    def start_fight(self) -> None:
        if self.phase != SchedulerPhase.IDLE:
            logger.info("start_fight ignored, scheduler already %s", self.phase.value)
            return
        self.current_round = 1
        self._start_round()

    def tick(self, dt: float) -> None:
        remaining = max(0.0, dt)
        while remaining > 0 and self.phase in (SchedulerPhase.ROUND_ACTIVE, SchedulerPhase.RESTING):
            if self.phase == SchedulerPhase.ROUND_ACTIVE:
                step = min(remaining, self.rules.round_duration - self.round_timer)
                self.round_timer += step
                remaining -= step
                if self.round_timer >= self.rules.round_duration:
                    self.end_round()
            else:
                step = min(remaining, self.rules.rest_duration - self.rest_timer)
                self.rest_timer += step
                remaining -= step
                if self.rest_timer >= self.rules.rest_duration:
                    self.start_next_round()

    def end_round(self) -> None:
        if self.phase != SchedulerPhase.ROUND_ACTIVE:
            return
        self.phase = SchedulerPhase.RESTING
        self.rest_timer = 0.0
        self.listener.round_ended(self.current_round)
        if self.current_round >= self.rules.max_rounds:
            self.end_fight()

    def start_next_round(self) -> None:
        if self.phase != SchedulerPhase.RESTING:
            return
        self.current_round += 1
        self._start_round()

    def end_fight(self) -> None:
        """Force the terminal phase. Only the first call notifies the listener."""
        self.phase = SchedulerPhase.ENDED
        if self._fight_end_fired:
            logger.debug("end_fight re-entered after round %d", self.current_round)
            return
        self._fight_end_fired = True
        self.listener.fight_ended()

    def time_display(self) -> str:
        if self.phase == SchedulerPhase.RESTING:
            return "REST"
        minutes, seconds = divmod(int(self.round_timer), 60)
        return f"Round {self.current_round}: {minutes:02d}:{seconds:02d}"

    def _start_round(self) -> None:
        self.phase = SchedulerPhase.ROUND_ACTIVE
        self.round_timer = 0.0
        self.listener.round_started(self.current_round)
