"""
Competitor profiles: the attribute snapshot a match is fought with.

Attributes are clamped to 0–100 on the way in. The derived combat constants
(max HP, decision cadence, move speed) are computed from them, never stored.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional

from simulation.config import (
    ATTRIBUTE_MAX, ATTRIBUTE_MIN,
    DECISION_INTERVAL_RANGE, MAX_HP_RANGE, MOVE_SPEED_RANGE,
)
from simulation.state import Strategy


ATTRIBUTES = (
    "strength", "technique", "speed", "stamina",
    "defense", "wrestling", "grappling",
)
_CLAMPED = frozenset(ATTRIBUTES + ("potential",))


class FightingStyle(str, enum.Enum):
    STRIKER = "Striker"
    GRAPPLER = "Grappler"
    WRESTLER = "Wrestler"
    BALANCED = "Balanced"
    COUNTER_FIGHTER = "CounterFighter"
    PRESSURE_FIGHTER = "PressureFighter"


# Corner strategy a competitor falls back to when none is assigned
STYLE_STRATEGIES: dict[FightingStyle, Strategy] = {
    FightingStyle.STRIKER: Strategy.BALANCED,
    FightingStyle.GRAPPLER: Strategy.TAKEDOWN,
    FightingStyle.WRESTLER: Strategy.TAKEDOWN,
    FightingStyle.BALANCED: Strategy.BALANCED,
    FightingStyle.COUNTER_FIGHTER: Strategy.DEFENSIVE,
    FightingStyle.PRESSURE_FIGHTER: Strategy.AGGRESSIVE,
}


def clamp_attribute(value) -> int:
    return max(ATTRIBUTE_MIN, min(ATTRIBUTE_MAX, int(round(value))))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class FightRecord:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    ko_wins: int = 0
    submission_wins: int = 0
    decision_wins: int = 0
    popularity: int = 20

    @property
    def total_fights(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def finish_rate(self) -> float:
        if self.wins == 0:
            return 0.0
        return (self.ko_wins + self.submission_wins) / self.wins

    def add_win(self, knockout: bool = False, submission: bool = False, decision: bool = False) -> None:
        self.wins += 1
        if knockout:
            self.ko_wins += 1
        elif submission:
            self.submission_wins += 1
        elif decision:
            self.decision_wins += 1
        self.popularity = min(100, self.popularity + 5)

    def add_loss(self) -> None:
        self.losses += 1
        self.popularity = max(0, self.popularity - 3)

    def add_draw(self) -> None:
        self.draws += 1

    def __str__(self) -> str:
        return f"{self.wins}-{self.losses}-{self.draws}"


@dataclass
class CompetitorProfile:
    """A fighter's attributes and record. Attributes stay fixed during a match."""
    first_name: str
    last_name: str = ""
    strength: int = 50
    technique: int = 50
    speed: int = 50
    stamina: int = 50
    defense: int = 50
    wrestling: int = 50
    grappling: int = 50
    potential: int = 70
    nickname: Optional[str] = None
    style: FightingStyle = FightingStyle.BALANCED
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    record: FightRecord = field(default_factory=FightRecord)

    def __post_init__(self) -> None:
        self.style = FightingStyle(self.style)

    def __setattr__(self, name: str, value) -> None:
        # every write goes through here, including the generated __init__
        if name in _CLAMPED:
            value = clamp_attribute(value)
        object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        if self.nickname:
            return f'{self.nickname} "{self.full_name}"'
        return self.full_name

    # ------------------------------------------------------------------
    # Derived combat constants
    # ------------------------------------------------------------------

    @property
    def max_hp(self) -> int:
        low, high = MAX_HP_RANGE
        return int(_clamp(80 + self.strength // 3 + self.stamina // 4, low, high))

    @property
    def base_decision_interval(self) -> float:
        return _clamp(3.0 - self.speed / 40.0, *DECISION_INTERVAL_RANGE)

    @property
    def base_move_speed(self) -> float:
        return _clamp(1.5 + self.speed / 50.0, *MOVE_SPEED_RANGE)

    @property
    def overall(self) -> int:
        return sum(getattr(self, attr) for attr in ATTRIBUTES) // len(ATTRIBUTES)

    @property
    def defense_composite(self) -> float:
        return (self.defense + self.wrestling + self.grappling) / 3.0

    # ------------------------------------------------------------------
    # Mutation and copies
    # ------------------------------------------------------------------

    def set_attribute(self, name: str, value) -> None:
        if name not in _CLAMPED:
            raise AttributeError(f"unknown attribute {name!r}")
        setattr(self, name, value)

    def default_strategy(self) -> Strategy:
        return STYLE_STRATEGIES.get(self.style, Strategy.BALANCED)

    def snapshot(self) -> "CompetitorProfile":
        """Attribute copy owned by a single match; the record is not shared."""
        return replace(self, record=FightRecord())

    def __repr__(self) -> str:
        return f"<CompetitorProfile {self.full_name} OVR {self.overall} ({self.record})>"
