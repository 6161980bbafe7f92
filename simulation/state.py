"""Per-match mutable combat state and the enums that describe it."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from simulation.config import HP_PENALTY_TIERS


class Strategy(str, enum.Enum):
    BALANCED = "Balanced"
    AGGRESSIVE = "Aggressive"
    DEFENSIVE = "Defensive"
    BODY_WORK = "BodyWork"
    TAKEDOWN = "Takedown"
    FINISH = "Finish"


class PositionPhase(str, enum.Enum):
    STANDING = "Standing"
    CLINCH = "Clinch"
    GROUNDED_TOP = "Grounded-Top"
    GROUNDED_BOTTOM = "Grounded-Bottom"


class CombatState(str, enum.Enum):
    IDLE = "Idle"
    APPROACHING = "Approaching"
    ATTACKING = "Attacking"
    DEFENDING = "Defending"
    HIT = "Hit"
    KO = "KO"


class GroundPosition(enum.IntEnum):
    """Dominance ladder for the top fighter; higher is closer to a finish."""
    GUARD = 0
    MOUNT = 1
    BACK = 2


@dataclass
class MatchCombatState:
    """Everything about a competitor that changes while a match runs."""
    fighter_id: str
    max_hp: int
    current_hp: int
    stamina: float
    strategy: Strategy = Strategy.BALANCED
    fatigue: float = 0.0
    position: PositionPhase = PositionPhase.STANDING
    ground_position: GroundPosition = GroundPosition.GUARD
    state: CombatState = CombatState.IDLE
    knockdowns: int = 0
    fouls: int = 0

    @classmethod
    def for_profile(cls, profile, strategy: Optional[Strategy] = None) -> "MatchCombatState":
        return cls(
            fighter_id=profile.id,
            max_hp=profile.max_hp,
            current_hp=profile.max_hp,
            stamina=float(profile.stamina),
            strategy=strategy or profile.default_strategy(),
        )

    @property
    def hp_ratio(self) -> float:
        # max_hp is floored at 80 by the profile, the guard covers hand-built states
        return self.current_hp / max(1, self.max_hp)

    @property
    def is_knocked_out(self) -> bool:
        return self.current_hp <= 0

    @property
    def is_grounded(self) -> bool:
        return self.position in (PositionPhase.GROUNDED_TOP, PositionPhase.GROUNDED_BOTTOM)

    def take_damage(self, amount: int) -> int:
        """Subtract damage, clamping HP at zero. Returns the HP actually lost."""
        amount = max(0, int(amount))
        lost = min(amount, self.current_hp)
        self.current_hp -= lost
        return lost

    def drain_stamina(self, amount: float) -> None:
        self.stamina = max(0.0, min(100.0, self.stamina - amount))

    def add_fatigue(self, amount: float) -> None:
        self.fatigue = max(0.0, min(100.0, self.fatigue + amount))

    def hp_penalties(self) -> tuple[float, float]:
        """(decision interval multiplier, move speed multiplier) at the current HP."""
        ratio = self.hp_ratio
        for floor, interval_mod, speed_mod in HP_PENALTY_TIERS:
            if ratio > floor:
                return interval_mod, speed_mod
        _, interval_mod, speed_mod = HP_PENALTY_TIERS[-1]
        return interval_mod, speed_mod

    def stand_up(self) -> None:
        self.position = PositionPhase.STANDING
        self.ground_position = GroundPosition.GUARD
