"""
Rule constants for the combat core.

Everything the live and fast-forward modes must agree on lives here so the two
schedulers stay statistically consistent.
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Bout structure
# ---------------------------------------------------------------------------

ROUND_DURATION_SECONDS = 300.0
REST_DURATION_SECONDS = 60.0
MAX_ROUNDS_STANDARD = 3


# ---------------------------------------------------------------------------
# Profile derivation
# ---------------------------------------------------------------------------

ATTRIBUTE_MIN = 0
ATTRIBUTE_MAX = 100

MAX_HP_RANGE = (80, 150)
DECISION_INTERVAL_RANGE = (0.6, 2.5)
MOVE_SPEED_RANGE = (1.5, 3.5)


# ---------------------------------------------------------------------------
# Health thresholds (ratio of current to max HP)
# ---------------------------------------------------------------------------

HP_HEALTHY = 0.6
HP_CRITICAL = 0.3

# (ratio floor, decision interval multiplier, move speed multiplier)
HP_PENALTY_TIERS = (
    (HP_HEALTHY, 1.0, 1.0),
    (HP_CRITICAL, 1.2, 0.85),
    (0.0, 1.4, 0.7),
)


# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------

DAMAGE_MIN = 2.0
DAMAGE_MAX = 20.0
DAMAGE_JITTER = (0.85, 1.15)
DURATION_BONUS_RANGE = (0.8, 1.3)
DURATION_REFERENCE = (0.7, 1.8)
BLOCK_DAMAGE_FACTOR = 0.25
HEAVY_HIT_THRESHOLD = 7


# ---------------------------------------------------------------------------
# Live mode distances and timings
# ---------------------------------------------------------------------------

ATTACK_RANGE = 1.8
CLOSE_RANGE = 2.5
FAR_RANGE = 4.5
CONTACT_TOLERANCE = 0.5
FIGHTER_SPACING = 3.5
MIN_DISTANCE = 0.8
MAX_DISTANCE = 8.0
BOB_AMPLITUDE = 0.15
CIRCLE_FLIP_SECONDS = (2.0, 5.0)

CONTACT_FRACTION = 0.4
BLOCK_RECOVERY_SECONDS = 0.8
LIGHT_STUN_SECONDS = 0.5
HEAVY_STUN_SECONDS = 0.8


# ---------------------------------------------------------------------------
# Fast-forward mode
# ---------------------------------------------------------------------------

SEGMENT_SECONDS = (5.0, 30.0)
INITIATIVE_JITTER = 10.0
STRIKING_JITTER = 20.0
KNOCKDOWN_STOPPAGE_CHANCE = 0.7
SUBMISSION_STOPPAGE_THRESHOLD = 0.8
SUBMISSION_PRESSURE_THRESHOLD = 0.4
FOUL_CHANCE = 0.05
FOUL_POINT_DEDUCTION = 2
FOULS_FOR_DISQUALIFICATION = 3
BETWEEN_ROUND_STAMINA_RECOVERY = 15.0
BETWEEN_ROUND_FATIGUE_RECOVERY = 10.0


@dataclass(frozen=True)
class MatchRules:
    """Per-match overrides of the standard bout structure."""
    max_rounds: int = MAX_ROUNDS_STANDARD
    round_duration: float = ROUND_DURATION_SECONDS
    rest_duration: float = REST_DURATION_SECONDS

    def __post_init__(self) -> None:
        if not 1 <= self.max_rounds <= MAX_ROUNDS_STANDARD:
            raise ValueError(f"max_rounds must be 1..{MAX_ROUNDS_STANDARD}, got {self.max_rounds}")
        if self.round_duration <= 0 or self.rest_duration < 0:
            raise ValueError("round and rest durations must be positive")


STANDARD_RULES = MatchRules()
