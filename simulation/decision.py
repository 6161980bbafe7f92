"""
Decision engine: action selection and the probability/damage formulas.

Both the live state machine and the fast-forward round simulator call into
this module, so a quick-resolved match and a tick-by-tick match roll against
exactly the same numbers.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TypeVar

from simulation.actions import (
    ACTION_CATALOG, ActionCategory, ActionDefinition, MULTI_HIT_CATEGORIES,
    RangeBand, TargetZone, actions_for,
)
from simulation.config import (
    ATTACK_RANGE, BLOCK_DAMAGE_FACTOR, CLOSE_RANGE, DAMAGE_JITTER, DAMAGE_MAX,
    DAMAGE_MIN, DURATION_BONUS_RANGE, DURATION_REFERENCE, FAR_RANGE,
    HP_CRITICAL, HP_HEALTHY,
)
from simulation.profile import CompetitorProfile
from simulation.state import MatchCombatState, Strategy

T = TypeVar("T")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * _clamp(t, 0.0, 1.0)


# ---------------------------------------------------------------------------
# Weighted action selection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionChoice:
    action: ActionDefinition
    success_probability: float


def base_weight(action: ActionDefinition, profile: CompetitorProfile) -> float:
    if action.special:
        return 0.2
    category = action.category
    if category == ActionCategory.JAB:
        return 3.0
    if category == ActionCategory.HOOK:
        return 2.0 + profile.strength / 120
    if category in (ActionCategory.BODY_STRIKE, ActionCategory.KICK):
        return 1.5 + profile.technique / 120
    if category == ActionCategory.COMBO:
        return 0.7 + profile.technique / 150
    if category == ActionCategory.TAKEDOWN:
        return 0.4 + profile.wrestling / 80
    if category == ActionCategory.ILLEGAL:
        return 0.6 + profile.strength / 150
    if category == ActionCategory.SUBMISSION_ATTEMPT:
        return 0.5 + profile.grappling / 80
    return 1.0


def action_weight(
    action: ActionDefinition,
    profile: CompetitorProfile,
    strategy: Strategy,
    hp_ratio: float,
) -> float:
    w = base_weight(action, profile)

    if strategy == Strategy.BODY_WORK:
        if action.zone == TargetZone.BODY:
            w *= 3.0
        elif action.zone == TargetZone.HEAD:
            w *= 0.5
    elif strategy == Strategy.TAKEDOWN:
        if action.category == ActionCategory.TAKEDOWN:
            w *= 5.0
    elif strategy == Strategy.FINISH:
        if action.category in MULTI_HIT_CATEGORIES:
            w *= 3.0

    # Complex sequences fall apart when hurt
    if hp_ratio < HP_CRITICAL and action.category in MULTI_HIT_CATEGORIES:
        w *= 0.5

    return w


def weighted_pick(items: Sequence[T], weights: Sequence[float], rng: random.Random) -> T:
    """Cumulative-weight roll: uniform in [0, total), first cumulative sum >= roll."""
    if not items:
        raise ValueError("nothing to choose from")
    total = sum(weights)
    if total <= 0:
        return items[0]
    roll = rng.random() * total
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += weight
        if weight > 0 and cumulative >= roll:
            return item
    return items[-1]


def choose_action(
    profile: CompetitorProfile,
    state: MatchCombatState,
    opponent: CompetitorProfile,
    opponent_state: MatchCombatState,
    band: RangeBand,
    rng: random.Random,
    catalog: Sequence[ActionDefinition] = ACTION_CATALOG,
    categories: Optional[Iterable[ActionCategory]] = None,
) -> Optional[ActionChoice]:
    """Pick an action usable from ``band`` and predict its chance of working.

    Returns None when nothing in the catalog can be thrown from that band.
    """
    candidates = actions_for(band, tuple(catalog), categories)
    if not candidates:
        return None
    weights = [action_weight(a, profile, state.strategy, state.hp_ratio) for a in candidates]
    action = weighted_pick(candidates, weights, rng)
    return ActionChoice(action, predict_success(action, profile, opponent, opponent_state))


def predict_success(
    action: ActionDefinition,
    attacker: CompetitorProfile,
    defender: CompetitorProfile,
    defender_state: MatchCombatState,
) -> float:
    if action.category == ActionCategory.TAKEDOWN:
        return takedown_success(attacker, defender)
    if action.category == ActionCategory.SUBMISSION_ATTEMPT:
        return submission_success(attacker, defender, defender_state.stamina)
    return 1.0 - block_probability(defender, attacker, defender_state.hp_ratio)


# ---------------------------------------------------------------------------
# Contest formulas
# ---------------------------------------------------------------------------

def block_probability(
    defender: CompetitorProfile,
    attacker: CompetitorProfile,
    defender_hp_ratio: float = 1.0,
) -> float:
    composite = defender.defense_composite
    denominator = composite + attacker.speed
    if denominator <= 0:
        return 0.0
    chance = composite / denominator
    if defender_hp_ratio < HP_CRITICAL:
        chance *= 0.8
    return _clamp(chance, 0.0, 1.0)


def takedown_success(attacker: CompetitorProfile, defender: CompetitorProfile) -> float:
    offense = attacker.wrestling * 0.6 + attacker.strength * 0.2 + attacker.technique * 0.2
    defense = defender.wrestling * 0.5 + defender.defense * 0.3 + defender.speed * 0.2
    return _clamp((offense - defense + 50) / 150, 0.1, 0.8)


def submission_success(
    attacker: CompetitorProfile,
    defender: CompetitorProfile,
    defender_stamina: float,
) -> float:
    """``defender_stamina`` is the live 0–100 value; the formula uses it as a fraction."""
    offense = attacker.grappling * 0.6 + attacker.wrestling * 0.2 + attacker.technique * 0.2
    defense = defender.grappling * 0.5 + defender.defense * 0.2 + defender.strength * 0.1
    stamina = _clamp(defender_stamina / 100.0, 0.0, 1.0)
    defense *= 1 - 0.5 * stamina
    return _clamp((offense - defense + 50) / 150, 0.0, 1.0)


def sweep_success(attacker: CompetitorProfile, defender: CompetitorProfile) -> float:
    offense = attacker.grappling * 0.5 + attacker.wrestling * 0.3
    defense = defender.wrestling * 0.4 + defender.grappling * 0.2 + defender.strength * 0.2
    return _clamp((offense - defense + 40) / 140, 0.1, 0.7)


# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------

def duration_bonus(duration: float) -> float:
    lo, hi = DURATION_REFERENCE
    return _lerp(*DURATION_BONUS_RANGE, (duration - lo) / (hi - lo))


def hp_damage_modifier(hp_ratio: float) -> float:
    if hp_ratio > HP_HEALTHY:
        return 1.0
    if hp_ratio > HP_CRITICAL:
        return 0.9
    return 0.8


def calculate_damage(
    attacker: CompetitorProfile,
    defender: CompetitorProfile,
    action: ActionDefinition,
    attacker_hp_ratio: float,
    rng: random.Random,
) -> float:
    """Unblocked damage of one landed action, always within [2, 20]."""
    base = (attacker.strength + attacker.technique) / 10
    raw = base * action.damage_multiplier * duration_bonus(action.duration)
    raw *= hp_damage_modifier(attacker_hp_ratio)
    raw -= defender.defense / 15
    jitter = rng.uniform(*DAMAGE_JITTER)
    result = max(DAMAGE_MIN, raw * jitter)
    return _clamp(result, DAMAGE_MIN, DAMAGE_MAX)


def realize_damage(raw_damage: float, blocked: bool) -> int:
    """HP actually taken: a block lets through a quarter of the computed value."""
    if blocked:
        return round(raw_damage * BLOCK_DAMAGE_FACTOR)
    return round(raw_damage)


# ---------------------------------------------------------------------------
# Live-mode decision support
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StrategyModifiers:
    attack: float = 1.0
    block: float = 1.0
    retreat: float = 1.0
    approach: float = 1.0


_STRATEGY_MODIFIERS: dict[Strategy, StrategyModifiers] = {
    Strategy.BALANCED: StrategyModifiers(),
    Strategy.AGGRESSIVE: StrategyModifiers(attack=1.25, block=0.7, retreat=0.5, approach=1.2),
    Strategy.DEFENSIVE: StrategyModifiers(attack=0.7, block=1.4, retreat=1.5, approach=0.7),
    Strategy.FINISH: StrategyModifiers(attack=1.4, block=0.5, retreat=0.5, approach=1.3),
    Strategy.TAKEDOWN: StrategyModifiers(attack=1.1, approach=1.2),
    Strategy.BODY_WORK: StrategyModifiers(attack=1.1),
}


def strategy_modifiers(strategy: Strategy) -> StrategyModifiers:
    return _STRATEGY_MODIFIERS.get(strategy, StrategyModifiers())


def range_band(distance: float) -> RangeBand:
    if distance <= ATTACK_RANGE:
        return RangeBand.ATTACK
    if distance <= CLOSE_RANGE:
        return RangeBand.CLOSE
    if distance <= FAR_RANGE:
        return RangeBand.MID
    return RangeBand.FAR


def attack_chance(profile: CompetitorProfile, distance: float, opponent_hp_ratio: float) -> float:
    chance = 0.45
    chance += (CLOSE_RANGE - distance) / CLOSE_RANGE * 0.2
    chance += profile.technique / 300
    if opponent_hp_ratio < HP_CRITICAL:
        chance += 0.15
    return _clamp(chance, 0.0, 1.0)


def decision_interval(profile: CompetitorProfile, state: MatchCombatState) -> float:
    interval_mod, _ = state.hp_penalties()
    return profile.base_decision_interval * interval_mod


def move_speed(profile: CompetitorProfile, state: MatchCombatState) -> float:
    _, speed_mod = state.hp_penalties()
    return profile.base_move_speed * speed_mod
