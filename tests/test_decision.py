import random
from collections import Counter

import pytest

from simulation.actions import ACTION_CATALOG, ActionCategory, RangeBand, TargetZone, actions_for, find_action
from simulation.decision import (
    action_weight, attack_chance, block_probability, calculate_damage,
    choose_action, duration_bonus, hp_damage_modifier, range_band,
    realize_damage, submission_success, sweep_success, takedown_success,
    weighted_pick,
)
from simulation.profile import CompetitorProfile
from simulation.state import MatchCombatState, Strategy


def _extremes() -> list[CompetitorProfile]:
    return [
        CompetitorProfile("Zero", **{a: 0 for a in ("strength", "technique", "speed", "stamina", "defense", "wrestling", "grappling")}),
        CompetitorProfile("Max", **{a: 100 for a in ("strength", "technique", "speed", "stamina", "defense", "wrestling", "grappling")}),
        CompetitorProfile("Wrestler", wrestling=100, grappling=0, defense=0),
        CompetitorProfile("Glass", wrestling=0, grappling=100, defense=100, strength=0),
    ]


# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------

def test_damage_is_deterministic_for_a_seed(striker, grappler) -> None:
    hook = find_action("Lead Hook")

    first = calculate_damage(striker, grappler, hook, 1.0, random.Random(99))
    second = calculate_damage(striker, grappler, hook, 1.0, random.Random(99))

    assert first == second


def test_damage_always_within_bounds() -> None:
    rng = random.Random(3)
    for attacker in _extremes():
        for defender in _extremes():
            for action in ACTION_CATALOG:
                for hp_ratio in (1.0, 0.5, 0.1):
                    dmg = calculate_damage(attacker, defender, action, hp_ratio, rng)
                    assert 2.0 <= dmg <= 20.0


def test_block_lets_through_a_quarter() -> None:
    rng = random.Random(11)
    attacker = CompetitorProfile("A", strength=75, technique=70)
    defender = CompetitorProfile("D", defense=40)
    for action in ACTION_CATALOG:
        raw = calculate_damage(attacker, defender, action, 1.0, rng)
        assert realize_damage(raw, blocked=True) == round(raw * 0.25)
        assert realize_damage(raw, blocked=False) == round(raw)


def test_duration_bonus_and_hp_modifier() -> None:
    assert duration_bonus(0.7) == pytest.approx(0.8)
    assert duration_bonus(1.8) == pytest.approx(1.3)
    assert duration_bonus(5.0) == pytest.approx(1.3)
    assert duration_bonus(0.1) == pytest.approx(0.8)
    assert hp_damage_modifier(0.9) == 1.0
    assert hp_damage_modifier(0.5) == 0.9
    assert hp_damage_modifier(0.2) == 0.8


# ---------------------------------------------------------------------------
# Contest probabilities
# ---------------------------------------------------------------------------

def test_takedown_success_respects_bounds() -> None:
    best = CompetitorProfile("Best", wrestling=100, strength=100, technique=100)
    worst = CompetitorProfile("Worst", wrestling=0, strength=0, technique=0, defense=0, speed=0)
    wall = CompetitorProfile("Wall", wrestling=100, defense=100, speed=100)

    assert takedown_success(best, worst) == pytest.approx(0.8)
    assert takedown_success(worst, wall) == pytest.approx(0.1)
    for attacker in _extremes():
        for defender in _extremes():
            assert 0.1 <= takedown_success(attacker, defender) <= 0.8


def test_submission_success_respects_bounds() -> None:
    for attacker in _extremes():
        for defender in _extremes():
            for stamina in (0.0, 50.0, 100.0):
                assert 0.0 <= submission_success(attacker, defender, stamina) <= 1.0


def test_submission_defense_scales_with_defender_stamina(grappler, striker) -> None:
    fresh = submission_success(grappler, striker, 100.0)
    drained = submission_success(grappler, striker, 0.0)

    # stamina scales the defense term down as (1 - 0.5 * stamina)
    assert fresh > drained


def test_sweep_success_respects_bounds() -> None:
    for attacker in _extremes():
        for defender in _extremes():
            assert 0.1 <= sweep_success(attacker, defender) <= 0.7


def test_block_probability() -> None:
    defender = CompetitorProfile("D", defense=60, wrestling=60, grappling=60)
    attacker = CompetitorProfile("A", speed=60)
    nobody = CompetitorProfile("N", defense=0, wrestling=0, grappling=0)
    still = CompetitorProfile("S", speed=0)

    assert block_probability(defender, attacker) == pytest.approx(0.5)
    assert block_probability(defender, attacker, defender_hp_ratio=0.2) == pytest.approx(0.4)
    assert block_probability(nobody, still) == 0.0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def test_weighted_pick_converges_to_weight_share() -> None:
    rng = random.Random(2024)
    items = ["a", "b", "c", "d"]
    weights = [3.0, 2.0, 1.0, 0.5]
    n = 20_000

    counts = Counter(weighted_pick(items, weights, rng) for _ in range(n))

    total = sum(weights)
    for item, weight in zip(items, weights):
        assert counts[item] / n == pytest.approx(weight / total, abs=0.015)


def test_weighted_pick_skips_zero_weights() -> None:
    rng = random.Random(5)

    picks = {weighted_pick(["x", "y", "z"], [0.0, 1.0, 0.0], rng) for _ in range(500)}

    assert picks == {"y"}
    with pytest.raises(ValueError):
        weighted_pick([], [], rng)


def test_choose_action_category_frequency_matches_weights(striker, grappler) -> None:
    rng = random.Random(77)
    state = MatchCombatState.for_profile(striker)
    opp_state = MatchCombatState.for_profile(grappler)
    candidates = actions_for(RangeBand.ATTACK)
    expected = Counter()
    for action in candidates:
        expected[action.category] += action_weight(action, striker, state.strategy, state.hp_ratio)
    total = sum(expected.values())
    n = 20_000

    observed = Counter(
        choose_action(striker, state, grappler, opp_state, RangeBand.ATTACK, rng).action.category
        for _ in range(n)
    )

    for category, weight in expected.items():
        assert observed[category] / n == pytest.approx(weight / total, abs=0.015)


def test_choose_action_returns_none_without_candidates(striker, grappler) -> None:
    state = MatchCombatState.for_profile(striker)
    choice = choose_action(
        striker, state, grappler, MatchCombatState.for_profile(grappler),
        RangeBand.FAR, random.Random(1),
    )

    assert choice is None


def test_choose_action_predicts_takedown_success(striker, grappler) -> None:
    state = MatchCombatState.for_profile(grappler)
    choice = choose_action(
        grappler, state, striker, MatchCombatState.for_profile(striker),
        RangeBand.ATTACK, random.Random(1), categories=[ActionCategory.TAKEDOWN],
    )

    assert choice.action.category == ActionCategory.TAKEDOWN
    assert choice.success_probability == pytest.approx(takedown_success(grappler, striker))


def test_strategy_multipliers() -> None:
    profile = CompetitorProfile("P")
    liver = find_action("Liver Hook")
    jab = find_action("Jab Cross")
    shot = find_action("Double Leg Takedown")
    combo = find_action("Combo Punch")

    assert liver.zone == TargetZone.BODY
    assert action_weight(liver, profile, Strategy.BODY_WORK, 1.0) == pytest.approx(
        3 * action_weight(liver, profile, Strategy.BALANCED, 1.0))
    assert action_weight(jab, profile, Strategy.BODY_WORK, 1.0) == pytest.approx(
        0.5 * action_weight(jab, profile, Strategy.BALANCED, 1.0))
    assert action_weight(shot, profile, Strategy.TAKEDOWN, 1.0) == pytest.approx(
        5 * action_weight(shot, profile, Strategy.BALANCED, 1.0))
    assert action_weight(combo, profile, Strategy.FINISH, 1.0) == pytest.approx(
        3 * action_weight(combo, profile, Strategy.BALANCED, 1.0))
    assert action_weight(combo, profile, Strategy.BALANCED, 0.2) == pytest.approx(
        0.5 * action_weight(combo, profile, Strategy.BALANCED, 1.0))


# ---------------------------------------------------------------------------
# Live support
# ---------------------------------------------------------------------------

def test_range_bands() -> None:
    assert range_band(1.0) == RangeBand.ATTACK
    assert range_band(1.8) == RangeBand.ATTACK
    assert range_band(2.2) == RangeBand.CLOSE
    assert range_band(4.0) == RangeBand.MID
    assert range_band(6.0) == RangeBand.FAR


def test_attack_chance_rises_against_a_hurt_opponent() -> None:
    profile = CompetitorProfile("P", technique=60)

    healthy = attack_chance(profile, 2.0, 1.0)
    hurt = attack_chance(profile, 2.0, 0.2)

    assert healthy == pytest.approx(0.45 + 0.5 / 2.5 * 0.2 + 0.2)
    assert hurt == pytest.approx(healthy + 0.15)
    assert attack_chance(CompetitorProfile("Max", technique=100), 0.0, 0.1) <= 1.0
