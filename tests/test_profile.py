import pytest

from simulation.profile import CompetitorProfile, FightingStyle, FightRecord
from simulation.state import MatchCombatState, Strategy


def test_attributes_are_clamped_on_construction() -> None:
    profile = CompetitorProfile("Over", "Flow", strength=150, speed=-20, grappling=100.4)

    assert profile.strength == 100
    assert profile.speed == 0
    assert profile.grappling == 100


def test_set_attribute_clamps_and_rejects_unknown_names() -> None:
    profile = CompetitorProfile("Test")

    profile.set_attribute("wrestling", 250)
    profile.set_attribute("defense", -3)

    assert profile.wrestling == 100
    assert profile.defense == 0
    with pytest.raises(AttributeError):
        profile.set_attribute("charisma", 50)


def test_plain_assignment_is_clamped_too() -> None:
    profile = CompetitorProfile("Direct")

    profile.strength = 250
    profile.speed = -5
    profile.potential = 99.6
    profile.first_name = "Still"

    assert profile.strength == 100
    assert profile.speed == 0
    assert profile.potential == 100
    assert profile.first_name == "Still"
    assert profile.max_hp == 80 + 100 // 3 + 50 // 4


def test_max_hp_formula_and_floor() -> None:
    assert CompetitorProfile("A", strength=90, stamina=70).max_hp == 80 + 30 + 17
    assert CompetitorProfile("B", strength=0, stamina=0).max_hp == 80
    assert CompetitorProfile("C", strength=100, stamina=100).max_hp == 138


def test_decision_interval_and_move_speed_ranges() -> None:
    assert CompetitorProfile("Fast", speed=80).base_decision_interval == pytest.approx(1.0)
    assert CompetitorProfile("Slow", speed=0).base_decision_interval == pytest.approx(2.5)
    assert CompetitorProfile("Blur", speed=100).base_decision_interval == pytest.approx(0.6)
    assert CompetitorProfile("Slow", speed=0).base_move_speed == pytest.approx(1.5)
    assert CompetitorProfile("Blur", speed=100).base_move_speed == pytest.approx(3.5)


def test_display_name_uses_nickname() -> None:
    profile = CompetitorProfile("Jon", "Doe", nickname="Bones")

    assert profile.full_name == "Jon Doe"
    assert profile.display_name == 'Bones "Jon Doe"'


def test_style_picks_default_strategy() -> None:
    assert CompetitorProfile("G", style="Grappler").default_strategy() == Strategy.TAKEDOWN
    assert CompetitorProfile("P", style=FightingStyle.PRESSURE_FIGHTER).default_strategy() == Strategy.AGGRESSIVE
    assert CompetitorProfile("S").default_strategy() == Strategy.BALANCED


def test_snapshot_keeps_id_and_detaches_record() -> None:
    profile = CompetitorProfile("Orig", strength=60)
    profile.record.add_win(knockout=True)

    snap = profile.snapshot()
    snap.set_attribute("strength", 10)
    snap.record.add_loss()

    assert snap.id == profile.id
    assert profile.strength == 60
    assert str(profile.record) == "1-0-0"
    assert str(snap.record) == "0-1-0"


def test_record_popularity_moves_with_results() -> None:
    record = FightRecord()

    record.add_win(submission=True)
    assert record.popularity == 25
    assert record.submission_wins == 1

    record.add_loss()
    assert record.popularity == 22
    assert record.total_fights == 2
    assert record.finish_rate == 1.0


def test_combat_state_hp_never_negative() -> None:
    state = MatchCombatState.for_profile(CompetitorProfile("Target"))

    lost = state.take_damage(state.max_hp + 50)

    assert lost == state.max_hp
    assert state.current_hp == 0
    assert state.is_knocked_out
    assert state.take_damage(10) == 0
    assert state.current_hp == 0


def test_hp_penalties_by_tier() -> None:
    state = MatchCombatState.for_profile(CompetitorProfile("Target"))
    assert state.hp_penalties() == (1.0, 1.0)

    state.current_hp = int(state.max_hp * 0.5)
    assert state.hp_penalties() == (1.2, 0.85)

    state.current_hp = int(state.max_hp * 0.1)
    assert state.hp_penalties() == (1.4, 0.7)
