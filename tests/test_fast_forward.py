import random

import pytest

import simulation.fast_forward as ff
from simulation.actions import load_catalog
from simulation.config import MatchRules
from simulation.errors import MatchSetupError
from simulation.events import EventLog
from simulation.fast_forward import Corner, RoundSimulator, aggression, ground_control, simulate
from simulation.outcome import MatchEventType, RoundRecord, VictoryMethod
from simulation.profile import CompetitorProfile
from simulation.state import MatchCombatState, PositionPhase

from conftest import make_even


def _spider() -> CompetitorProfile:
    return CompetitorProfile(
        "Spider", "Max",
        strength=100, technique=100, speed=100, stamina=100,
        defense=100, wrestling=100, grappling=100,
    )


def _rookie() -> CompetitorProfile:
    return CompetitorProfile(
        "Rookie", "Zero",
        strength=0, technique=0, speed=0, stamina=0,
        defense=0, wrestling=0, grappling=0,
    )


def _corner(profile: CompetitorProfile) -> Corner:
    return Corner(profile, MatchCombatState.for_profile(profile))


def test_same_seed_same_fight(striker, grappler) -> None:
    first = simulate(striker, grappler, seed=123, apply_records=False)
    second = simulate(striker, grappler, seed=123, apply_records=False)

    assert first.to_dict() == second.to_dict()
    assert [len(r.actions) for r in first.rounds] == [len(r.actions) for r in second.rounds]
    assert first.rounds[0].actions == second.rounds[0].actions


def test_missing_seed_is_drawn_and_replayable(striker, grappler) -> None:
    result = simulate(striker, grappler, apply_records=False)

    assert isinstance(result.seed, int)
    replay = simulate(striker, grappler, seed=result.seed, apply_records=False)
    assert replay.to_dict() == result.to_dict()


def test_round_count_matches_outcome(striker, grappler) -> None:
    for seed in range(25):
        result = simulate(striker, grappler, seed=seed, apply_records=False)

        assert len(result.rounds) == result.round_ended
        assert 1 <= result.round_ended <= 3
        if result.method.is_decision or result.is_draw:
            assert result.round_ended == 3
            assert result.rounds[-1].duration == pytest.approx(300.0)
        else:
            assert result.rounds[-1].ended_early
            assert result.winner_id in (striker.id, grappler.id)


def test_observer_sees_consistent_events(striker, grappler) -> None:
    for seed in range(25):
        log = EventLog()
        result = simulate(striker, grappler, seed=seed, observer=log, apply_records=False)

        knockouts = log.named("knockout")
        assert len(knockouts) <= 1
        if result.method in (VictoryMethod.KO, VictoryMethod.TKO):
            assert knockouts == [result.loser_id]
        else:
            assert knockouts == []

        damage = log.named("damage")
        assert all(amount > 0 for _, amount in damage)
        assert sum(a for fid, a in damage if fid == striker.id) <= striker.max_hp
        assert sum(a for fid, a in damage if fid == grappler.id) <= grappler.max_hp

        assert log.named("round_start") == list(range(1, result.round_ended + 1))
        assert log.named("round_end") == list(range(1, result.round_ended + 1))
        assert log.events[-1] == ("fight_end", result)


def test_records_applied_once_and_attributes_untouched(striker, grappler) -> None:
    result = simulate(striker, grappler, seed=8, event_type=MatchEventType.MAIN_EVENT)

    assert striker.record.total_fights == 1
    assert grappler.record.total_fights == 1
    assert striker.strength == 90
    assert grappler.grappling == 88
    assert result.purse == 100_000


def test_setup_errors(striker) -> None:
    with pytest.raises(MatchSetupError):
        simulate(striker, None)
    with pytest.raises(MatchSetupError):
        simulate(None, striker)
    with pytest.raises(MatchSetupError):
        simulate(striker, striker)


def test_outclassed_opponent_is_stopped() -> None:
    for seed in range(10):
        spider, rookie = _spider(), _rookie()

        result = simulate(spider, rookie, seed=seed)

        assert result.winner_id == spider.id
        assert result.method.is_stoppage


def test_single_round_rules(striker, grappler) -> None:
    rules = MatchRules(max_rounds=1)

    result = simulate(striker, grappler, seed=4, rules=rules, apply_records=False)

    assert result.round_ended == 1
    assert len(result.scorecards) == 1


def test_three_fouls_disqualify(monkeypatch) -> None:
    monkeypatch.setattr(ff, "FOUL_CHANCE", 1.0)
    catalog = load_catalog([("Headbutt", "Illegal", "Head", 1.0, 1.8, ("Attack",), False)])
    attrs = dict(strength=60, technique=90, speed=90, defense=10, wrestling=0, grappling=0)
    a = CompetitorProfile("Dirty", "One", **attrs)
    b = CompetitorProfile("Dirty", "Two", **attrs)

    result = simulate(a, b, seed=21, catalog=catalog, apply_records=False)

    assert result.method == VictoryMethod.DISQUALIFICATION
    last = result.rounds[-1]
    assert last.tally(result.loser_id).fouls == 3
    assert last.tally(result.winner_id).fouls < 3
    assert all(action.foul for action in last.actions if action.action_type == "Strike")


def test_round_simulator_runs_a_round_from_any_position() -> None:
    a, b = _corner(make_even("A")), _corner(make_even("B"))
    a.state.position = PositionPhase.GROUNDED_TOP
    b.state.position = PositionPhase.GROUNDED_BOTTOM
    a.state.stamina = 40.0
    a.state.fatigue = 50.0
    sim = RoundSimulator(a, b, random.Random(2))

    sim.recover_between_rounds()
    record = sim.simulate_round(1)

    assert record.round_number == 1
    assert record.actions
    assert a.state.current_hp >= 0 and b.state.current_hp >= 0
    assert record.tally(a.id).control_time >= 0


def test_grapple_only_resolves_clinch_and_ground_exchanges() -> None:
    a, b = _corner(make_even("A")), _corner(make_even("B"))
    sim = RoundSimulator(a, b, random.Random(6))
    record = RoundRecord(1, a.id, b.id)

    sim.grapple(record, 10.0, 12.0)
    assert not sim.is_grappling
    assert record.actions == []

    a.state.position = b.state.position = PositionPhase.CLINCH
    sim.grapple(record, 10.0, 12.0)

    assert len(record.actions) == 1
    assert record.actions[0].timestamp == 10.0
    assert record.actions[0].action_type != "StrikeMiss"
    assert a.state.fatigue > 0


def test_recovery_between_rounds_is_bounded() -> None:
    a, b = _corner(make_even("A")), _corner(make_even("B"))
    a.state.stamina = 95.0
    a.state.fatigue = 4.0
    sim = RoundSimulator(a, b, random.Random(0))

    sim.recover_between_rounds()

    assert a.state.stamina == 100.0
    assert a.state.fatigue == 0.0


def test_initiative_scores() -> None:
    profile = make_even("P")
    fresh = MatchCombatState.for_profile(profile)
    tired = MatchCombatState.for_profile(profile)
    tired.fatigue = 100.0
    top = MatchCombatState.for_profile(profile)
    top.position = PositionPhase.GROUNDED_TOP

    assert aggression(profile, fresh) == pytest.approx(56.0)
    assert aggression(profile, tired) == pytest.approx(56.0 * 0.7)
    assert ground_control(profile, top) == pytest.approx(ground_control(profile, fresh) + 10)
