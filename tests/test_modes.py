from collections import Counter

from simulation.fast_forward import simulate
from simulation.live import LiveMatch
from simulation.outcome import VictoryMethod

SEEDS = range(40)


def _finishes(play) -> Counter:
    finishes: Counter = Counter()
    for seed in SEEDS:
        result = play(seed)
        finishes[(result.winner_id, result.method)] += 1
    return finishes


def _share(finishes: Counter, fighter_id: str) -> float:
    return sum(n for (winner, _), n in finishes.items() if winner == fighter_id) / len(SEEDS)


def test_both_modes_favour_the_same_game_plan(striker, grappler) -> None:
    fast = _finishes(lambda seed: simulate(striker, grappler, seed=seed, apply_records=False))
    live = _finishes(
        lambda seed: LiveMatch(striker, grappler, seed=seed, apply_records=False).play(frame=0.1)
    )

    fast_share, live_share = _share(fast, grappler.id), _share(live, grappler.id)
    assert fast_share >= 0.5
    assert live_share >= 0.2
    assert abs(fast_share - live_share) < 0.5

    for finishes in (fast, live):
        assert finishes[(grappler.id, VictoryMethod.SUBMISSION)] > 0
        assert len({method for _, method in finishes}) >= 2
    assert striker.record.total_fights == grappler.record.total_fights == 0
