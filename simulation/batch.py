"""Repeated fast-forward bouts for balance testing."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from simulation.config import STANDARD_RULES, MatchRules
from simulation.fast_forward import simulate
from simulation.outcome import MatchEventType, VictoryMethod
from simulation.profile import CompetitorProfile
from simulation.state import Strategy

logger = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    fighter_a_id: str
    fighter_b_id: str
    matches: int = 0
    wins: dict[str, int] = field(default_factory=dict)
    draws: int = 0
    no_contests: int = 0
    methods: Counter = field(default_factory=Counter)
    # method counts split by winner id, decisions included
    methods_by_winner: dict[str, Counter] = field(default_factory=dict)
    rounds_total: int = 0

    def __post_init__(self) -> None:
        for fid in (self.fighter_a_id, self.fighter_b_id):
            self.wins.setdefault(fid, 0)
            self.methods_by_winner.setdefault(fid, Counter())

    def win_rate(self, fighter_id: str) -> float:
        if not self.matches:
            return 0.0
        return self.wins[fighter_id] / self.matches

    def finish_count(self, method: VictoryMethod) -> int:
        return self.methods[method]

    @property
    def decisions(self) -> int:
        return sum(n for m, n in self.methods.items() if m.is_decision)

    @property
    def most_common_finish(self) -> Optional[VictoryMethod]:
        finishes = [(m, n) for m, n in self.methods.most_common() if m.is_stoppage]
        return finishes[0][0] if finishes else None

    @property
    def average_rounds(self) -> float:
        return self.rounds_total / self.matches if self.matches else 0.0

    def to_dict(self) -> dict:
        return {
            "matches": self.matches,
            "wins": dict(self.wins),
            "draws": self.draws,
            "no_contests": self.no_contests,
            "methods": {m.value: n for m, n in self.methods.items()},
            "methods_by_winner": {
                fid: {m.value: n for m, n in c.items()} for fid, c in self.methods_by_winner.items()
            },
            "win_rate": {fid: round(self.win_rate(fid), 4) for fid in self.wins},
            "average_rounds": round(self.average_rounds, 2),
        }


def run_batch(
    fighter_a: CompetitorProfile,
    fighter_b: CompetitorProfile,
    count: int,
    base_seed: int = 0,
    event_type: MatchEventType = MatchEventType.REGULAR_FIGHT,
    strategy_a: Optional[Strategy] = None,
    strategy_b: Optional[Strategy] = None,
    rules: MatchRules = STANDARD_RULES,
) -> BatchSummary:
    """Run ``count`` independent bouts seeded ``base_seed + i``.

    Records of the passed-in competitors are left untouched.
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    summary = BatchSummary(fighter_a.id, fighter_b.id)
    for i in range(count):
        result = simulate(
            fighter_a, fighter_b, event_type,
            seed=base_seed + i,
            strategy_a=strategy_a,
            strategy_b=strategy_b,
            rules=rules,
            apply_records=False,
        )
        summary.matches += 1
        summary.methods[result.method] += 1
        summary.rounds_total += result.round_ended
        if result.method == VictoryMethod.DRAW:
            summary.draws += 1
        elif result.method == VictoryMethod.NO_CONTEST:
            summary.no_contests += 1
        else:
            summary.wins[result.winner_id] += 1
            summary.methods_by_winner[result.winner_id][result.method] += 1

    logger.info(
        "batch %s vs %s: %d bouts, wins %s, draws %d",
        fighter_a.full_name, fighter_b.full_name, count, summary.wins, summary.draws,
    )
    return summary
