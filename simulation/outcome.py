"""
Round records, scoring, and the final verdict of a match.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from simulation.config import FOUL_POINT_DEDUCTION
from simulation.profile import CompetitorProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VictoryMethod(str, enum.Enum):
    KO = "KO"
    TKO = "TKO"
    SUBMISSION = "Submission"
    DECISION_UNANIMOUS = "Decision-Unanimous"
    DECISION_SPLIT = "Decision-Split"
    DECISION_MAJORITY = "Decision-Majority"
    DRAW = "Draw"
    NO_CONTEST = "NoContest"
    DISQUALIFICATION = "Disqualification"

    @property
    def is_decision(self) -> bool:
        return self in (
            VictoryMethod.DECISION_UNANIMOUS,
            VictoryMethod.DECISION_SPLIT,
            VictoryMethod.DECISION_MAJORITY,
        )

    @property
    def is_stoppage(self) -> bool:
        return self in (VictoryMethod.KO, VictoryMethod.TKO, VictoryMethod.SUBMISSION)


class MatchEventType(int, enum.Enum):
    REGULAR_FIGHT = 1
    PRELIM_FIGHT = 2
    MAIN_CARD = 3
    CO_MAIN_EVENT = 4
    MAIN_EVENT = 5
    TITLE_FIGHT = 6


BASE_PURSES: dict[MatchEventType, int] = {
    MatchEventType.REGULAR_FIGHT: 10_000,
    MatchEventType.PRELIM_FIGHT: 5_000,
    MatchEventType.MAIN_CARD: 25_000,
    MatchEventType.CO_MAIN_EVENT: 50_000,
    MatchEventType.MAIN_EVENT: 100_000,
    MatchEventType.TITLE_FIGHT: 250_000,
}


def estimated_attendance(a: CompetitorProfile, b: CompetitorProfile, event_type: MatchEventType) -> int:
    return 5000 + (a.record.popularity + b.record.popularity) * 100 + int(event_type) * 5000


def format_time(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


# ---------------------------------------------------------------------------
# Round data
# ---------------------------------------------------------------------------

@dataclass
class ActionRecord:
    """One resolved exchange."""
    initiator_id: str
    defender_id: str
    action_type: str
    timestamp: float
    success: bool = False
    damage: int = 0
    action_name: Optional[str] = None
    blocked: bool = False
    knockdown: bool = False
    closeness: float = 0.0
    foul: bool = False


@dataclass
class RoundTally:
    significant_strikes: int = 0
    takedowns: int = 0
    control_time: float = 0.0
    knockdowns: int = 0
    fouls: int = 0

    def score(self) -> float:
        return (
            self.significant_strikes * 2
            + self.takedowns * 3
            + self.control_time / 10
            - self.fouls * FOUL_POINT_DEDUCTION
        )


@dataclass
class RoundRecord:
    round_number: int
    fighter_a_id: str
    fighter_b_id: str
    actions: list[ActionRecord] = field(default_factory=list)
    tallies: dict[str, RoundTally] = field(default_factory=dict)
    winner_id: Optional[str] = None
    stoppage: Optional[VictoryMethod] = None
    stoppage_winner_id: Optional[str] = None
    stoppage_time: Optional[float] = None
    duration: float = 0.0

    def __post_init__(self) -> None:
        for fid in (self.fighter_a_id, self.fighter_b_id):
            self.tallies.setdefault(fid, RoundTally())

    @property
    def ended_by_ko(self) -> bool:
        return self.stoppage in (VictoryMethod.KO, VictoryMethod.TKO)

    @property
    def ended_by_submission(self) -> bool:
        return self.stoppage == VictoryMethod.SUBMISSION

    @property
    def ended_early(self) -> bool:
        return self.stoppage is not None

    def tally(self, fighter_id: str) -> RoundTally:
        return self.tallies[fighter_id]

    def record(self, action: ActionRecord) -> None:
        self.actions.append(action)

    def stop(self, method: VictoryMethod, winner_id: str, at: float) -> None:
        if self.stoppage is not None:
            return
        self.stoppage = method
        self.stoppage_winner_id = winner_id
        self.stoppage_time = at
        self.duration = at


@dataclass(frozen=True)
class RoundScore:
    round_number: int
    score_a: float
    score_b: float
    winner_id: Optional[str]


def score_round(record: RoundRecord) -> RoundScore:
    """Weighted tallies decide the round. Exactly equal totals score it even."""
    score_a = record.tally(record.fighter_a_id).score()
    score_b = record.tally(record.fighter_b_id).score()
    if score_a > score_b:
        winner = record.fighter_a_id
    elif score_b > score_a:
        winner = record.fighter_b_id
    else:
        winner = None
    record.winner_id = winner
    return RoundScore(record.round_number, round(score_a, 2), round(score_b, 2), winner)


# ---------------------------------------------------------------------------
# Match result
# ---------------------------------------------------------------------------

@dataclass
class MatchResult:
    fighter_a_id: str
    fighter_b_id: str
    method: VictoryMethod
    round_ended: int
    time_ended: float
    description: str
    winner_id: Optional[str] = None
    loser_id: Optional[str] = None
    scorecards: list[RoundScore] = field(default_factory=list)
    rounds: list[RoundRecord] = field(default_factory=list)
    event_type: MatchEventType = MatchEventType.REGULAR_FIGHT
    seed: Optional[int] = None

    @property
    def is_draw(self) -> bool:
        return self.method == VictoryMethod.DRAW

    @property
    def time_display(self) -> str:
        return format_time(self.time_ended)

    @property
    def purse(self) -> int:
        return BASE_PURSES.get(self.event_type, BASE_PURSES[MatchEventType.REGULAR_FIGHT])

    def rounds_won(self, fighter_id: str) -> int:
        return sum(1 for s in self.scorecards if s.winner_id == fighter_id)

    def to_dict(self) -> dict:
        return {
            "fighter_a_id": self.fighter_a_id,
            "fighter_b_id": self.fighter_b_id,
            "winner_id": self.winner_id,
            "loser_id": self.loser_id,
            "method": self.method.value,
            "round": self.round_ended,
            "time": self.time_display,
            "description": self.description,
            "event_type": self.event_type.name,
            "purse": self.purse,
            "seed": self.seed,
            "scorecards": [
                {
                    "round": s.round_number,
                    "score_a": s.score_a,
                    "score_b": s.score_b,
                    "winner_id": s.winner_id,
                }
                for s in self.scorecards
            ],
        }


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class MatchOutcomeResolver:
    """Turns round records into a verdict and applies it to both records.

    The first call to ``resolve`` is final: the result is latched and the
    competitors' records are updated exactly once.
    """

    def __init__(
        self,
        fighter_a: CompetitorProfile,
        fighter_b: CompetitorProfile,
        event_type: MatchEventType = MatchEventType.REGULAR_FIGHT,
        seed: Optional[int] = None,
    ):
        self.fighter_a = fighter_a
        self.fighter_b = fighter_b
        self.event_type = event_type
        self.seed = seed
        self._result: Optional[MatchResult] = None

    @property
    def result(self) -> Optional[MatchResult]:
        return self._result

    @property
    def is_resolved(self) -> bool:
        return self._result is not None

    def resolve(self, rounds: list[RoundRecord], apply_records: bool = True) -> MatchResult:
        if self._result is not None:
            logger.warning(
                "match %s vs %s already resolved (%s); ignoring later terminal event",
                self.fighter_a.full_name, self.fighter_b.full_name, self._result.method.value,
            )
            return self._result
        if not rounds:
            raise ValueError("cannot resolve a match with no rounds")

        scorecards = [score_round(r) for r in rounds]
        last = rounds[-1]
        if last.ended_early:
            result = self._stoppage_result(last, scorecards, rounds)
        else:
            result = self._decision_result(last, scorecards, rounds)

        self._result = result
        if apply_records:
            self._apply_records(result)
        logger.debug("%s", result.description)
        return result

    def no_contest(self, rounds: list[RoundRecord], reason: str = "") -> MatchResult:
        """Terminal verdict without a winner; records are left untouched."""
        if self._result is not None:
            return self._result
        last_round = rounds[-1].round_number if rounds else 1
        last_time = rounds[-1].duration if rounds else 0.0
        description = "Fight ruled a No Contest"
        if reason:
            description += f" ({reason})"
        self._result = MatchResult(
            fighter_a_id=self.fighter_a.id,
            fighter_b_id=self.fighter_b.id,
            method=VictoryMethod.NO_CONTEST,
            round_ended=last_round,
            time_ended=last_time,
            description=description,
            scorecards=[score_round(r) for r in rounds],
            rounds=list(rounds),
            event_type=self.event_type,
            seed=self.seed,
        )
        return self._result

    # ------------------------------------------------------------------

    def _profile(self, fighter_id: Optional[str]) -> Optional[CompetitorProfile]:
        if fighter_id == self.fighter_a.id:
            return self.fighter_a
        if fighter_id == self.fighter_b.id:
            return self.fighter_b
        return None

    def _other(self, fighter_id: str) -> str:
        return self.fighter_b.id if fighter_id == self.fighter_a.id else self.fighter_a.id

    def _stoppage_result(self, last: RoundRecord, scorecards, rounds) -> MatchResult:
        winner_id = last.stoppage_winner_id
        loser_id = self._other(winner_id)
        winner = self._profile(winner_id)
        loser = self._profile(loser_id)
        method = last.stoppage
        at = last.stoppage_time or 0.0
        if method == VictoryMethod.DISQUALIFICATION:
            description = f"{winner.display_name} wins by Disqualification of {loser.display_name} at {format_time(at)} of Round {last.round_number}"
        else:
            description = f"{winner.display_name} wins by {method.value} at {format_time(at)} of Round {last.round_number}"
        return MatchResult(
            fighter_a_id=self.fighter_a.id,
            fighter_b_id=self.fighter_b.id,
            method=method,
            round_ended=last.round_number,
            time_ended=at,
            description=description,
            winner_id=winner_id,
            loser_id=loser_id,
            scorecards=scorecards,
            rounds=list(rounds),
            event_type=self.event_type,
            seed=self.seed,
        )

    def _decision_result(self, last: RoundRecord, scorecards, rounds) -> MatchResult:
        a_id, b_id = self.fighter_a.id, self.fighter_b.id
        a_rounds = sum(1 for s in scorecards if s.winner_id == a_id)
        b_rounds = sum(1 for s in scorecards if s.winner_id == b_id)
        even_rounds = len(scorecards) - a_rounds - b_rounds

        winner_id = loser_id = None
        if a_rounds == b_rounds:
            method = VictoryMethod.DRAW
        else:
            winner_id, loser_id = (a_id, b_id) if a_rounds > b_rounds else (b_id, a_id)
            loser_rounds = min(a_rounds, b_rounds)
            if loser_rounds > 0:
                method = VictoryMethod.DECISION_SPLIT
            elif even_rounds > 0:
                method = VictoryMethod.DECISION_MAJORITY
            else:
                method = VictoryMethod.DECISION_UNANIMOUS

        if method == VictoryMethod.DRAW:
            description = "Fight ends in a Draw"
        else:
            winner = self._profile(winner_id)
            description = f"{winner.display_name} wins by {method.value} ({max(a_rounds, b_rounds)}-{min(a_rounds, b_rounds)})"

        return MatchResult(
            fighter_a_id=a_id,
            fighter_b_id=b_id,
            method=method,
            round_ended=last.round_number,
            time_ended=last.duration,
            description=description,
            winner_id=winner_id,
            loser_id=loser_id,
            scorecards=scorecards,
            rounds=list(rounds),
            event_type=self.event_type,
            seed=self.seed,
        )

    def _apply_records(self, result: MatchResult) -> None:
        if result.method == VictoryMethod.NO_CONTEST:
            return
        if result.method == VictoryMethod.DRAW:
            self.fighter_a.record.add_draw()
            self.fighter_b.record.add_draw()
            return
        winner = self._profile(result.winner_id)
        loser = self._profile(result.loser_id)
        winner.record.add_win(
            knockout=result.method in (VictoryMethod.KO, VictoryMethod.TKO),
            submission=result.method == VictoryMethod.SUBMISSION,
            decision=result.method.is_decision,
        )
        loser.record.add_loss()
