"""
Fast-forward match resolution.

Completely decoupled from any rendering loop: a round is resolved as a series
of exchanges separated by random 5–30 second increments until the clock runs
out or somebody is finished. ``simulate`` runs a whole bout synchronously and
is deterministic for a given seed.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from simulation.actions import (
    ACTION_CATALOG, ActionCategory, ActionDefinition, RangeBand,
)
from simulation.config import (
    BETWEEN_ROUND_FATIGUE_RECOVERY, BETWEEN_ROUND_STAMINA_RECOVERY,
    FOUL_CHANCE, FOULS_FOR_DISQUALIFICATION, INITIATIVE_JITTER,
    KNOCKDOWN_STOPPAGE_CHANCE, SEGMENT_SECONDS, STANDARD_RULES,
    STRIKING_JITTER, SUBMISSION_PRESSURE_THRESHOLD,
    SUBMISSION_STOPPAGE_THRESHOLD, MatchRules,
)
from simulation.decision import (
    block_probability, calculate_damage, choose_action, realize_damage,
    submission_success, sweep_success, takedown_success, weighted_pick,
)
from simulation.errors import MatchSetupError
from simulation.events import MatchObserver
from simulation.outcome import (
    ActionRecord, MatchEventType, MatchOutcomeResolver, MatchResult,
    RoundRecord, VictoryMethod,
)
from simulation.profile import CompetitorProfile
from simulation.state import (
    GroundPosition, MatchCombatState, PositionPhase, Strategy,
)

logger = logging.getLogger(__name__)


# Closeness added to a submission by the top fighter's position
POSITION_BONUS: dict[GroundPosition, float] = {
    GroundPosition.GUARD: 0.0,
    GroundPosition.MOUNT: 0.06,
    GroundPosition.BACK: 0.12,
}

_CLINCH_STRIKES = (ActionCategory.HOOK, ActionCategory.BODY_STRIKE)


@dataclass
class Corner:
    """A competitor's profile and live state, travelling together."""
    profile: CompetitorProfile
    state: MatchCombatState

    @property
    def id(self) -> str:
        return self.profile.id


# ---------------------------------------------------------------------------
# Initiative
# ---------------------------------------------------------------------------

def aggression(profile: CompetitorProfile, state: MatchCombatState) -> float:
    score = profile.strength * 0.3 + profile.speed * 0.3 + profile.technique * 0.2
    return score * _fatigue_factor(state)


def clinch_control(profile: CompetitorProfile, state: MatchCombatState) -> float:
    score = profile.wrestling * 0.5 + profile.strength * 0.3 + profile.grappling * 0.2
    return score * _fatigue_factor(state)


def ground_control(profile: CompetitorProfile, state: MatchCombatState) -> float:
    score = profile.wrestling * 0.4 + profile.grappling * 0.4 + profile.strength * 0.2
    if state.position == PositionPhase.GROUNDED_TOP:
        score += 10
    return score * _fatigue_factor(state)


def _fatigue_factor(state: MatchCombatState) -> float:
    return 1 - (state.fatigue / 100) * 0.3


# ---------------------------------------------------------------------------
# Round simulation
# ---------------------------------------------------------------------------

class RoundSimulator:
    """Resolves rounds exchange by exchange for one match.

    Owns nothing global: profiles, states, the RNG and the observer all come
    from the match that created it.
    """

    def __init__(
        self,
        a: Corner,
        b: Corner,
        rng: random.Random,
        observer: Optional[MatchObserver] = None,
        rules: MatchRules = STANDARD_RULES,
        catalog: tuple[ActionDefinition, ...] = ACTION_CATALOG,
    ):
        self.a = a
        self.b = b
        self.rng = rng
        self.observer = observer or MatchObserver()
        self.rules = rules
        self.catalog = catalog
        self._knockout_fired = False

    # ------------------------------------------------------------------
    # Round loop
    # ------------------------------------------------------------------

    def simulate_round(self, round_number: int) -> RoundRecord:
        record = RoundRecord(round_number, self.a.id, self.b.id)
        for corner in (self.a, self.b):
            corner.state.stand_up()

        clock = 0.0
        while clock < self.rules.round_duration:
            segment = self.rng.uniform(*SEGMENT_SECONDS)
            clock = min(clock + segment, self.rules.round_duration)
            self._tire(segment)
            self._exchange(record, clock, segment)
            if record.ended_early:
                break

        if not record.ended_early:
            record.duration = clock
        logger.debug(
            "round %d: %d exchanges, stoppage=%s",
            round_number, len(record.actions), record.stoppage,
        )
        return record

    @property
    def is_grappling(self) -> bool:
        return self._phase() != PositionPhase.STANDING

    def grapple(self, record: RoundRecord, t: float, segment: float) -> None:
        """Resolve one clinch or ground exchange into a round owned by someone else.

        Live matches hand these phases over here until a break, sweep or
        get-up brings both competitors back to their feet.
        """
        if not self.is_grappling or record.ended_early:
            return
        self._tire(segment)
        self._exchange(record, t, segment)

    def recover_between_rounds(self) -> None:
        for corner in (self.a, self.b):
            corner.state.drain_stamina(-BETWEEN_ROUND_STAMINA_RECOVERY)
            corner.state.add_fatigue(-BETWEEN_ROUND_FATIGUE_RECOVERY)

    def _tire(self, segment: float) -> None:
        for corner in (self.a, self.b):
            corner.state.add_fatigue(segment * (1 - corner.profile.stamina / 150) * 0.1)

    def _phase(self) -> PositionPhase:
        if self.a.state.is_grounded or self.b.state.is_grounded:
            return PositionPhase.GROUNDED_TOP
        if self.a.state.position == PositionPhase.CLINCH:
            return PositionPhase.CLINCH
        return PositionPhase.STANDING

    def _pick_initiator(self, phase: PositionPhase) -> tuple[Corner, Corner]:
        if phase == PositionPhase.STANDING:
            score = aggression
        elif phase == PositionPhase.CLINCH:
            score = clinch_control
        else:
            score = ground_control
        a_score = score(self.a.profile, self.a.state) + self.rng.uniform(-INITIATIVE_JITTER, INITIATIVE_JITTER)
        b_score = score(self.b.profile, self.b.state) + self.rng.uniform(-INITIATIVE_JITTER, INITIATIVE_JITTER)
        return (self.a, self.b) if a_score > b_score else (self.b, self.a)

    def _exchange(self, record: RoundRecord, t: float, segment: float) -> None:
        phase = self._phase()
        attacker, defender = self._pick_initiator(phase)

        if phase == PositionPhase.STANDING:
            self._standing(attacker, defender, record, t)
        elif phase == PositionPhase.CLINCH:
            record.tally(attacker.id).control_time += segment / 2
            self._clinch(attacker, defender, record, t)
        else:
            top = self.a if self.a.state.position == PositionPhase.GROUNDED_TOP else self.b
            record.tally(top.id).control_time += segment
            self._ground(attacker, defender, record, t)

    # ------------------------------------------------------------------
    # Standing
    # ------------------------------------------------------------------

    def _standing(self, att: Corner, dfn: Corner, record: RoundRecord, t: float) -> None:
        choice = choose_action(
            att.profile, att.state, dfn.profile, dfn.state,
            RangeBand.ATTACK, self.rng, self.catalog,
            categories=[c for c in ActionCategory if c != ActionCategory.SUBMISSION_ATTEMPT],
        )
        if choice is None:
            self._tie_up(att, dfn, record, t)
            return
        if choice.action.category == ActionCategory.TAKEDOWN:
            self._takedown(att, dfn, record, t, choice.action.name)
            return

        p, d = att.profile, dfn.profile
        odds = (p.technique * 0.4 + p.speed * 0.3 + p.strength * 0.3) - (d.defense * 0.3 + d.speed * 0.3)
        odds += self.rng.uniform(-STRIKING_JITTER, STRIKING_JITTER)

        if odds > 30:
            self._strike(att, dfn, choice.action, record, t, clean=True)
        elif odds > 10:
            self._strike(att, dfn, choice.action, record, t, clean=False)
        elif odds > -10:
            if self.rng.random() * 100 < p.wrestling * 0.5 + p.grappling * 0.2:
                self._takedown(att, dfn, record, t, "Level Change")
            else:
                self._tie_up(att, dfn, record, t)
        else:
            record.record(ActionRecord(att.id, dfn.id, "StrikeMiss", t, action_name=choice.action.name))

    def _strike(
        self, att: Corner, dfn: Corner, action: ActionDefinition,
        record: RoundRecord, t: float, clean: bool, engage_on_block: bool = True,
    ) -> None:
        knockdown_chance = 0.0
        if clean and att.profile.strength > 70:
            chance = (att.profile.strength - 50) * 0.01
            if self.rng.random() < chance:
                knockdown_chance = chance

        blocked = self.rng.random() < block_probability(dfn.profile, att.profile, dfn.state.hp_ratio)
        raw = calculate_damage(att.profile, dfn.profile, action, att.state.hp_ratio, self.rng)
        damage = realize_damage(raw, blocked)
        knockdown = not blocked and knockdown_chance > 0 and self.rng.random() < knockdown_chance
        foul = action.category == ActionCategory.ILLEGAL and self.rng.random() < FOUL_CHANCE

        record.record(ActionRecord(
            att.id, dfn.id, "Strike", t,
            success=not blocked, damage=damage, action_name=action.name,
            blocked=blocked, knockdown=knockdown, foul=foul,
        ))
        if not blocked:
            record.tally(att.id).significant_strikes += 1
        elif engage_on_block and att.state.position == PositionPhase.STANDING:
            # the defender smothers the strike and ties up
            att.state.position = PositionPhase.CLINCH
            dfn.state.position = PositionPhase.CLINCH

        self._hurt(dfn, damage, stamina_factor=0.5)

        if knockdown:
            dfn.state.knockdowns += 1
            record.tally(att.id).knockdowns += 1
            if self.rng.random() < KNOCKDOWN_STOPPAGE_CHANCE:
                self._finish(record, VictoryMethod.KO, att, dfn, t)
                return
        if foul:
            self._foul(att, dfn, record, t)
        if dfn.state.is_knocked_out:
            self._finish(record, VictoryMethod.TKO, att, dfn, t)

    def _tie_up(self, att: Corner, dfn: Corner, record: RoundRecord, t: float) -> None:
        damage = int(self.rng.uniform(1, 5))
        att.state.position = PositionPhase.CLINCH
        dfn.state.position = PositionPhase.CLINCH
        record.record(ActionRecord(att.id, dfn.id, "Clinch", t, success=True, damage=damage))
        self._hurt(dfn, damage, stamina_factor=0.5)
        if dfn.state.is_knocked_out:
            self._finish(record, VictoryMethod.TKO, att, dfn, t)

    def _takedown(self, att: Corner, dfn: Corner, record: RoundRecord, t: float, name: str) -> bool:
        success = self.rng.random() < takedown_success(att.profile, dfn.profile)
        record.record(ActionRecord(att.id, dfn.id, "TakedownAttempt", t, success=success, action_name=name))
        if success:
            att.state.position = PositionPhase.GROUNDED_TOP
            dfn.state.position = PositionPhase.GROUNDED_BOTTOM
            att.state.ground_position = GroundPosition.GUARD
            dfn.state.ground_position = GroundPosition.GUARD
            record.tally(att.id).takedowns += 1
        return success

    # ------------------------------------------------------------------
    # Clinch
    # ------------------------------------------------------------------

    def _clinch(self, att: Corner, dfn: Corner, record: RoundRecord, t: float) -> None:
        p = att.profile
        if self.rng.random() * 100 < p.wrestling * 0.5 + p.grappling * 0.2:
            if not self._takedown(att, dfn, record, t, "Clinch Takedown") and self.rng.random() < 0.5:
                self._separate(att, dfn)
            return

        if self.rng.random() < 0.6:
            choice = choose_action(
                att.profile, att.state, dfn.profile, dfn.state,
                RangeBand.ATTACK, self.rng, self.catalog, categories=_CLINCH_STRIKES,
            )
            if choice is not None:
                self._strike(att, dfn, choice.action, record, t, clean=False, engage_on_block=False)
                return
        record.record(ActionRecord(att.id, dfn.id, "ClinchBreak", t, success=True))
        self._separate(att, dfn)

    def _separate(self, *corners: Corner) -> None:
        for corner in corners:
            corner.state.stand_up()

    # ------------------------------------------------------------------
    # Ground
    # ------------------------------------------------------------------

    def _ground(self, att: Corner, dfn: Corner, record: RoundRecord, t: float) -> None:
        if att.state.position == PositionPhase.GROUNDED_TOP:
            self._top_game(att, dfn, record, t)
        else:
            self._bottom_game(att, dfn, record, t)

    def _top_game(self, top: Corner, bottom: Corner, record: RoundRecord, t: float) -> None:
        p = top.profile
        weights = {
            "GroundAndPound": 1.0 + p.strength / 100,
            "SubmissionAttempt": 0.5 + p.grappling / 50,
            "PositionalImprovement": 1.0 if top.state.ground_position < GroundPosition.BACK else 0.3,
        }
        strategy = top.state.strategy
        if strategy == Strategy.FINISH:
            weights["SubmissionAttempt"] *= 2.0
        elif strategy == Strategy.AGGRESSIVE:
            weights["GroundAndPound"] *= 1.5
        elif strategy == Strategy.DEFENSIVE:
            weights["PositionalImprovement"] *= 1.5
        elif strategy == Strategy.TAKEDOWN:
            weights["SubmissionAttempt"] *= 1.5
        options = list(weights)
        move = weighted_pick(options, [weights[o] for o in options], self.rng)

        if move == "GroundAndPound":
            self._ground_and_pound(top, bottom, record, t)
        elif move == "SubmissionAttempt":
            self._submission(top, bottom, record, t, POSITION_BONUS[top.state.ground_position])
        else:
            self._advance_position(top, bottom, record, t)

    def _ground_and_pound(self, top: Corner, bottom: Corner, record: RoundRecord, t: float) -> None:
        success = self.rng.random() < 0.6
        damage = int(round(self.rng.uniform(3, 10))) if success else 0
        record.record(ActionRecord(top.id, bottom.id, "GroundAndPound", t, success=success, damage=damage))
        if not success:
            return
        record.tally(top.id).significant_strikes += 1
        self._hurt(bottom, damage, stamina_factor=0.3)
        if bottom.state.is_knocked_out:
            self._finish(record, VictoryMethod.TKO, top, bottom, t)

    def _advance_position(self, top: Corner, bottom: Corner, record: RoundRecord, t: float) -> None:
        success = self.rng.random() < 1 - sweep_success(bottom.profile, top.profile)
        record.record(ActionRecord(top.id, bottom.id, "PositionalImprovement", t, success=success, damage=1 if success else 0))
        if not success:
            return
        if top.state.ground_position < GroundPosition.BACK:
            top.state.ground_position = GroundPosition(top.state.ground_position + 1)
        self._hurt(bottom, 1, stamina_factor=0.0)
        if bottom.state.is_knocked_out:
            self._finish(record, VictoryMethod.TKO, top, bottom, t)

    def _bottom_game(self, bottom: Corner, top: Corner, record: RoundRecord, t: float) -> None:
        p = bottom.profile
        options = ["SubmissionAttempt", "SweepAttempt", "GetUp"]
        weights = [0.3 + p.grappling / 100, 1.0, 1.0 + p.speed / 100]
        move = weighted_pick(options, weights, self.rng)

        if move == "SubmissionAttempt":
            self._submission(bottom, top, record, t, POSITION_BONUS[GroundPosition.GUARD])
            return

        success = self.rng.random() < sweep_success(bottom.profile, top.profile)
        record.record(ActionRecord(bottom.id, top.id, move, t, success=success))
        if not success:
            return
        if move == "SweepAttempt":
            bottom.state.position = PositionPhase.GROUNDED_TOP
            top.state.position = PositionPhase.GROUNDED_BOTTOM
            bottom.state.ground_position = GroundPosition.GUARD
            top.state.ground_position = GroundPosition.GUARD
        else:
            self._separate(bottom, top)

    def _submission(self, att: Corner, dfn: Corner, record: RoundRecord, t: float, bonus: float) -> None:
        choice = choose_action(
            att.profile, att.state, dfn.profile, dfn.state,
            RangeBand.GROUND, self.rng, self.catalog,
            categories=[ActionCategory.SUBMISSION_ATTEMPT],
        )
        base = submission_success(att.profile, dfn.profile, dfn.state.stamina)
        closeness = max(0.0, min(1.0, base * self.rng.uniform(0.9, 1.1) + bonus))
        finished = closeness > SUBMISSION_STOPPAGE_THRESHOLD

        record.record(ActionRecord(
            att.id, dfn.id, "SubmissionAttempt", t,
            success=finished, action_name=choice.action.name if choice else None,
            closeness=round(closeness, 3),
        ))
        if finished:
            self._finish(record, VictoryMethod.SUBMISSION, att, dfn, t)
        elif closeness > SUBMISSION_PRESSURE_THRESHOLD:
            dfn.state.drain_stamina(closeness * 20)
        elif att.state.position == PositionPhase.GROUNDED_TOP and att.state.ground_position > GroundPosition.GUARD:
            att.state.ground_position = GroundPosition(att.state.ground_position - 1)

    # ------------------------------------------------------------------
    # Damage and stoppages
    # ------------------------------------------------------------------

    def _hurt(self, corner: Corner, damage: int, stamina_factor: float) -> None:
        lost = corner.state.take_damage(damage)
        if lost > 0:
            corner.state.drain_stamina(lost * stamina_factor)
            self.observer.on_damage(corner.id, lost)

    def _foul(self, att: Corner, dfn: Corner, record: RoundRecord, t: float) -> None:
        att.state.fouls += 1
        record.tally(att.id).fouls += 1
        logger.debug("foul #%d on %s", att.state.fouls, att.profile.full_name)
        if att.state.fouls >= FOULS_FOR_DISQUALIFICATION:
            self._finish(record, VictoryMethod.DISQUALIFICATION, dfn, att, t)

    def _finish(self, record: RoundRecord, method: VictoryMethod, winner: Corner, loser: Corner, t: float) -> None:
        if record.ended_early:
            return
        record.stop(method, winner.id, t)
        if method in (VictoryMethod.KO, VictoryMethod.TKO) and not self._knockout_fired:
            self._knockout_fired = True
            self.observer.on_knockout(loser.id)


# ---------------------------------------------------------------------------
# Match entry point
# ---------------------------------------------------------------------------

def simulate(
    fighter_a: CompetitorProfile,
    fighter_b: CompetitorProfile,
    event_type: MatchEventType = MatchEventType.REGULAR_FIGHT,
    seed: Optional[int] = None,
    strategy_a: Optional[Strategy] = None,
    strategy_b: Optional[Strategy] = None,
    observer: Optional[MatchObserver] = None,
    rules: MatchRules = STANDARD_RULES,
    apply_records: bool = True,
    catalog: tuple[ActionDefinition, ...] = ACTION_CATALOG,
) -> MatchResult:
    """Resolve a whole bout without a rendering loop.

    The match works on snapshots of both profiles; only the win/loss records of
    the passed-in competitors are updated (once, when ``apply_records``).
    Passing ``seed=None`` draws a fresh seed, which is stored on the result so
    any bout can be replayed.
    """
    if fighter_a is None or fighter_b is None:
        raise MatchSetupError("both competitors must be assigned before a match starts")
    if fighter_a.id == fighter_b.id:
        raise MatchSetupError(f"{fighter_a.full_name} cannot fight themselves")

    if seed is None:
        seed = random.randrange(1 << 31)
    rng = random.Random(seed)
    observer = observer or MatchObserver()

    snap_a, snap_b = fighter_a.snapshot(), fighter_b.snapshot()
    a = Corner(snap_a, MatchCombatState.for_profile(snap_a, strategy_a))
    b = Corner(snap_b, MatchCombatState.for_profile(snap_b, strategy_b))
    simulator = RoundSimulator(a, b, rng, observer, rules, catalog)

    logger.debug("simulating %s vs %s (seed %d)", snap_a.full_name, snap_b.full_name, seed)
    rounds: list[RoundRecord] = []
    for round_number in range(1, rules.max_rounds + 1):
        observer.on_round_start(round_number)
        record = simulator.simulate_round(round_number)
        rounds.append(record)
        observer.on_round_end(round_number)
        if record.ended_early:
            break
        simulator.recover_between_rounds()

    resolver = MatchOutcomeResolver(fighter_a, fighter_b, event_type, seed)
    result = resolver.resolve(rounds, apply_records=apply_records)
    observer.on_fight_end(result)
    return result
