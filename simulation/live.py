"""
Live, tick-driven match mode.

``LiveMatch`` is the match context: it owns the distance between the two
competitors, the round scheduler, the RNG and the observer. Each competitor is
driven by a ``FighterAgent`` state machine advanced once per ``tick(dt)``.
Timed sequences (attack wind-up, stun, block recovery) are pending records
with explicit timestamps rather than coroutines; cancelling one is simply
clearing the record.

Clinch and ground phases are not ticked frame by frame: once a blocked strike
ties the competitors up or a takedown lands, the match hands each exchange to
the fast-forward ``RoundSimulator`` on its own RNG until they stand again.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional

from simulation.actions import ACTION_CATALOG, ActionCategory, ActionDefinition, RangeBand
from simulation.config import (
    ATTACK_RANGE, BETWEEN_ROUND_FATIGUE_RECOVERY, BETWEEN_ROUND_STAMINA_RECOVERY,
    BLOCK_RECOVERY_SECONDS, BOB_AMPLITUDE, CIRCLE_FLIP_SECONDS, CLOSE_RANGE,
    CONTACT_FRACTION, CONTACT_TOLERANCE, FAR_RANGE, FIGHTER_SPACING,
    HEAVY_HIT_THRESHOLD, HEAVY_STUN_SECONDS, HP_CRITICAL, LIGHT_STUN_SECONDS,
    MAX_DISTANCE, MIN_DISTANCE, SEGMENT_SECONDS, STANDARD_RULES, MatchRules,
)
from simulation.decision import (
    attack_chance, block_probability, calculate_damage, choose_action,
    decision_interval, move_speed, range_band, realize_damage,
    strategy_modifiers, takedown_success,
)
from simulation.errors import MatchSetupError
from simulation.events import MatchObserver
from simulation.fast_forward import Corner, RoundSimulator
from simulation.outcome import (
    ActionRecord, MatchEventType, MatchOutcomeResolver, MatchResult,
    RoundRecord, VictoryMethod,
)
from simulation.profile import CompetitorProfile
from simulation.scheduler import RoundScheduler, ScheduleListener
from simulation.state import CombatState, GroundPosition, MatchCombatState, PositionPhase, Strategy

logger = logging.getLogger(__name__)

_STANDING_CATEGORIES = [c for c in ActionCategory if c != ActionCategory.SUBMISSION_ATTEMPT]


@dataclass
class PendingAction:
    """An attack in flight: contact is checked once, then the action completes."""
    action: ActionDefinition
    contact_at: float
    complete_at: float
    elapsed: float = 0.0
    contact_resolved: bool = False

    @classmethod
    def start(cls, action: ActionDefinition) -> "PendingAction":
        return cls(action, action.duration * CONTACT_FRACTION, action.duration)


@dataclass
class Movement:
    """Timed footwork. Negative rate closes distance, positive rate opens it."""
    kind: str
    rate: float
    remaining: float


class FighterAgent:
    """Per-competitor state machine: Idle, Approaching, Attacking, Defending, Hit, KO."""

    def __init__(self, match: "LiveMatch", profile: CompetitorProfile, state: MatchCombatState):
        self.match = match
        self.profile = profile
        self.state = state
        self.opponent: Optional[FighterAgent] = None
        self.pending: Optional[PendingAction] = None
        self.movements: list[Movement] = []
        self.decision_timer = 0.0
        self.recovery_timer = 0.0
        self.angle = 0.0
        self.circle_direction = 1
        self.circle_timer = match.rng.uniform(*CIRCLE_FLIP_SECONDS)
        self.bob_phase = 0.0

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def combat_state(self) -> CombatState:
        return self.state.state

    @property
    def is_knocked_out(self) -> bool:
        return self.state.state == CombatState.KO

    def reset_for_round(self) -> None:
        if self.is_knocked_out:
            return
        self.pending = None
        self.movements.clear()
        # staggered first decision
        self.decision_timer = self.match.rng.uniform(0.0, self.profile.base_decision_interval * 0.5)
        self.recovery_timer = 0.0
        self.state.state = CombatState.IDLE
        self.state.stand_up()

    # ------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        if self.is_knocked_out:
            return

        if self.state.state in (CombatState.HIT, CombatState.DEFENDING):
            self.recovery_timer -= dt
            if self.recovery_timer > 0:
                return
            self.state.state = CombatState.IDLE

        if self.pending is not None:
            self._advance_pending(dt)
            return

        self._footwork(dt)
        if self.state.state == CombatState.APPROACHING:
            self._approach(dt)

        self.decision_timer += dt
        if self.decision_timer >= decision_interval(self.profile, self.state):
            self.decision_timer = 0.0
            self._decide()

    def _decide(self) -> None:
        rng = self.match.rng
        distance = self.match.distance
        mods = strategy_modifiers(self.state.strategy)
        opponent = self.opponent

        if distance > FAR_RANGE:
            self.state.state = CombatState.APPROACHING
            return

        if distance > CLOSE_RANGE:
            roll = rng.random()
            rush = 0.45 * mods.approach
            speed = move_speed(self.profile, self.state)
            if roll < rush:
                self.state.state = CombatState.APPROACHING
            elif roll < rush + 0.2:
                self.movements += [Movement("feint", -speed, 0.2), Movement("feint", speed, 0.2)]
            elif roll < rush + 0.4:
                self.circle_direction *= -1
            else:
                self.movements.append(Movement("back_off", speed * 0.8, 0.5))
            return

        self.state.state = CombatState.IDLE
        if opponent.combat_state == CombatState.ATTACKING:
            block = block_probability(self.profile, opponent.profile, self.state.hp_ratio) * mods.block
            if rng.random() < block:
                self.state.state = CombatState.DEFENDING
                self.recovery_timer = BLOCK_RECOVERY_SECONDS
                return

        if rng.random() < attack_chance(self.profile, distance, opponent.state.hp_ratio) * mods.attack:
            band = range_band(distance)
            choice = choose_action(
                self.profile, self.state, opponent.profile, opponent.state,
                band, rng, self.match.catalog, categories=_STANDING_CATEGORIES,
            )
            if choice is not None:
                self.pending = PendingAction.start(choice.action)
                self.movements.clear()
                self.state.state = CombatState.ATTACKING
                return

        speed = move_speed(self.profile, self.state)
        if rng.random() < 0.3 * mods.retreat:
            self.movements.append(Movement("retreat", speed, 0.6))
        elif self.state.hp_ratio < HP_CRITICAL and rng.random() < 0.5 * mods.retreat:
            self.movements.append(Movement("retreat", speed, 0.6))
        elif rng.random() < 0.4:
            self.circle_direction *= -1

    # ------------------------------------------------------------------
    # Attacks
    # ------------------------------------------------------------------

    def _advance_pending(self, dt: float) -> None:
        pending = self.pending
        pending.elapsed += dt
        if not pending.contact_resolved and pending.elapsed >= pending.contact_at:
            pending.contact_resolved = True
            self._resolve_contact(pending.action)
            if self.pending is not pending:
                return
        if pending.elapsed >= pending.complete_at:
            self.pending = None
            if not self.is_knocked_out:
                self.state.state = CombatState.IDLE

    def _resolve_contact(self, action: ActionDefinition) -> None:
        opponent = self.opponent
        if opponent.is_knocked_out or self.match.ended_by_terminal_event:
            return
        record = self.match.current_round
        t = self.match.scheduler.round_timer

        if self.match.distance > ATTACK_RANGE + CONTACT_TOLERANCE:
            record.record(ActionRecord(self.id, opponent.id, "StrikeMiss", t, action_name=action.name))
            return

        if action.category == ActionCategory.TAKEDOWN:
            success = self.match.rng.random() < takedown_success(self.profile, opponent.profile)
            record.record(ActionRecord(
                self.id, opponent.id, "TakedownAttempt", t, success=success, action_name=action.name,
            ))
            if success:
                record.tally(self.id).takedowns += 1
                self.match.engage(self, opponent, grounded=True)
            return

        blocked = opponent.combat_state == CombatState.DEFENDING
        raw = calculate_damage(self.profile, opponent.profile, action, self.state.hp_ratio, self.match.rng)
        damage = realize_damage(raw, blocked)
        record.record(ActionRecord(
            self.id, opponent.id, "Strike", t,
            success=not blocked, damage=damage, action_name=action.name, blocked=blocked,
        ))
        if not blocked:
            record.tally(self.id).significant_strikes += 1
        opponent.receive_hit(damage, self)
        if blocked and not self.match.is_over:
            # the defender smothers the strike and ties up
            self.match.engage(self, opponent, grounded=False)

    def receive_hit(self, damage: int, attacker: "FighterAgent") -> None:
        if self.is_knocked_out:
            return
        lost = self.state.take_damage(damage)
        if lost > 0:
            self.match.observer.on_damage(self.id, lost)

        # any in-flight action dies with the hit
        self.pending = None
        self.movements.clear()

        if self.state.current_hp <= 0:
            self.state.state = CombatState.KO
            self.match.knockout(self, attacker)
            return
        self.state.state = CombatState.HIT
        self.recovery_timer = HEAVY_STUN_SECONDS if damage > HEAVY_HIT_THRESHOLD else LIGHT_STUN_SECONDS

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def _approach(self, dt: float) -> None:
        self.match.shift(-move_speed(self.profile, self.state) * 0.75 * dt)
        if self.match.distance <= ATTACK_RANGE:
            self.state.state = CombatState.IDLE

    def _footwork(self, dt: float) -> None:
        if self.movements:
            move = self.movements[0]
            step = min(dt, move.remaining)
            self.match.shift(move.rate * step)
            move.remaining -= step
            if move.remaining <= 0:
                self.movements.pop(0)

        self.circle_timer -= dt
        if self.circle_timer <= 0:
            self.circle_direction *= -1
            self.circle_timer = self.match.rng.uniform(*CIRCLE_FLIP_SECONDS)

        distance = self.match.distance
        band = range_band(distance)
        angular = {RangeBand.ATTACK: 0.6, RangeBand.CLOSE: 0.9, RangeBand.MID: 1.2}.get(band, 0.4)
        self.angle = (self.angle + self.circle_direction * angular * dt) % (2 * math.pi)

        if distance <= CLOSE_RANGE:
            before = math.sin(self.bob_phase)
            self.bob_phase += dt * move_speed(self.profile, self.state)
            self.match.shift(BOB_AMPLITUDE * (math.sin(self.bob_phase) - before))


class LiveMatch(ScheduleListener):
    """A tick-driven bout between two competitors.

    Nothing is created until ``start``; afterwards the host calls ``tick(dt)``
    once per frame until ``is_over``.
    """

    def __init__(
        self,
        fighter_a: Optional[CompetitorProfile],
        fighter_b: Optional[CompetitorProfile],
        event_type: MatchEventType = MatchEventType.REGULAR_FIGHT,
        seed: Optional[int] = None,
        strategy_a: Optional[Strategy] = None,
        strategy_b: Optional[Strategy] = None,
        observer: Optional[MatchObserver] = None,
        rules: MatchRules = STANDARD_RULES,
        apply_records: bool = True,
        catalog: tuple[ActionDefinition, ...] = ACTION_CATALOG,
    ):
        self.fighter_a = fighter_a
        self.fighter_b = fighter_b
        self.event_type = event_type
        if seed is None:
            seed = random.randrange(1 << 31)
        self.seed = seed
        self.strategies = (strategy_a, strategy_b)
        self.observer = observer or MatchObserver()
        self.rules = rules
        self.apply_records = apply_records
        self.catalog = catalog

        self.rng = random.Random(seed)
        self.scheduler = RoundScheduler(self, rules)
        self.distance = FIGHTER_SPACING
        self.agents: tuple[FighterAgent, ...] = ()
        self.rounds: list[RoundRecord] = []
        self.resolver: Optional[MatchOutcomeResolver] = None
        self.grappling: Optional[RoundSimulator] = None
        self.grapple_elapsed = 0.0
        self.grapple_segment = 0.0
        self.result: Optional[MatchResult] = None
        self.ended_by_terminal_event = False
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_over(self) -> bool:
        return self.ended_by_terminal_event

    @property
    def current_round(self) -> Optional[RoundRecord]:
        return self.rounds[-1] if self.rounds else None

    @property
    def is_grappling(self) -> bool:
        return self.grappling is not None and self.grappling.is_grappling

    def start(self) -> None:
        if self._started:
            logger.info("match already started, ignoring start()")
            return
        if self.fighter_a is None or self.fighter_b is None:
            raise MatchSetupError("both competitors must be assigned before a match starts")
        if self.fighter_a.id == self.fighter_b.id:
            raise MatchSetupError(f"{self.fighter_a.full_name} cannot fight themselves")

        agents = []
        for profile, strategy in zip((self.fighter_a, self.fighter_b), self.strategies):
            snapshot = profile.snapshot()
            agents.append(FighterAgent(self, snapshot, MatchCombatState.for_profile(snapshot, strategy)))
        agents[0].opponent, agents[1].opponent = agents[1], agents[0]
        self.agents = tuple(agents)
        self.grappling = RoundSimulator(
            Corner(agents[0].profile, agents[0].state), Corner(agents[1].profile, agents[1].state),
            self.rng, self.observer, self.rules, self.catalog,
        )
        self.resolver = MatchOutcomeResolver(self.fighter_a, self.fighter_b, self.event_type, self.seed)
        self._started = True

        logger.debug("live match %s vs %s started", self.fighter_a.full_name, self.fighter_b.full_name)
        self.scheduler.start_fight()

    def tick(self, dt: float) -> None:
        if not self._started or self.ended_by_terminal_event:
            return
        self.scheduler.tick(dt)
        if not self.scheduler.is_round_active or self.ended_by_terminal_event:
            return
        if self.is_grappling:
            self._tick_grappling(dt)
            return
        for agent in self.agents:
            agent.tick(dt)
            if self.ended_by_terminal_event or self.is_grappling:
                break

    def play(self, frame: float = 1 / 30) -> MatchResult:
        """Start if needed and tick at a fixed frame length until the bout is over."""
        self.start()
        while not self.ended_by_terminal_event:
            self.tick(frame)
        return self.result

    def shift(self, delta: float) -> None:
        self.distance = max(MIN_DISTANCE, min(MAX_DISTANCE, self.distance + delta))

    def knockout(self, loser: FighterAgent, winner: FighterAgent) -> None:
        if self.ended_by_terminal_event:
            return
        self.observer.on_knockout(loser.id)
        record = self.current_round
        record.stop(VictoryMethod.KO, winner.id, self.scheduler.round_timer)
        self.observer.on_round_end(record.round_number)
        self._conclude()

    def engage(self, attacker: FighterAgent, defender: FighterAgent, grounded: bool) -> None:
        """Tie the competitors up, or put them on the mat with ``attacker`` on top."""
        if grounded:
            attacker.state.position = PositionPhase.GROUNDED_TOP
            defender.state.position = PositionPhase.GROUNDED_BOTTOM
            attacker.state.ground_position = GroundPosition.GUARD
            defender.state.ground_position = GroundPosition.GUARD
        else:
            attacker.state.position = PositionPhase.CLINCH
            defender.state.position = PositionPhase.CLINCH
        for agent in self.agents:
            agent.pending = None
            agent.movements.clear()
            agent.recovery_timer = 0.0
            agent.state.state = CombatState.IDLE
        self.distance = MIN_DISTANCE
        self.grapple_elapsed = 0.0
        self.grapple_segment = self.rng.uniform(*SEGMENT_SECONDS)
        logger.debug(
            "%s and %s %s", attacker.profile.full_name, defender.profile.full_name,
            "hit the mat" if grounded else "tie up",
        )

    def _tick_grappling(self, dt: float) -> None:
        self.grapple_elapsed += dt
        while self.grapple_elapsed >= self.grapple_segment:
            self.grapple_elapsed -= self.grapple_segment
            record = self.current_round
            self.grappling.grapple(record, self.scheduler.round_timer, self.grapple_segment)
            if record.ended_early:
                self._stoppage(record)
                return
            if not self.grappling.is_grappling:
                self.distance = CLOSE_RANGE
                return
            self.grapple_segment = self.rng.uniform(*SEGMENT_SECONDS)

    def _stoppage(self, record: RoundRecord) -> None:
        if record.stoppage in (VictoryMethod.KO, VictoryMethod.TKO):
            for agent in self.agents:
                if agent.id != record.stoppage_winner_id:
                    agent.state.state = CombatState.KO
        self.observer.on_round_end(record.round_number)
        self._conclude()

    # ------------------------------------------------------------------
    # Scheduler callbacks
    # ------------------------------------------------------------------

    def round_started(self, round_number: int) -> None:
        self.rounds.append(RoundRecord(round_number, self.fighter_a.id, self.fighter_b.id))
        self.distance = FIGHTER_SPACING
        self.grapple_elapsed = 0.0
        for agent in self.agents:
            agent.reset_for_round()
        self.observer.on_round_start(round_number)

    def round_ended(self, round_number: int) -> None:
        record = self.current_round
        record.duration = self.scheduler.round_timer
        for agent in self.agents:
            agent.pending = None
            agent.state.drain_stamina(-BETWEEN_ROUND_STAMINA_RECOVERY)
            agent.state.add_fatigue(-BETWEEN_ROUND_FATIGUE_RECOVERY)
        self.observer.on_round_end(round_number)

    def fight_ended(self) -> None:
        self._conclude()

    def _conclude(self) -> None:
        if self.ended_by_terminal_event:
            return
        self.ended_by_terminal_event = True
        self.result = self.resolver.resolve(self.rounds, apply_records=self.apply_records)
        self.scheduler.end_fight()
        self.observer.on_fight_end(self.result)
