"""SQLAlchemy ORM models for the fight simulation store."""

from __future__ import annotations

import enum
import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer,
    String, Text,
)
from sqlalchemy.orm import Mapped, relationship

from simulation.outcome import MatchEventType, MatchResult, VictoryMethod
from simulation.profile import ATTRIBUTES, CompetitorProfile, FightingStyle, FightRecord

from .database import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class WeightClass(str, enum.Enum):
    ATOMWEIGHT = "Atomweight"
    STRAWWEIGHT = "Strawweight"
    FLYWEIGHT = "Flyweight"
    BANTAMWEIGHT = "Bantamweight"
    FEATHERWEIGHT = "Featherweight"
    LIGHTWEIGHT = "Lightweight"
    WELTERWEIGHT = "Welterweight"
    MIDDLEWEIGHT = "Middleweight"
    LIGHT_HEAVYWEIGHT = "LightHeavyweight"
    CRUISERWEIGHT = "Cruiserweight"
    HEAVYWEIGHT = "Heavyweight"


# ---------------------------------------------------------------------------
# Competitor
# ---------------------------------------------------------------------------

class Competitor(Base):
    """A stored fighter: identity, the seven combat attributes and the record."""

    __tablename__ = "competitors"

    id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = Column(String(60), nullable=False)
    last_name: Mapped[str] = Column(String(60), nullable=False, default="")
    nickname: Mapped[Optional[str]] = Column(String(30), nullable=True)
    age: Mapped[int] = Column(Integer, nullable=False, default=25)
    nationality: Mapped[str] = Column(String(60), nullable=False, default="Unknown")
    weight_class: Mapped[str] = Column(Enum(WeightClass), nullable=False, default=WeightClass.LIGHTWEIGHT)
    style: Mapped[str] = Column(Enum(FightingStyle), nullable=False, default=FightingStyle.BALANCED)

    # Combat attributes (0–100)
    strength: Mapped[int] = Column(Integer, nullable=False, default=50)
    technique: Mapped[int] = Column(Integer, nullable=False, default=50)
    speed: Mapped[int] = Column(Integer, nullable=False, default=50)
    stamina: Mapped[int] = Column(Integer, nullable=False, default=50)
    defense: Mapped[int] = Column(Integer, nullable=False, default=50)
    wrestling: Mapped[int] = Column(Integer, nullable=False, default=50)
    grappling: Mapped[int] = Column(Integer, nullable=False, default=50)
    potential: Mapped[int] = Column(Integer, nullable=False, default=70)

    # Career
    wins: Mapped[int] = Column(Integer, default=0)
    losses: Mapped[int] = Column(Integer, default=0)
    draws: Mapped[int] = Column(Integer, default=0)
    ko_wins: Mapped[int] = Column(Integer, default=0)
    sub_wins: Mapped[int] = Column(Integer, default=0)
    decision_wins: Mapped[int] = Column(Integer, default=0)
    popularity: Mapped[int] = Column(Integer, default=20)

    __table_args__ = (
        Index("ix_competitor_weight_class", "weight_class"),
        *(CheckConstraint(f"{attr} BETWEEN 0 AND 100") for attr in ATTRIBUTES + ("potential",)),
    )

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.draws}"

    def to_profile(self) -> CompetitorProfile:
        """Profile for the combat core. The profile id is the row id as a string."""
        return CompetitorProfile(
            first_name=self.first_name,
            last_name=self.last_name or "",
            nickname=self.nickname,
            style=FightingStyle(self.style),
            id=str(self.id),
            record=FightRecord(
                wins=self.wins or 0,
                losses=self.losses or 0,
                draws=self.draws or 0,
                ko_wins=self.ko_wins or 0,
                submission_wins=self.sub_wins or 0,
                decision_wins=self.decision_wins or 0,
                popularity=self.popularity if self.popularity is not None else 20,
            ),
            **{attr: getattr(self, attr) for attr in ATTRIBUTES + ("potential",)},
        )

    def apply_record(self, record: FightRecord) -> None:
        self.wins = record.wins
        self.losses = record.losses
        self.draws = record.draws
        self.ko_wins = record.ko_wins
        self.sub_wins = record.submission_wins
        self.decision_wins = record.decision_wins
        self.popularity = record.popularity

    def __repr__(self) -> str:
        return f"<Competitor {self.name} ({self.weight_class}, {self.record})>"


# ---------------------------------------------------------------------------
# Bout
# ---------------------------------------------------------------------------

class Bout(Base):
    """A single simulated bout and its verdict."""

    __tablename__ = "bouts"

    id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    fighter_a_id: Mapped[int] = Column(Integer, ForeignKey("competitors.id"), nullable=False)
    fighter_b_id: Mapped[int] = Column(Integer, ForeignKey("competitors.id"), nullable=False)
    winner_id: Mapped[Optional[int]] = Column(Integer, ForeignKey("competitors.id"), nullable=True)
    event_type: Mapped[str] = Column(Enum(MatchEventType), nullable=False, default=MatchEventType.REGULAR_FIGHT)
    method: Mapped[str] = Column(Enum(VictoryMethod), nullable=False)
    round_ended: Mapped[int] = Column(Integer, nullable=False)
    time_ended: Mapped[str] = Column(String(10), nullable=False)
    description: Mapped[str] = Column(Text, nullable=False)
    seed: Mapped[Optional[int]] = Column(Integer, nullable=True)
    scorecards: Mapped[str] = Column(Text, default="[]")
    created_at: Mapped[datetime] = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    fighter_a: Mapped["Competitor"] = relationship("Competitor", foreign_keys=[fighter_a_id])
    fighter_b: Mapped["Competitor"] = relationship("Competitor", foreign_keys=[fighter_b_id])

    __table_args__ = (
        Index("ix_bout_fighter_a", "fighter_a_id"),
        Index("ix_bout_fighter_b", "fighter_b_id"),
    )

    @classmethod
    def from_result(cls, result: MatchResult) -> "Bout":
        data = result.to_dict()
        return cls(
            fighter_a_id=int(result.fighter_a_id),
            fighter_b_id=int(result.fighter_b_id),
            winner_id=int(result.winner_id) if result.winner_id is not None else None,
            event_type=result.event_type,
            method=result.method,
            round_ended=result.round_ended,
            time_ended=result.time_display,
            description=result.description,
            seed=result.seed,
            scorecards=json.dumps(data["scorecards"]),
        )

    def __repr__(self) -> str:
        return f"<Bout {self.fighter_a_id} vs {self.fighter_b_id} {self.method}>"
