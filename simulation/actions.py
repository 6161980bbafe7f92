"""
Static catalog of fight maneuvers.

The table is validated once when the module loads: an unknown category or zone
is a configuration error, not something to discover mid-fight.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional

from simulation.errors import CatalogError


class ActionCategory(str, enum.Enum):
    JAB = "Jab"
    HOOK = "Hook"
    BODY_STRIKE = "BodyStrike"
    KICK = "Kick"
    COMBO = "Combo"
    TAKEDOWN = "Takedown"
    SUBMISSION_ATTEMPT = "SubmissionAttempt"
    ILLEGAL = "Illegal"


class TargetZone(str, enum.Enum):
    HEAD = "Head"
    BODY = "Body"
    LEGS = "Legs"


class RangeBand(str, enum.Enum):
    ATTACK = "Attack"
    CLOSE = "Close"
    MID = "Mid"
    FAR = "Far"
    GROUND = "Ground"


MULTI_HIT_CATEGORIES = frozenset({ActionCategory.COMBO})
STRIKE_CATEGORIES = frozenset({
    ActionCategory.JAB, ActionCategory.HOOK, ActionCategory.BODY_STRIKE,
    ActionCategory.KICK, ActionCategory.COMBO, ActionCategory.ILLEGAL,
})


@dataclass(frozen=True)
class ActionDefinition:
    name: str
    category: ActionCategory
    zone: TargetZone
    duration: float
    damage_multiplier: float
    bands: frozenset = frozenset({RangeBand.ATTACK})
    special: bool = False

    @property
    def is_strike(self) -> bool:
        return self.category in STRIKE_CATEGORIES

    def available_at(self, band: RangeBand) -> bool:
        return band in self.bands


# (name, category, zone, duration, damage multiplier, bands, special)
_REACH = ("Attack", "Close")
_INSIDE = ("Attack",)
_GROUND = ("Ground",)

_RAW_CATALOG = [
    ("Jab Cross", "Jab", "Head", 0.7, 0.7, _REACH, False),
    ("Double Jab", "Jab", "Head", 0.7, 0.7, _REACH, False),
    ("Jab Cross Step", "Jab", "Head", 0.7, 0.7, _REACH, False),

    ("Lead Hook", "Hook", "Head", 0.9, 1.2, _INSIDE, False),
    ("Rear Hook", "Hook", "Head", 0.9, 1.2, _INSIDE, False),
    ("Overhand", "Hook", "Head", 0.9, 1.2, _INSIDE, False),
    ("Uppercut", "Hook", "Head", 0.9, 1.2, _INSIDE, False),
    ("Check Hook", "Hook", "Head", 0.9, 1.2, _INSIDE, False),

    ("Body Jab Cross", "BodyStrike", "Body", 0.8, 0.9, _INSIDE, False),
    ("Liver Hook", "BodyStrike", "Body", 0.8, 0.9, _INSIDE, False),
    ("Body Cross", "BodyStrike", "Body", 0.8, 0.9, _INSIDE, False),

    ("Body Kick", "Kick", "Body", 1.1, 1.4, _REACH, False),
    ("Switch Kick", "Kick", "Body", 1.1, 1.4, _REACH, False),
    ("Low Kick", "Kick", "Legs", 1.3, 1.6, _REACH, False),

    ("Combo Punch", "Combo", "Head", 1.4, 1.8, _INSIDE, False),
    ("Punch Combo", "Combo", "Head", 1.4, 1.8, _INSIDE, False),
    ("Flying Knee Punch Combo", "Combo", "Head", 1.8, 2.5, _REACH, True),

    ("Double Leg Takedown", "Takedown", "Body", 1.6, 2.0, _INSIDE, False),

    ("Downward Elbow", "Illegal", "Head", 0.9, 1.5, _INSIDE, False),
    ("Back Of Head Elbow", "Illegal", "Head", 0.9, 1.5, _INSIDE, False),
    ("Groin Knee", "Illegal", "Body", 1.0, 1.6, _INSIDE, False),
    ("Low Blow Knee", "Illegal", "Body", 1.0, 1.6, _INSIDE, False),
    ("Headbutt", "Illegal", "Head", 1.0, 1.8, _INSIDE, False),
    ("Capoeira Kick", "Kick", "Head", 1.5, 2.2, _REACH, False),

    ("Rear Naked Choke", "SubmissionAttempt", "Head", 2.0, 1.0, _GROUND, False),
    ("Guillotine", "SubmissionAttempt", "Head", 2.0, 1.0, _GROUND, False),
    ("Triangle Choke", "SubmissionAttempt", "Head", 2.0, 1.0, _GROUND, False),
    ("Armbar", "SubmissionAttempt", "Body", 2.0, 1.0, _GROUND, False),
    ("Kimura", "SubmissionAttempt", "Body", 2.0, 1.0, _GROUND, False),
    ("Heel Hook", "SubmissionAttempt", "Legs", 2.0, 1.0, _GROUND, False),
]


def load_catalog(rows: Iterable[tuple]) -> tuple[ActionDefinition, ...]:
    """Build and validate catalog entries. Raises CatalogError on any bad row."""
    catalog = []
    for row in rows:
        try:
            name, category, zone, duration, multiplier, bands, special = row
        except ValueError as e:
            raise CatalogError(f"malformed catalog row {row!r}") from e
        try:
            parsed_category = ActionCategory(category)
            parsed_zone = TargetZone(zone)
            parsed_bands = frozenset(RangeBand(b) for b in bands)
        except ValueError as e:
            raise CatalogError(f"{name}: {e}") from e
        if duration <= 0 or multiplier <= 0:
            raise CatalogError(f"{name}: duration and multiplier must be positive")
        if not parsed_bands:
            raise CatalogError(f"{name}: no range band")
        catalog.append(ActionDefinition(
            name=name,
            category=parsed_category,
            zone=parsed_zone,
            duration=float(duration),
            damage_multiplier=float(multiplier),
            bands=parsed_bands,
            special=bool(special),
        ))
    if not catalog:
        raise CatalogError("empty action catalog")
    return tuple(catalog)


ACTION_CATALOG: tuple[ActionDefinition, ...] = load_catalog(_RAW_CATALOG)


def actions_for(band: RangeBand, catalog: tuple[ActionDefinition, ...] = ACTION_CATALOG,
                categories: Optional[Iterable[ActionCategory]] = None) -> list[ActionDefinition]:
    """Catalog entries usable from a range band, in table order."""
    wanted = set(categories) if categories is not None else None
    return [
        a for a in catalog
        if a.available_at(band) and (wanted is None or a.category in wanted)
    ]


def find_action(name: str, catalog: tuple[ActionDefinition, ...] = ACTION_CATALOG) -> ActionDefinition:
    for action in catalog:
        if action.name == name:
            return action
    raise KeyError(name)
