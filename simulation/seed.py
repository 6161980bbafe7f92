"""Random competitor generation and database seeding."""

from __future__ import annotations

import logging
import random
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.models import Competitor, WeightClass
from simulation.profile import CompetitorProfile, FightingStyle

logger = logging.getLogger(__name__)

_FIRST_NAMES = [
    "Carlos", "Luis", "Andre", "Marcus", "Kevin", "Jake", "Tony", "Darian",
    "Ramon", "Victor", "Elias", "Jordan", "Miles", "Cole", "Dante", "Felix",
    "Bruno", "Ivan", "Diego", "Marco", "Omar", "Javier", "Rafael", "Shane",
    "Yusuf", "Hamza", "Tariq", "Khalid", "Wei", "Jin", "Ryu", "Takeshi",
    "Dmitri", "Alexei", "Pavel", "Nikolai", "Conor", "Declan", "Ronan", "Magnus",
]

_LAST_NAMES = [
    "Silva", "Santos", "Lima", "Costa", "Pereira", "Alves", "Souza", "Johnson",
    "Williams", "Brown", "Davis", "Garcia", "Martinez", "Lopez", "Torres", "Ali",
    "Hassan", "Khan", "Malik", "Zhang", "Wang", "Chen", "Ivanov", "Petrov",
    "Volkov", "Murphy", "Kelly", "Walsh", "Eriksson", "Larsson", "Diaz", "Reyes",
]

_NICKNAMES = [
    "The Hammer", "Iron", "The Spider", "Bones", "The Eagle", "Cyborg",
    "The Natural", "Rush", "The Reaper", "Thunder", "The Python", "Smooth",
]

_NATIONALITIES = [
    "American", "Brazilian", "Mexican", "Russian", "Irish", "British",
    "Canadian", "Australian", "Swedish", "Japanese", "Georgian", "Dagestani",
    "Polish", "Dutch", "French", "Nigerian", "New Zealander",
]

# Upper bounds are exclusive
_STAT_RANGES = {
    "strength": (30, 70),
    "technique": (30, 70),
    "speed": (30, 70),
    "stamina": (40, 70),
    "defense": (30, 70),
    "wrestling": (20, 60),
    "grappling": (20, 60),
    "potential": (50, 95),
}


def random_stats(rng: random.Random) -> dict[str, int]:
    return {attr: rng.randrange(lo, hi) for attr, (lo, hi) in _STAT_RANGES.items()}


def random_profile(rng: random.Random, used_names: Optional[set[str]] = None) -> CompetitorProfile:
    """A prospect with rookie-level attributes and a random style."""
    used = used_names if used_names is not None else set()
    for _ in range(200):
        first, last = rng.choice(_FIRST_NAMES), rng.choice(_LAST_NAMES)
        if f"{first} {last}" not in used:
            break
    else:
        last = f"{last} Jr."
    used.add(f"{first} {last}")

    return CompetitorProfile(
        first_name=first,
        last_name=last,
        nickname=rng.choice(_NICKNAMES) if rng.random() < 0.3 else None,
        style=rng.choice(list(FightingStyle)),
        **random_stats(rng),
    )


def _gen_record(age: int, rng: random.Random) -> dict:
    """Age-appropriate record, assuming a pro debut at 18-20."""
    if age <= 21:
        total = rng.randint(0, 6)
    elif age <= 25:
        total = rng.randint(3, 14)
    elif age <= 30:
        total = rng.randint(8, 24)
    else:
        total = rng.randint(14, 34)

    wins = rng.randint(int(total * 0.4), int(total * 0.75))
    draws = rng.randint(0, 1) if total > 5 else 0
    wins = max(0, wins - draws)
    losses = total - wins - draws

    ko_wins = int(wins * rng.uniform(0.1, 0.45))
    sub_wins = int((wins - ko_wins) * rng.uniform(0.1, 0.4))
    return {
        "wins": wins, "losses": losses, "draws": draws,
        "ko_wins": ko_wins, "sub_wins": sub_wins,
        "decision_wins": wins - ko_wins - sub_wins,
        "popularity": rng.randrange(10, 40),
    }


def seed_competitors(session: Session, count: int = 24, seed: Optional[int] = None) -> list[Competitor]:
    """Insert ``count`` random competitors spread over the weight classes."""
    rng = random.Random(seed)
    used = {c.name for c in session.scalars(select(Competitor)).all()}
    classes = list(WeightClass)

    competitors = []
    for i in range(count):
        profile = random_profile(rng, used)
        age = rng.randint(20, 36)
        competitor = Competitor(
            first_name=profile.first_name,
            last_name=profile.last_name,
            nickname=profile.nickname,
            age=age,
            nationality=rng.choice(_NATIONALITIES),
            weight_class=classes[i % len(classes)],
            style=profile.style,
            strength=profile.strength,
            technique=profile.technique,
            speed=profile.speed,
            stamina=profile.stamina,
            defense=profile.defense,
            wrestling=profile.wrestling,
            grappling=profile.grappling,
            potential=profile.potential,
            **_gen_record(age, rng),
        )
        session.add(competitor)
        competitors.append(competitor)

    session.flush()
    logger.info("seeded %d competitors", len(competitors))
    return competitors
