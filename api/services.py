"""Business logic for the fight simulation API."""

from __future__ import annotations

import json
import logging
import random
import threading
import uuid
from typing import Optional

from sqlalchemy import or_, select

from models.database import create_db_engine, create_schema, create_session_factory
from models.models import Bout, Competitor, WeightClass
from simulation.batch import run_batch
from simulation.errors import CombatError
from simulation.fast_forward import simulate
from simulation.outcome import MatchEventType
from simulation.profile import ATTRIBUTES, FightingStyle, clamp_attribute
from simulation.state import Strategy

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 5000

# ---------------------------------------------------------------------------
# Module-level DB state
# ---------------------------------------------------------------------------

_SessionFactory = None
_tasks: dict = {}
_tasks_lock = threading.Lock()


def init_db(db_url: str) -> None:
    global _SessionFactory
    engine = create_db_engine(db_url)
    create_schema(engine)
    _SessionFactory = create_session_factory(engine)


# ---------------------------------------------------------------------------
# Task helpers
# ---------------------------------------------------------------------------

def _new_task() -> str:
    task_id = uuid.uuid4().hex[:8]
    with _tasks_lock:
        _tasks[task_id] = {"status": "pending", "result": None}
    return task_id


def _task_done(task_id: str, result: dict) -> None:
    with _tasks_lock:
        _tasks[task_id] = {"status": "done", "result": result}


def _task_error(task_id: str, error: str) -> None:
    with _tasks_lock:
        _tasks[task_id] = {"status": "error", "error": error}


def get_task(task_id: str) -> Optional[dict]:
    with _tasks_lock:
        return _tasks.get(task_id)


# ---------------------------------------------------------------------------
# Fighters
# ---------------------------------------------------------------------------

def get_fighters(weight_class: Optional[str] = None, limit: int = 100) -> list[dict]:
    with _SessionFactory() as session:
        q = select(Competitor)
        if weight_class:
            try:
                q = q.where(Competitor.weight_class == WeightClass(weight_class))
            except ValueError:
                return []
        q = q.order_by(Competitor.last_name, Competitor.first_name).limit(limit)
        return [_fighter_dict(c) for c in session.execute(q).scalars().all()]


def get_fighter(fighter_id: int) -> Optional[dict]:
    with _SessionFactory() as session:
        c = session.get(Competitor, fighter_id)
        return _fighter_dict(c) if c else None


def _fighter_dict(c: Competitor) -> dict:
    profile = c.to_profile()
    return {
        "id": c.id,
        "name": c.name,
        "nickname": c.nickname,
        "age": c.age,
        "nationality": c.nationality,
        "weight_class": _enum_value(c.weight_class),
        "style": _enum_value(c.style),
        "attributes": {attr: getattr(c, attr) for attr in ATTRIBUTES},
        "potential": c.potential,
        "overall": profile.overall,
        "max_hp": profile.max_hp,
        "record": c.record,
        "ko_wins": c.ko_wins,
        "sub_wins": c.sub_wins,
        "decision_wins": c.decision_wins,
        "popularity": c.popularity,
    }


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


def create_fighter(data: dict) -> dict:
    first_name = (data.get("first_name") or "").strip()
    if not first_name:
        return {"error": "first_name is required"}
    nickname = (data.get("nickname") or "").strip() or None
    if nickname and len(nickname) > 30:
        return {"error": "Nickname must be 30 characters or less."}

    try:
        weight_class = WeightClass(data.get("weight_class", WeightClass.LIGHTWEIGHT.value))
        style = FightingStyle(data.get("style", FightingStyle.BALANCED.value))
    except ValueError as e:
        return {"error": str(e)}

    attributes = {}
    for attr in ATTRIBUTES + ("potential",):
        if attr not in data:
            continue
        try:
            attributes[attr] = clamp_attribute(float(data[attr]))
        except (TypeError, ValueError):
            return {"error": f"{attr} must be a number"}

    with _SessionFactory() as session:
        competitor = Competitor(
            first_name=first_name,
            last_name=(data.get("last_name") or "").strip(),
            nickname=nickname,
            age=int(data.get("age", 25)),
            nationality=data.get("nationality") or "Unknown",
            weight_class=weight_class,
            style=style,
            **attributes,
        )
        session.add(competitor)
        session.commit()
        logger.info("created competitor %s (%d)", competitor.name, competitor.id)
        return {"success": True, "fighter": _fighter_dict(competitor)}


# ---------------------------------------------------------------------------
# Bouts
# ---------------------------------------------------------------------------

def _parse_event_type(value) -> MatchEventType:
    if value is None:
        return MatchEventType.REGULAR_FIGHT
    if isinstance(value, int):
        return MatchEventType(value)
    return MatchEventType[str(value).upper()]


def _parse_strategy(value) -> Optional[Strategy]:
    return Strategy(value) if value else None


def simulate_bout(
    fighter_a_id: int,
    fighter_b_id: int,
    event_type=None,
    seed: Optional[int] = None,
    strategy_a: Optional[str] = None,
    strategy_b: Optional[str] = None,
) -> dict:
    """Fast-forward one bout, store it, and write both records back."""
    try:
        parsed_event = _parse_event_type(event_type)
        parsed_a, parsed_b = _parse_strategy(strategy_a), _parse_strategy(strategy_b)
    except (KeyError, ValueError) as e:
        return {"error": f"Invalid bout option: {e}"}

    with _SessionFactory() as session:
        fa = session.get(Competitor, fighter_a_id)
        fb = session.get(Competitor, fighter_b_id)
        if not fa or not fb:
            return {"error": "Fighter not found"}

        profile_a, profile_b = fa.to_profile(), fb.to_profile()
        try:
            result = simulate(
                profile_a, profile_b, parsed_event,
                seed=seed, strategy_a=parsed_a, strategy_b=parsed_b,
            )
        except CombatError as e:
            return {"error": str(e)}

        fa.apply_record(profile_a.record)
        fb.apply_record(profile_b.record)
        bout = Bout.from_result(result)
        session.add(bout)
        session.commit()

        payload = result.to_dict()
        payload["bout_id"] = bout.id
        payload["fighter_a"] = fa.name
        payload["fighter_b"] = fb.name
        payload["winner"] = {fa.id: fa.name, fb.id: fb.name}.get(bout.winner_id)
        return payload


def get_bout_history(limit: int = 20, fighter_id: Optional[int] = None) -> list[dict]:
    with _SessionFactory() as session:
        q = select(Bout)
        if fighter_id is not None:
            q = q.where(or_(Bout.fighter_a_id == fighter_id, Bout.fighter_b_id == fighter_id))
        q = q.order_by(Bout.id.desc()).limit(limit)
        return [_bout_dict(b) for b in session.execute(q).scalars().all()]


def _bout_dict(b: Bout) -> dict:
    return {
        "id": b.id,
        "fighter_a_id": b.fighter_a_id,
        "fighter_b_id": b.fighter_b_id,
        "fighter_a": b.fighter_a.name if b.fighter_a else None,
        "fighter_b": b.fighter_b.name if b.fighter_b else None,
        "winner_id": b.winner_id,
        "method": _enum_value(b.method),
        "round": b.round_ended,
        "time": b.time_ended,
        "description": b.description,
        "event_type": b.event_type.name if hasattr(b.event_type, "name") else str(b.event_type),
        "seed": b.seed,
        "scorecards": json.loads(b.scorecards or "[]"),
    }


# ---------------------------------------------------------------------------
# Batch simulation (background)
# ---------------------------------------------------------------------------

def start_batch(fighter_a_id: int, fighter_b_id: int, count: int, base_seed: Optional[int] = None) -> dict:
    if count < 1 or count > MAX_BATCH_SIZE:
        return {"error": f"count must be between 1 and {MAX_BATCH_SIZE}"}
    if fighter_a_id == fighter_b_id:
        return {"error": "A fighter cannot be matched against themselves"}
    with _SessionFactory() as session:
        if not session.get(Competitor, fighter_a_id) or not session.get(Competitor, fighter_b_id):
            return {"error": "Fighter not found"}

    task_id = _new_task()
    threading.Thread(
        target=_run_batch,
        args=(task_id, fighter_a_id, fighter_b_id, count,
              base_seed if base_seed is not None else random.randint(0, 999_999)),
        daemon=True,
    ).start()
    return {"task_id": task_id}


def _run_batch(task_id: str, fighter_a_id: int, fighter_b_id: int, count: int, base_seed: int) -> None:
    try:
        with _SessionFactory() as session:
            fa = session.get(Competitor, fighter_a_id)
            fb = session.get(Competitor, fighter_b_id)
            profile_a, profile_b = fa.to_profile(), fb.to_profile()

        summary = run_batch(profile_a, profile_b, count, base_seed)
        result = summary.to_dict()
        result["base_seed"] = base_seed
        result["fighters"] = {profile_a.id: profile_a.full_name, profile_b.id: profile_b.full_name}
        _task_done(task_id, result)
    except Exception as e:
        logger.exception("batch task %s failed", task_id)
        _task_error(task_id, str(e))
