"""
Outcome and state-change notifications.

A match publishes to a single observer. Presentation layers subclass
``MatchObserver`` and override what they care about; ``ObserverGroup`` fans a
match out to several of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class MatchObserver:
    """No-op base observer."""

    def on_damage(self, fighter_id: str, amount: int) -> None:
        pass

    def on_knockout(self, fighter_id: str) -> None:
        pass

    def on_round_start(self, round_number: int) -> None:
        pass

    def on_round_end(self, round_number: int) -> None:
        pass

    def on_fight_end(self, result) -> None:
        pass


class ObserverGroup(MatchObserver):
    """Relays every notification to each member in registration order.

    Exceptions raised by a member are logged and do not reach the match.
    """

    def __init__(self, observers: Iterable[MatchObserver] = ()):
        self._observers = list(observers)

    def add(self, observer: MatchObserver) -> None:
        self._observers.append(observer)

    def _relay(self, method: str, *args: Any) -> None:
        for observer in self._observers:
            try:
                getattr(observer, method)(*args)
            except Exception:
                logger.exception("observer %r failed in %s", observer, method)

    def on_damage(self, fighter_id: str, amount: int) -> None:
        self._relay("on_damage", fighter_id, amount)

    def on_knockout(self, fighter_id: str) -> None:
        self._relay("on_knockout", fighter_id)

    def on_round_start(self, round_number: int) -> None:
        self._relay("on_round_start", round_number)

    def on_round_end(self, round_number: int) -> None:
        self._relay("on_round_end", round_number)

    def on_fight_end(self, result) -> None:
        self._relay("on_fight_end", result)


@dataclass
class EventLog(MatchObserver):
    """Records notifications as (name, payload) tuples in arrival order."""
    events: list[tuple[str, Any]] = field(default_factory=list)

    def on_damage(self, fighter_id: str, amount: int) -> None:
        self.events.append(("damage", (fighter_id, amount)))

    def on_knockout(self, fighter_id: str) -> None:
        self.events.append(("knockout", fighter_id))

    def on_round_start(self, round_number: int) -> None:
        self.events.append(("round_start", round_number))

    def on_round_end(self, round_number: int) -> None:
        self.events.append(("round_end", round_number))

    def on_fight_end(self, result) -> None:
        self.events.append(("fight_end", result))

    def named(self, name: str) -> list[Any]:
        return [payload for event, payload in self.events if event == name]
