import logging

from simulation.events import EventLog, MatchObserver, ObserverGroup


class Broken(MatchObserver):
    def on_damage(self, fighter_id, amount):
        raise RuntimeError("display went away")


def test_group_relays_in_order_and_survives_failures(caplog) -> None:
    first, second = EventLog(), EventLog()
    group = ObserverGroup([first, Broken()])
    group.add(second)

    with caplog.at_level(logging.ERROR, logger="simulation.events"):
        group.on_round_start(1)
        group.on_damage("a", 7)
        group.on_knockout("b")

    for log in (first, second):
        assert log.events == [("round_start", 1), ("damage", ("a", 7)), ("knockout", "b")]
    assert "on_damage" in caplog.text


def test_base_observer_ignores_everything() -> None:
    observer = MatchObserver()

    observer.on_damage("a", 1)
    observer.on_fight_end(None)
