import pytest

from simulation.config import MatchRules
from simulation.scheduler import RoundScheduler, ScheduleListener, SchedulerPhase


class Recorder(ScheduleListener):
    def __init__(self):
        self.calls = []

    def round_started(self, round_number):
        self.calls.append(("start", round_number))

    def round_ended(self, round_number):
        self.calls.append(("end", round_number))

    def fight_ended(self):
        self.calls.append(("fight_end", None))


def _ticks(scheduler: RoundScheduler, count: int, dt: float = 1.0) -> None:
    for _ in range(count):
        scheduler.tick(dt)


def test_round_lifecycle_with_small_ticks() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec)
    scheduler.start_fight()

    assert rec.calls == [("start", 1)]
    assert scheduler.is_round_active

    _ticks(scheduler, 299)
    assert rec.calls == [("start", 1)]
    _ticks(scheduler, 1)
    assert rec.calls[-1] == ("end", 1)
    assert scheduler.is_resting
    assert scheduler.time_display() == "REST"

    _ticks(scheduler, 60)
    assert rec.calls[-1] == ("start", 2)
    assert scheduler.current_round == 2


def test_full_fight_fires_each_callback_in_order() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec)
    scheduler.start_fight()

    _ticks(scheduler, 3 * 300 + 2 * 60 + 500)

    assert rec.calls == [
        ("start", 1), ("end", 1),
        ("start", 2), ("end", 2),
        ("start", 3), ("end", 3),
        ("fight_end", None),
    ]
    assert scheduler.has_ended


def test_single_large_tick_matches_many_small_ones() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec)
    scheduler.start_fight()

    scheduler.tick(10_000.0)

    assert [c for c in rec.calls if c[0] == "fight_end"] == [("fight_end", None)]
    assert len([c for c in rec.calls if c[0] == "start"]) == 3


def test_large_tick_carries_over_into_rest() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec)
    scheduler.start_fight()

    scheduler.tick(330.0)

    assert rec.calls == [("start", 1), ("end", 1)]
    assert scheduler.rest_timer == pytest.approx(30.0)


def test_end_fight_only_notifies_once() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec)
    scheduler.start_fight()

    scheduler.end_fight()
    scheduler.end_fight()
    scheduler.tick(1000.0)

    assert rec.calls.count(("fight_end", None)) == 1
    assert scheduler.phase == SchedulerPhase.ENDED


def test_start_fight_twice_is_ignored() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec)

    scheduler.start_fight()
    scheduler.tick(5.0)
    scheduler.start_fight()

    assert rec.calls == [("start", 1)]
    assert scheduler.round_timer == pytest.approx(5.0)


def test_tick_before_start_does_nothing() -> None:
    scheduler = RoundScheduler()

    scheduler.tick(100.0)

    assert scheduler.phase == SchedulerPhase.IDLE
    assert scheduler.current_round == 0


def test_time_display_formats_clock() -> None:
    scheduler = RoundScheduler()
    scheduler.start_fight()

    _ticks(scheduler, 75)

    assert scheduler.time_display() == "Round 1: 01:15"


def test_custom_rules_shorten_the_fight() -> None:
    rec = Recorder()
    scheduler = RoundScheduler(rec, MatchRules(max_rounds=1, round_duration=10.0, rest_duration=0.0))
    scheduler.start_fight()

    _ticks(scheduler, 10)

    assert rec.calls == [("start", 1), ("end", 1), ("fight_end", None)]


@pytest.mark.parametrize("kwargs", [
    {"max_rounds": 0},
    {"max_rounds": 4},
    {"round_duration": 0},
    {"rest_duration": -1},
])
def test_invalid_rules_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        MatchRules(**kwargs)
