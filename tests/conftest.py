import pytest

from simulation.profile import CompetitorProfile


def make_striker(**overrides) -> CompetitorProfile:
    attrs = dict(
        strength=90, technique=85, speed=80, stamina=70,
        defense=60, wrestling=30, grappling=25,
    )
    attrs.update(overrides)
    return CompetitorProfile("Fighter", "A", **attrs)


def make_grappler(**overrides) -> CompetitorProfile:
    attrs = dict(
        strength=60, technique=65, speed=60, stamina=85,
        defense=75, wrestling=90, grappling=88,
    )
    attrs.update(overrides)
    return CompetitorProfile("Fighter", "B", **attrs)


def make_even(name: str) -> CompetitorProfile:
    return CompetitorProfile(
        name, "Even",
        strength=70, technique=70, speed=70, stamina=70,
        defense=70, wrestling=70, grappling=70,
    )


@pytest.fixture
def striker() -> CompetitorProfile:
    return make_striker()


@pytest.fixture
def grappler() -> CompetitorProfile:
    return make_grappler()
