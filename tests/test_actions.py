import pytest

from simulation.actions import (
    ACTION_CATALOG, ActionCategory, RangeBand, TargetZone, actions_for,
    find_action, load_catalog,
)
from simulation.errors import CatalogError


def test_catalog_covers_every_category() -> None:
    categories = {a.category for a in ACTION_CATALOG}

    assert categories == set(ActionCategory)


def test_ground_band_only_offers_submissions() -> None:
    ground = actions_for(RangeBand.GROUND)

    assert ground
    assert all(a.category == ActionCategory.SUBMISSION_ATTEMPT for a in ground)


def test_close_band_excludes_inside_strikes() -> None:
    close = actions_for(RangeBand.CLOSE)

    assert close
    assert not any(a.category == ActionCategory.HOOK for a in close)
    assert all(a.available_at(RangeBand.ATTACK) for a in close)


def test_category_filter_keeps_table_order() -> None:
    jabs = actions_for(RangeBand.ATTACK, categories=[ActionCategory.JAB])

    assert [a.name for a in jabs] == ["Jab Cross", "Double Jab", "Jab Cross Step"]


def test_find_action() -> None:
    armbar = find_action("Armbar")

    assert armbar.category == ActionCategory.SUBMISSION_ATTEMPT
    assert armbar.zone == TargetZone.BODY
    with pytest.raises(KeyError):
        find_action("Spinning Back Fist")


@pytest.mark.parametrize("row", [
    ("Bad", "Slap", "Head", 1.0, 1.0, ("Attack",), False),
    ("Bad", "Jab", "Toe", 1.0, 1.0, ("Attack",), False),
    ("Bad", "Jab", "Head", 1.0, 1.0, ("Orbit",), False),
    ("Bad", "Jab", "Head", 0.0, 1.0, ("Attack",), False),
    ("Bad", "Jab", "Head", 1.0, -1.0, ("Attack",), False),
    ("Bad", "Jab", "Head", 1.0, 1.0, (), False),
    ("Short", "Jab", "Head"),
])
def test_bad_catalog_rows_fail_at_load(row) -> None:
    with pytest.raises(CatalogError):
        load_catalog([row])


def test_empty_catalog_is_rejected() -> None:
    with pytest.raises(CatalogError):
        load_catalog([])
