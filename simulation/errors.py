"""Exceptions raised by the combat core."""


class CombatError(Exception):
    """Base class for combat core failures."""


class MatchSetupError(CombatError):
    """A match was started without a valid pair of competitors."""


class CatalogError(CombatError):
    """The action catalog contains an unknown category, zone, or bad value."""
