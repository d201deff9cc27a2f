"""Exceptions raised by the badge engine."""


class BadgeEngineError(Exception):
    """Base class for badge engine errors."""


class AthleteNotFoundError(BadgeEngineError):
    """The athlete being evaluated does not exist."""

    def __init__(self, athlete_id: str):
        self.athlete_id = athlete_id
        super().__init__(f"Athlete not found: {athlete_id}")


class MalformedRuleError(BadgeEngineError):
    """A rule's target or parameters cannot be interpreted."""
