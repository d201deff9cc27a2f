"""Achievement (badge) rule-evaluation engine for athlete performance data."""

__version__ = "1.0.0"
