"""
Metric Accessor

Reads named numeric fields from an athlete's current skill snapshot.
Null, missing and exactly-zero values all mean "not provided" and come back
as None, so an unmeasured metric never scores as a true zero.
"""
from typing import Any, Dict, List, Optional

from badge_engine.schemas import AthleteDataBundle


# Technical skills scanned by SKILLS_AVERAGE / SKILLS_ANY
TECHNICAL_SKILL_FIELDS = (
    'battingStance',
    'battingGrip',
    'battingBalance',
    'bowlingGrip',
    'followThrough',
    'runUp',
    'flatCatch',
    'highCatch',
    'pickUp',
    'throw',
)

# Metrics checked by the `allMetrics` wellness streak
WELLNESS_FIELDS = (
    'waterIntake',
    'sleepScore',
    'moodScore',
    'protein',
    'carbohydrates',
    'fats',
    'totalCalories',
)


def numeric_value(value: Any) -> Optional[float]:
    """Coerce a raw value to float; None for absent, zero or non-numeric"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number == 0 or number != number:  # zero or NaN
        return None
    return number


def get_metric(bundle: AthleteDataBundle, field_name: str) -> Optional[float]:
    """Value of `field_name` on the current skill snapshot, or None if absent"""
    return numeric_value(bundle.skills.get(field_name))


def get_metrics(bundle: AthleteDataBundle, field_names) -> Dict[str, float]:
    """Present values among `field_names`, absent ones dropped"""
    values = {}
    for field_name in field_names:
        value = get_metric(bundle, field_name)
        if value is not None:
            values[field_name] = value
    return values


def technical_skill_values(bundle: AthleteDataBundle) -> List[float]:
    return list(get_metrics(bundle, TECHNICAL_SKILL_FIELDS).values())
