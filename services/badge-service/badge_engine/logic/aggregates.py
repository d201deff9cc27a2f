"""
Historical Aggregator

Derived values that need a scan over time-ordered records: streaks, running
averages, best-of-N match statistics, match counts and percentile buckets.
Every function is pure given the AthleteDataBundle. Records in the bundle are
ordered newest first.

Percentiles here are COARSE BANDS over a composite score, not statistical
percentiles against the athlete population.
"""
import json
import logging
from statistics import mean
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from badge_engine.logic.metrics import (
    WELLNESS_FIELDS,
    get_metrics,
    numeric_value,
    technical_skill_values,
)
from badge_engine.schemas import AthleteDataBundle, MatchPerformance, WellnessEntry

logger = logging.getLogger(__name__)

Predicate = Callable[[Optional[float]], bool]

# Special WELLNESS_STREAK field: every wellness metric present and non-zero
ALL_WELLNESS_METRICS = 'allMetrics'

# Match stat names read from the record itself rather than the stats payload
RATING_FIELDS = {'matchRating', 'rating'}

FIELDING_STATS = ('catches', 'runOuts', 'stumpings')

# (minimum composite score, percentile band), checked top-down
PERCENTILE_BANDS: Tuple[Tuple[float, int], ...] = (
    (80, 95),
    (70, 90),
    (60, 75),
    (50, 50),
)
PERCENTILE_FLOOR = 25

# field -> (blend weight, reference benchmark, higher is better)
FITNESS_BENCHMARKS: Dict[str, Tuple[float, float, bool]] = {
    'pushupScore': (0.20, 40, True),
    'pullupScore': (0.15, 15, True),
    'verticalJump': (0.15, 60, True),
    'gripStrength': (0.10, 50, True),
    'yoyoTest': (0.15, 19, True),
    'sprintTime': (0.10, 3.0, False),
    'sprint50m': (0.05, 6.5, False),
    'shuttleRun': (0.05, 10.0, False),
    'run5kTime': (0.05, 1200, False),
}


# ============================================================================
# Generic window helpers
# ============================================================================

def window_satisfied(values: Sequence[Optional[float]], window: int, predicate: Predicate) -> bool:
    """
    True only if the `window` most recent values all satisfy `predicate`.

    Fewer than `window` values is insufficient data and fails.
    """
    if window < 1 or len(values) < window:
        return False
    return all(predicate(value) for value in values[:window])


def streak_length(values: Sequence[Optional[float]], predicate: Predicate) -> int:
    """Consecutive most-recent values satisfying `predicate` (diagnostic only)"""
    length = 0
    for value in values:
        if not predicate(value):
            break
        length += 1
    return length


def running_average(values: Sequence[Optional[float]]) -> Optional[float]:
    """Mean over present values; None if nothing is present"""
    present = [value for value in values if value is not None]
    if not present:
        return None
    return mean(present)


def percentile_bucket(score: float) -> int:
    """Map a 0-100 composite score onto a coarse percentile band"""
    for threshold, band in PERCENTILE_BANDS:
        if score >= threshold:
            return band
    return PERCENTILE_FLOOR


# ============================================================================
# Match performance
# ============================================================================

def parse_stats(match: MatchPerformance) -> Optional[Dict]:
    """Decode a match's stats payload; malformed payloads are skipped"""
    if not match.stats:
        return None
    try:
        stats = json.loads(match.stats)
    except (TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed stats payload for match {match.match_id}: {e}")
        return None
    if not isinstance(stats, dict):
        logger.warning(f"Skipping non-object stats payload for match {match.match_id}")
        return None
    return stats


def match_field_value(match: MatchPerformance, field_name: str) -> Optional[float]:
    if field_name in RATING_FIELDS:
        return numeric_value(match.rating)
    stats = parse_stats(match)
    if stats is None:
        return None
    return numeric_value(stats.get(field_name))


def played_matches(bundle: AthleteDataBundle) -> List[MatchPerformance]:
    return [match for match in bundle.matches if match.played]


def count_matches(bundle: AthleteDataBundle, category: str) -> int:
    """Number of matches in a semantic category: played, won or fielding"""
    matches = played_matches(bundle)
    if category == 'played':
        return len(matches)
    if category == 'won':
        return sum(1 for match in matches if match.result == 'WIN')
    if category == 'fielding':
        return sum(
            1 for match in matches
            if any(match_field_value(match, stat) for stat in FIELDING_STATS)
        )
    raise ValueError(f"Unknown match category: {category}")


def best_of(bundle: AthleteDataBundle, field_name: str) -> Optional[float]:
    """Maximum value of a stats field across all played matches"""
    values = [match_field_value(match, field_name) for match in played_matches(bundle)]
    present = [value for value in values if value is not None]
    return max(present) if present else None


def match_streak(
    bundle: AthleteDataBundle,
    field_name: str,
    window: int,
    predicate: Predicate
) -> bool:
    values = [match_field_value(match, field_name) for match in played_matches(bundle)]
    passed = window_satisfied(values, window, predicate)
    logger.debug(
        f"Match streak {field_name}: {streak_length(values, predicate)} consecutive "
        f"of {window} required ({len(values)} matches) -> {passed}"
    )
    return passed


def match_average(
    bundle: AthleteDataBundle,
    field_name: str,
    window: Optional[int] = None
) -> Optional[float]:
    """
    Mean of a field over the `window` most recent played matches.

    With a window, fewer matches than the window is insufficient data.
    Without one, every loaded match counts.
    """
    matches = played_matches(bundle)
    if window is not None:
        if len(matches) < window:
            return None
        matches = matches[:window]
    return running_average([match_field_value(match, field_name) for match in matches])


# ============================================================================
# Wellness history
# ============================================================================

def wellness_value(entry: WellnessEntry, field_name: str) -> Optional[float]:
    return numeric_value(entry.metrics.get(field_name))


def has_all_wellness_metrics(entry: WellnessEntry) -> bool:
    return all(wellness_value(entry, field) is not None for field in WELLNESS_FIELDS)


def wellness_streak(
    bundle: AthleteDataBundle,
    field_name: str,
    window: int,
    predicate: Predicate
) -> bool:
    """
    True only if the `window` most recent entries all satisfy the rule.

    For `allMetrics` an entry satisfies the rule when every wellness metric
    is present and non-zero; otherwise the entry's field is compared.
    """
    if field_name == ALL_WELLNESS_METRICS:
        flags = [has_all_wellness_metrics(entry) for entry in bundle.wellness]
        passed = window_satisfied(flags, window, bool)
        logger.debug(
            f"Wellness streak {field_name}: {streak_length(flags, bool)} consecutive "
            f"of {window} required ({len(flags)} entries) -> {passed}"
        )
        return passed

    values = [wellness_value(entry, field_name) for entry in bundle.wellness]
    passed = window_satisfied(values, window, predicate)
    logger.debug(
        f"Wellness streak {field_name}: {streak_length(values, predicate)} consecutive "
        f"of {window} required ({len(values)} entries) -> {passed}"
    )
    return passed


# ============================================================================
# Snapshot composites
# ============================================================================

def skills_average(bundle: AthleteDataBundle) -> Optional[float]:
    """Mean of the present technical-skill values"""
    return running_average(technical_skill_values(bundle))


def fitness_composite(bundle: AthleteDataBundle) -> Optional[float]:
    """
    Weighted 0-100 blend of fitness fields against reference benchmarks.

    Each present field scores value/benchmark (benchmark/value for timed
    fields), capped at 100. Weights are renormalised over present fields.
    """
    present = get_metrics(bundle, FITNESS_BENCHMARKS)
    if not present:
        return None

    total = 0.0
    total_weight = 0.0
    for field_name, value in present.items():
        weight, benchmark, higher_is_better = FITNESS_BENCHMARKS[field_name]
        ratio = value / benchmark if higher_is_better else benchmark / value
        total += weight * min(100.0, max(0.0, ratio * 100))
        total_weight += weight
    return total / total_weight


def peak_score(bundle: AthleteDataBundle) -> Optional[float]:
    """Snapshot peakScore if recorded, else ten times the technical-skill mean"""
    recorded = numeric_value(bundle.skills.get('peakScore'))
    if recorded is not None:
        return recorded
    average = skills_average(bundle)
    return average * 10 if average is not None else None


def fitness_percentile(bundle: AthleteDataBundle) -> Optional[int]:
    composite = fitness_composite(bundle)
    return percentile_bucket(composite) if composite is not None else None


def peak_score_percentile(bundle: AthleteDataBundle) -> Optional[int]:
    score = peak_score(bundle)
    return percentile_bucket(score) if score is not None else None
