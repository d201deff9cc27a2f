"""
Rule Evaluator

Resolves a rule's current value (snapshot metric or historical aggregate)
and applies its comparison operator. Evaluation is fail-closed: absent data,
an unknown operator, an unparseable target or an unknown rule type all make
the rule fail without affecting sibling rules.
"""
import logging
from typing import Callable, Dict, Optional

from badge_engine.errors import MalformedRuleError
from badge_engine.logic import aggregates
from badge_engine.logic.metrics import get_metric, numeric_value, technical_skill_values
from badge_engine.schemas import AthleteDataBundle
from badge_engine.schemas_badges import OPERATORS

logger = logging.getLogger(__name__)


# ============================================================================
# Operators
# ============================================================================

def _parse_number(raw: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise MalformedRuleError(f"Target is not numeric: {raw!r}")


def build_predicate(operator: str, target_value: str) -> Callable[[Optional[float]], bool]:
    """
    Compile an operator/target pair into a predicate over a resolved value.

    An absent value (None) never satisfies the predicate.

    Raises:
        MalformedRuleError: unknown operator or unparseable target
    """
    operator = (operator or '').upper()
    if operator not in OPERATORS:
        raise MalformedRuleError(f"Unknown operator: {operator!r}")

    if operator == 'BETWEEN':
        parts = [part.strip() for part in str(target_value).split(',')]
        if len(parts) != 2:
            raise MalformedRuleError(f"BETWEEN target must be 'min,max', got: {target_value!r}")
        low, high = _parse_number(parts[0]), _parse_number(parts[1])
        return lambda value: value is not None and low <= value <= high

    target = _parse_number(target_value)
    comparisons = {
        'GT': lambda value: value > target,
        'GTE': lambda value: value >= target,
        'LT': lambda value: value < target,
        'LTE': lambda value: value <= target,
        'EQ': lambda value: value == target,
        'NEQ': lambda value: value != target,
    }
    check = comparisons[operator]
    return lambda value: value is not None and check(value)


def compare(value: Optional[float], operator: str, target_value: str) -> bool:
    return build_predicate(operator, target_value)(value)


# ============================================================================
# Resolvers (one per rule type)
# ============================================================================

def _require_window(rule) -> int:
    if rule.window is None:
        raise MalformedRuleError(f"{rule.rule_type} rule on {rule.field_name} has no window")
    return rule.window


def _skills_metric(rule, bundle: AthleteDataBundle) -> bool:
    return compare(get_metric(bundle, rule.field_name), rule.operator, rule.target_value)


def _skills_average(rule, bundle: AthleteDataBundle) -> bool:
    return compare(aggregates.skills_average(bundle), rule.operator, rule.target_value)


def _skills_any(rule, bundle: AthleteDataBundle) -> bool:
    predicate = build_predicate(rule.operator, rule.target_value)
    return any(predicate(value) for value in technical_skill_values(bundle))


def _match_count(rule, bundle: AthleteDataBundle) -> bool:
    if rule.category is None:
        raise MalformedRuleError(f"Unknown match count field: {rule.field_name!r}")
    count = aggregates.count_matches(bundle, rule.category)
    return compare(numeric_value(count), rule.operator, rule.target_value)


def _match_stat(rule, bundle: AthleteDataBundle) -> bool:
    return compare(aggregates.best_of(bundle, rule.field_name), rule.operator, rule.target_value)


def _match_streak(rule, bundle: AthleteDataBundle) -> bool:
    predicate = build_predicate(rule.operator, rule.target_value)
    return aggregates.match_streak(bundle, rule.field_name, _require_window(rule), predicate)


def _match_average(rule, bundle: AthleteDataBundle) -> bool:
    average = aggregates.match_average(bundle, rule.field_name, rule.window)
    return compare(average, rule.operator, rule.target_value)


def _wellness_streak(rule, bundle: AthleteDataBundle) -> bool:
    predicate = build_predicate(rule.operator, rule.target_value)
    return aggregates.wellness_streak(bundle, rule.field_name, _require_window(rule), predicate)


def _fitness_percentile(rule, bundle: AthleteDataBundle) -> bool:
    return compare(aggregates.fitness_percentile(bundle), rule.operator, rule.target_value)


def _peakscore_percentile(rule, bundle: AthleteDataBundle) -> bool:
    return compare(aggregates.peak_score_percentile(bundle), rule.operator, rule.target_value)


RESOLVERS: Dict[str, Callable] = {
    'SKILLS_METRIC': _skills_metric,
    'SKILLS_AVERAGE': _skills_average,
    'SKILLS_ANY': _skills_any,
    'MATCH_COUNT': _match_count,
    'MATCH_STAT': _match_stat,
    'MATCH_STREAK': _match_streak,
    'MATCH_AVERAGE': _match_average,
    'WELLNESS_STREAK': _wellness_streak,
    'FITNESS_PERCENTILE': _fitness_percentile,
    'PEAKSCORE_PERCENTILE': _peakscore_percentile,
}


def evaluate_rule(rule, bundle: AthleteDataBundle) -> bool:
    """
    Evaluate one rule against an athlete's data bundle.

    Returns:
        True if the rule passes, False otherwise (including every failure mode)
    """
    resolver = RESOLVERS.get(rule.rule_type)
    if resolver is None:
        logger.warning(f"Unknown rule type {rule.rule_type!r} on field {rule.field_name!r}, failing rule")
        return False

    try:
        passed = resolver(rule, bundle)
    except MalformedRuleError as e:
        logger.warning(f"Malformed {rule.rule_type} rule on {rule.field_name!r}, failing rule: {e}")
        return False

    logger.debug(
        f"Rule eval: {rule.rule_type} {rule.field_name} {rule.operator} {rule.target_value} "
        f"(athlete: {bundle.athlete_id}) -> {passed}"
    )
    return passed
