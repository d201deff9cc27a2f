"""
Unit tests for the rule evaluator (operators, absent data, rule types)
"""
import pytest

from badge_engine.errors import MalformedRuleError
from badge_engine.logic.rule_evaluator import build_predicate, compare, evaluate_rule
from badge_engine.schemas_badges import (
    FitnessPercentileRule,
    MatchAverageRule,
    MatchCountRule,
    MatchStatRule,
    MatchStreakRule,
    PeakScorePercentileRule,
    SkillsAnyRule,
    SkillsAverageRule,
    SkillsMetricRule,
    UnsupportedRule,
    WellnessStreakRule,
)


# ============================================================================
# Operators
# ============================================================================

class TestOperators:
    """Comparison operators over resolved values"""

    @pytest.mark.parametrize("operator,target,value,expected", [
        ("GT", "10", 11, True),
        ("GT", "10", 10, False),
        ("GTE", "10", 10, True),
        ("LT", "8", 7.5, True),
        ("LT", "8", 8, False),
        ("LTE", "8", 8, True),
        ("EQ", "10", 10, True),
        ("EQ", "10", 9, False),
        ("NEQ", "10", 9, True),
        ("NEQ", "10", 10, False),
    ])
    def test_basic_operators(self, operator, target, value, expected):
        """Each operator compares against a numeric target"""
        assert compare(value, operator, target) is expected

    @pytest.mark.parametrize("value,expected", [
        (2500, True),
        (2200, True),
        (2800, True),
        (2900, False),
        (2100, False),
    ])
    def test_between_is_inclusive(self, value, expected):
        """BETWEEN 'min,max' includes both bounds"""
        assert compare(value, "BETWEEN", "2200,2800") is expected

    def test_absent_value_never_passes(self):
        """None fails every operator, even permissive ones"""
        for operator in ("GT", "GTE", "LT", "LTE", "EQ", "NEQ"):
            assert compare(None, operator, "0") is False
        assert compare(None, "BETWEEN", "0,100") is False

    def test_lowercase_operator_accepted(self):
        """Operator names are case-insensitive"""
        assert compare(5, "gte", "5") is True

    def test_unknown_operator_raises(self):
        """Unknown operators are malformed"""
        with pytest.raises(MalformedRuleError):
            build_predicate("APPROX", "10")

    def test_non_numeric_target_raises(self):
        """Targets must parse as numbers"""
        with pytest.raises(MalformedRuleError):
            build_predicate("GTE", "ten")

    @pytest.mark.parametrize("target", ["2200", "2200,2800,3000", "low,high"])
    def test_bad_between_target_raises(self, target):
        """BETWEEN needs exactly two numbers"""
        with pytest.raises(MalformedRuleError):
            build_predicate("BETWEEN", target)


# ============================================================================
# Snapshot rules
# ============================================================================

class TestSnapshotRules:
    """Rules reading the current skill snapshot"""

    def test_metric_passes(self, make_bundle):
        """pushupScore 12 >= 10 passes"""
        rule = SkillsMetricRule(field_name="pushupScore", operator="GTE", target_value="10")
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 12})) is True

    def test_metric_fails_below_target(self, make_bundle):
        """pushupScore 12 >= 25 fails"""
        rule = SkillsMetricRule(field_name="pushupScore", operator="GTE", target_value="25")
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 12})) is False

    @pytest.mark.parametrize("skills", [{"pushupScore": 0}, {"pushupScore": None}, {}])
    def test_absent_metric_fails_gte_zero(self, make_bundle, skills):
        """Zero, null and missing values are all absent"""
        rule = SkillsMetricRule(field_name="pushupScore", operator="GTE", target_value="0")
        assert evaluate_rule(rule, make_bundle(skills=skills)) is False

    def test_between_on_metric(self, make_bundle):
        """BETWEEN applies to snapshot metrics"""
        rule = SkillsMetricRule(field_name="totalCalories", operator="BETWEEN", target_value="2200,2800")
        assert evaluate_rule(rule, make_bundle(skills={"totalCalories": 2500})) is True
        assert evaluate_rule(rule, make_bundle(skills={"totalCalories": 2900})) is False

    def test_unknown_operator_fails_rule(self, make_bundle):
        """An unknown operator fails the rule instead of raising"""
        rule = SkillsMetricRule(field_name="pushupScore", operator="APPROX", target_value="10")
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 12})) is False

    def test_non_numeric_target_fails_rule(self, make_bundle):
        """An unparseable target fails the rule"""
        rule = SkillsMetricRule(field_name="pushupScore", operator="GTE", target_value="lots")
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 12})) is False

    def test_skills_average(self, make_bundle):
        """Average ignores absent technical skills"""
        rule = SkillsAverageRule(field_name="technicalAverage", operator="GTE", target_value="7")
        bundle = make_bundle(skills={"battingStance": 8, "battingGrip": 6, "flatCatch": 0})
        assert evaluate_rule(rule, bundle) is True

    def test_skills_any(self, make_bundle):
        """Any single technical skill may satisfy the rule"""
        rule = SkillsAnyRule(field_name="anySkill", operator="EQ", target_value="10")
        assert evaluate_rule(rule, make_bundle(skills={"battingStance": 6, "throw": 10})) is True
        assert evaluate_rule(rule, make_bundle(skills={"battingStance": 6, "throw": 9})) is False

    def test_skills_any_without_skills(self, make_bundle):
        """No technical skills recorded fails"""
        rule = SkillsAnyRule(field_name="anySkill", operator="GTE", target_value="1")
        assert evaluate_rule(rule, make_bundle()) is False


# ============================================================================
# Historical rules
# ============================================================================

class TestHistoricalRules:
    """Rules that aggregate over match and wellness history"""

    def test_match_count_played(self, make_bundle):
        """Counts played matches"""
        rule = MatchCountRule(field_name="matchesPlayed", operator="GTE", target_value="3")
        bundle = make_bundle(matches=[{}, {}, {}, {"played": False}])
        assert evaluate_rule(rule, bundle) is True

    def test_match_count_zero_is_absent(self, make_bundle):
        """No matches fails even GTE 0"""
        rule = MatchCountRule(field_name="matchesPlayed", operator="GTE", target_value="0")
        assert evaluate_rule(rule, make_bundle()) is False

    def test_match_count_unknown_field_fails(self, make_bundle):
        """A count field with no category fails closed"""
        rule = MatchCountRule(field_name="matchesTied", operator="GTE", target_value="1")
        assert evaluate_rule(rule, make_bundle(matches=[{}])) is False

    def test_match_stat_best_of(self, make_bundle):
        """MATCH_STAT takes the best value across matches"""
        rule = MatchStatRule(field_name="runsScored", operator="GTE", target_value="50")
        bundle = make_bundle(matches=[
            {"stats": {"runsScored": 12}},
            {"stats": {"runsScored": 64}},
            {"stats": {"runsScored": 30}},
        ])
        assert evaluate_rule(rule, bundle) is True

    def test_match_streak_without_window_fails(self, make_bundle):
        """A streak with no window fails closed"""
        rule = MatchStreakRule(field_name="matchRating", operator="GTE", target_value="6")
        bundle = make_bundle(matches=[{"rating": 9}] * 5)
        assert rule.window is None
        assert evaluate_rule(rule, bundle) is False

    def test_match_streak_with_window(self, make_bundle):
        """Window parsed from description drives the streak"""
        rule = MatchStreakRule(
            field_name="matchRating", operator="GTE", target_value="6", description="3 matches"
        )
        assert evaluate_rule(rule, make_bundle(matches=[{"rating": 7}] * 3)) is True
        assert evaluate_rule(rule, make_bundle(matches=[{"rating": 7}, {"rating": 5}, {"rating": 7}])) is False

    def test_wellness_streak(self, make_bundle):
        """Water intake >= 2 for 3 most recent days"""
        rule = WellnessStreakRule(
            field_name="waterIntake", operator="GTE", target_value="2", description="3 days"
        )
        bundle = make_bundle(wellness=[{"waterIntake": 2.5}, {"waterIntake": 3}, {"waterIntake": 2}])
        assert evaluate_rule(rule, bundle) is True


class TestCompositeRules:
    """Percentile and match-average rules through evaluate_rule"""

    def test_fitness_percentile(self, make_bundle):
        """pushupScore 40 hits its benchmark: top band"""
        rule = FitnessPercentileRule(field_name="allFitness", operator="GTE", target_value="90")
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 40})) is True
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 20})) is False

    def test_fitness_percentile_without_data(self, make_bundle):
        """No fitness fields fails even GTE 0"""
        rule = FitnessPercentileRule(field_name="allFitness", operator="GTE", target_value="0")
        assert evaluate_rule(rule, make_bundle(skills={"battingStance": 9})) is False

    def test_peak_score_percentile(self, make_bundle):
        """Technical mean 6 gives peak score 60: 75th band"""
        rule = PeakScorePercentileRule(field_name="peakScore", operator="GTE", target_value="75")
        assert evaluate_rule(rule, make_bundle(skills={"battingStance": 6})) is True
        assert evaluate_rule(rule, make_bundle(skills={"battingStance": 4})) is False

    def test_peak_score_percentile_without_data(self, make_bundle):
        rule = PeakScorePercentileRule(field_name="peakScore", operator="GTE", target_value="0")
        assert evaluate_rule(rule, make_bundle(skills={"pushupScore": 30})) is False

    def test_match_average(self, make_bundle):
        """Mean rating over the 2 most recent matches"""
        rule = MatchAverageRule(
            field_name="matchRating", operator="GTE", target_value="7.5", description="2 matches"
        )
        assert evaluate_rule(rule, make_bundle(matches=[{"rating": 8}, {"rating": 7}, {"rating": 1}])) is True
        assert evaluate_rule(rule, make_bundle(matches=[{"rating": 8}, {"rating": 6}])) is False

    def test_match_average_insufficient_matches(self, make_bundle):
        """Fewer matches than the window fails"""
        rule = MatchAverageRule(
            field_name="matchRating", operator="GTE", target_value="1", description="3 matches"
        )
        assert evaluate_rule(rule, make_bundle(matches=[{"rating": 9}, {"rating": 9}])) is False

    def test_match_average_without_ratings(self, make_bundle):
        rule = MatchAverageRule(field_name="matchRating", operator="GTE", target_value="0")
        assert evaluate_rule(rule, make_bundle(matches=[{}, {}])) is False
        assert evaluate_rule(rule, make_bundle()) is False


class TestUnknownRuleType:
    """Rule types the engine does not know"""

    def test_unsupported_rule_fails(self, make_bundle):
        """Unknown rule types evaluate to False"""
        rule = UnsupportedRule(rule_type="TEAM_SPIRIT", field_name="hugs", target_value="1")
        assert evaluate_rule(rule, make_bundle(skills={"hugs": 5})) is False
