"""
Unit tests for badge scoring (weighted progress, required-rule gating)
"""
import pytest

from badge_engine.logic.badge_scorer import progress_percent, score_badge
from badge_engine.schemas_badges import Badge


def _badge(rules, badge_id="b1"):
    return Badge(badge_id=badge_id, name="Test Badge", level="AMATEUR", rules=rules)


def _metric(field, target, weight=1.0, required=False):
    return {
        "rule_type": "SKILLS_METRIC",
        "field_name": field,
        "operator": "GTE",
        "target_value": target,
        "weight": weight,
        "is_required": required,
    }


BATTING_FIELDS = ["battingStance", "battingGrip", "battingBalance", "backLift", "topHandDominance"]


class TestProgressPercent:
    """Rounding and bounds"""

    @pytest.mark.parametrize("score,max_score,expected", [
        (0.6, 1.0, 60),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (3, 3, 100),
        (0, 0, 0),
    ])
    def test_progress(self, score, max_score, expected):
        """Half-up rounding to whole percent"""
        assert progress_percent(score, max_score) == expected


class TestScoreBadge:
    """Earned verdicts"""

    def test_partial_optional_rules(self, make_bundle):
        """Three of five 0.2-weight rules: 60%, not earned"""
        badge = _badge([_metric(field, "8", weight=0.2) for field in BATTING_FIELDS])
        bundle = make_bundle(skills={"battingStance": 8, "battingGrip": 9, "battingBalance": 8, "backLift": 5})

        verdict = score_badge(badge, bundle)

        assert verdict.progress == 60
        assert verdict.earned is False
        assert verdict.total_required == 0

    def test_all_optional_rules_pass(self, make_bundle):
        """No required rules: earned at 100%"""
        badge = _badge([_metric(field, "8", weight=0.2) for field in BATTING_FIELDS])
        bundle = make_bundle(skills={field: 9 for field in BATTING_FIELDS})

        verdict = score_badge(badge, bundle)

        assert verdict.progress == 100
        assert verdict.earned is True

    def test_required_rule_failing_blocks_award(self, make_bundle):
        """One failing required rule blocks the award despite passing optionals"""
        rules = [
            _metric("pushupScore", "25", required=True),
            _metric("pullupScore", "5", required=True),
            _metric("battingStance", "5"),
            _metric("battingGrip", "5"),
            _metric("throw", "5"),
        ]
        bundle = make_bundle(skills={
            "pushupScore": 30, "pullupScore": 2, "battingStance": 6, "battingGrip": 6, "throw": 6,
        })

        verdict = score_badge(_badge(rules), bundle)

        assert verdict.earned is False
        assert verdict.required_passed == 1
        assert verdict.total_required == 2
        assert verdict.progress == 80

    def test_required_rules_pass_with_optional_failing(self, make_bundle):
        """All required rules passing earns the badge"""
        rules = [
            _metric("pushupScore", "25", required=True),
            _metric("battingStance", "9"),
        ]
        bundle = make_bundle(skills={"pushupScore": 30, "battingStance": 6})

        verdict = score_badge(_badge(rules), bundle)

        assert verdict.earned is True
        assert verdict.progress == 50

    def test_unknown_rule_type_counts_toward_max(self, make_bundle):
        """Unsupported rules fail but keep their weight"""
        rules = [
            _metric("pushupScore", "10"),
            {"rule_type": "TEAM_SPIRIT", "field_name": "hugs", "target_value": "1"},
        ]
        verdict = score_badge(_badge(rules), make_bundle(skills={"pushupScore": 12}))

        assert verdict.progress == 50
        assert verdict.earned is False

    def test_badge_without_rules(self, make_bundle):
        """A badge with no rules is never earned"""
        verdict = score_badge(_badge([]), make_bundle(skills={"pushupScore": 12}))

        assert verdict.progress == 0
        assert verdict.earned is False
