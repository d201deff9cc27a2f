"""
Badge Schemas (Pydantic)

Rules are a tagged union on `rule_type`: each rule type carries its own typed
parameters (window length, match category) instead of re-parsing free text
at evaluation time. Catalogs authored with the window packed into the rule
description ("5 days", "3 matches") are parsed once, when the model is built.
"""
import re
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Discriminator, Field, Tag, field_validator, model_validator

from badge_engine.schemas import ANY_SPORT


# ============================================================================
# Constants
# ============================================================================

OPERATORS = {'GT', 'GTE', 'LT', 'LTE', 'EQ', 'NEQ', 'BETWEEN'}

BADGE_LEVELS = ('ROOKIE', 'AMATEUR', 'PRO')

SUPPORTED_RULE_TYPES = {
    'SKILLS_METRIC',
    'SKILLS_AVERAGE',
    'SKILLS_ANY',
    'MATCH_COUNT',
    'MATCH_STAT',
    'MATCH_STREAK',
    'MATCH_AVERAGE',
    'WELLNESS_STREAK',
    'FITNESS_PERCENTILE',
    'PEAKSCORE_PERCENTILE',
}
UNSUPPORTED = 'UNSUPPORTED'

# Legacy MATCH_COUNT field names -> category
MATCH_COUNT_CATEGORIES = {
    'matchesPlayed': 'played',
    'matchesWon': 'won',
    'fieldingPerformances': 'fielding',
}

_LEADING_INT = re.compile(r'^\s*(\d+)')


# ============================================================================
# Rule Schemas
# ============================================================================

class RuleBase(BaseModel):
    """Fields shared by every rule type"""
    field_name: str = Field(..., description="Metric the rule reads")
    operator: str = Field(default="GTE", description="GT, GTE, LT, LTE, EQ, NEQ, BETWEEN")
    target_value: str = Field(..., description="Comparison target; BETWEEN uses 'min,max'")
    weight: float = Field(default=1.0, ge=0)
    is_required: bool = False
    description: Optional[str] = None

    @field_validator('rule_type', mode='before', check_fields=False)
    @classmethod
    def normalize_rule_type(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator('operator', mode='before')
    @classmethod
    def normalize_operator(cls, v: Any) -> str:
        """Unknown operators are kept; the evaluator fails them closed"""
        return str(v).strip().upper()

    @field_validator('target_value', mode='before')
    @classmethod
    def stringify_target(cls, v: Any) -> str:
        return str(v).strip()


class WindowedRuleBase(RuleBase):
    """Rules that look at the N most recent records"""
    window: Optional[int] = Field(default=None, ge=1, description="Number of most recent records")

    @model_validator(mode='after')
    def window_from_description(self):
        if self.window is None and self.description:
            match = _LEADING_INT.match(self.description)
            if match and int(match.group(1)) >= 1:
                self.window = int(match.group(1))
        return self


class SkillsMetricRule(RuleBase):
    rule_type: Literal['SKILLS_METRIC'] = 'SKILLS_METRIC'


class SkillsAverageRule(RuleBase):
    rule_type: Literal['SKILLS_AVERAGE'] = 'SKILLS_AVERAGE'


class SkillsAnyRule(RuleBase):
    rule_type: Literal['SKILLS_ANY'] = 'SKILLS_ANY'


class MatchCountRule(RuleBase):
    rule_type: Literal['MATCH_COUNT'] = 'MATCH_COUNT'
    category: Optional[Literal['played', 'won', 'fielding']] = None

    @model_validator(mode='after')
    def category_from_field_name(self):
        if self.category is None:
            self.category = MATCH_COUNT_CATEGORIES.get(self.field_name)
        return self


class MatchStatRule(RuleBase):
    rule_type: Literal['MATCH_STAT'] = 'MATCH_STAT'


class MatchStreakRule(WindowedRuleBase):
    rule_type: Literal['MATCH_STREAK'] = 'MATCH_STREAK'


class MatchAverageRule(WindowedRuleBase):
    rule_type: Literal['MATCH_AVERAGE'] = 'MATCH_AVERAGE'


class WellnessStreakRule(WindowedRuleBase):
    rule_type: Literal['WELLNESS_STREAK'] = 'WELLNESS_STREAK'


class FitnessPercentileRule(RuleBase):
    rule_type: Literal['FITNESS_PERCENTILE'] = 'FITNESS_PERCENTILE'


class PeakScorePercentileRule(RuleBase):
    rule_type: Literal['PEAKSCORE_PERCENTILE'] = 'PEAKSCORE_PERCENTILE'


class UnsupportedRule(RuleBase):
    """A rule type this engine does not know; always evaluates to False"""
    rule_type: str = UNSUPPORTED
    field_name: str = ""
    target_value: str = ""

    @field_validator('rule_type', mode='before')
    @classmethod
    def default_rule_type(cls, v: Any) -> Any:
        return v or UNSUPPORTED


def _rule_tag(value: Any) -> str:
    if isinstance(value, dict):
        rule_type = value.get('rule_type')
    else:
        rule_type = getattr(value, 'rule_type', None)
    rule_type = str(rule_type or '').strip().upper()
    return rule_type if rule_type in SUPPORTED_RULE_TYPES else UNSUPPORTED


BadgeRule = Annotated[
    Union[
        Annotated[SkillsMetricRule, Tag('SKILLS_METRIC')],
        Annotated[SkillsAverageRule, Tag('SKILLS_AVERAGE')],
        Annotated[SkillsAnyRule, Tag('SKILLS_ANY')],
        Annotated[MatchCountRule, Tag('MATCH_COUNT')],
        Annotated[MatchStatRule, Tag('MATCH_STAT')],
        Annotated[MatchStreakRule, Tag('MATCH_STREAK')],
        Annotated[MatchAverageRule, Tag('MATCH_AVERAGE')],
        Annotated[WellnessStreakRule, Tag('WELLNESS_STREAK')],
        Annotated[FitnessPercentileRule, Tag('FITNESS_PERCENTILE')],
        Annotated[PeakScorePercentileRule, Tag('PEAKSCORE_PERCENTILE')],
        Annotated[UnsupportedRule, Tag(UNSUPPORTED)],
    ],
    Discriminator(_rule_tag),
]


# ============================================================================
# Badge Catalog Schemas
# ============================================================================

class Badge(BaseModel):
    """Catalog-defined achievement with its ordered rules"""
    badge_id: str
    name: str
    description: str = ""
    motivational_text: str = ""
    icon: str = ""
    level: str = Field(default="ROOKIE", description="ROOKIE, AMATEUR, PRO")
    category: Optional[str] = None
    sport: str = Field(default=ANY_SPORT, description="Activity domain or ALL")
    owner_id: Optional[str] = Field(default=None, description="Coach that created the badge; None for system badges")
    is_active: bool = True
    rules: List[BadgeRule] = Field(default_factory=list)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in BADGE_LEVELS:
            raise ValueError(f"level must be one of {BADGE_LEVELS}, got: {v}")
        return v

    @field_validator('sport')
    @classmethod
    def normalize_sport(cls, v: str) -> str:
        return v.strip().upper() or ANY_SPORT

    @property
    def level_rank(self) -> int:
        return BADGE_LEVELS.index(self.level)


# ============================================================================
# Award Schemas
# ============================================================================

class AwardedBadge(BaseModel):
    """Persisted record of one athlete having earned one badge"""
    award_id: str
    athlete_id: str
    badge_id: str
    score: float
    progress: int = 100
    awarded_at: datetime
    is_revoked: bool = False
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    revoke_reason: Optional[str] = None


class AwardResult(BaseModel):
    """Outcome of an award insert"""
    badge_id: str
    newly_earned: bool
    award_id: Optional[str] = None
    awarded_at: Optional[datetime] = None


# ============================================================================
# Evaluation Schemas
# ============================================================================

class BadgeScore(BaseModel):
    """Verdict of the badge scorer for one badge"""
    earned: bool
    progress: int = Field(..., ge=0, le=100)
    score: float = 0.0
    required_passed: int = 0
    total_required: int = 0


class ProgressReport(BaseModel):
    """Per-badge progress for one athlete, produced fresh on every evaluation"""
    badge_id: str
    badge_name: str
    level: str
    category: Optional[str] = None
    progress: int = Field(..., ge=0, le=100)
    description: str = ""
    motivational_text: str = ""
    icon: str = ""
    earned: bool = False
    earned_at: Optional[datetime] = None


class EvaluationResult(BaseModel):
    """Newly awarded badge ids plus progress for every visible badge"""
    athlete_id: str
    newly_awarded: List[str] = Field(default_factory=list)
    progress: List[ProgressReport] = Field(default_factory=list)

    @property
    def earned(self) -> List[ProgressReport]:
        return [report for report in self.progress if report.earned]

    @property
    def in_progress(self) -> List[ProgressReport]:
        return [report for report in self.progress if not report.earned]


class BatchSummary(BaseModel):
    """Result of evaluating every athlete"""
    evaluated_count: int = 0
    new_award_count: int = 0
    skipped_count: int = 0
    errors: List[str] = Field(default_factory=list)
