"""
Athlete-side schemas (Pydantic)

The AthleteDataBundle is assembled per evaluation and never persisted.
"""
import json
from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


ANY_SPORT = "ALL"


class AthleteProfile(BaseModel):
    """Identity, activity domain and ownership context of an athlete"""
    athlete_id: str
    name: Optional[str] = None
    sport: str = Field(default=ANY_SPORT, description="Activity domain, e.g. CRICKET")
    coach_id: Optional[str] = Field(default=None, description="Responsible coach, if any")

    @field_validator('sport')
    @classmethod
    def normalize_sport(cls, v: str) -> str:
        return v.strip().upper() or ANY_SPORT

    @property
    def display_name(self) -> str:
        return self.name or self.athlete_id


class MatchPerformance(BaseModel):
    """One match performance record. `stats` is an opaque JSON-encoded map."""
    match_id: str
    played_at: date
    played: bool = True
    result: Optional[str] = Field(default=None, description="WIN, LOSS, DRAW, NO_RESULT")
    rating: Optional[float] = None
    stats: Optional[str] = None

    @field_validator('stats', mode='before')
    @classmethod
    def encode_stats(cls, v: Union[str, Dict[str, Any], None]) -> Optional[str]:
        """Accept a mapping for convenience, store the encoded form"""
        if isinstance(v, dict):
            return json.dumps(v)
        return v

    @field_validator('result')
    @classmethod
    def normalize_result(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class WellnessEntry(BaseModel):
    """One dated wellness / skill-history entry (flat numeric map)"""
    entry_date: date
    metrics: Dict[str, Optional[float]] = Field(default_factory=dict)


class AthleteDataBundle(BaseModel):
    """Everything a rule may read for one athlete, newest records first"""
    profile: AthleteProfile
    skills: Dict[str, Any] = Field(default_factory=dict)
    matches: List[MatchPerformance] = Field(default_factory=list)
    wellness: List[WellnessEntry] = Field(default_factory=list)

    @property
    def athlete_id(self) -> str:
        return self.profile.athlete_id

    @property
    def has_skills(self) -> bool:
        return bool(self.skills)
