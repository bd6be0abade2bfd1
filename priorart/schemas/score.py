# priorart/schemas/score.py
from pydantic import BaseModel, Field

from priorart.schemas.duplicate import DuplicateAnnotation, OverrideSuggestion
from priorart.schemas.enums import ResultVerdict
from priorart.schemas.submission import ResultEvaluation, Submission


class ResultScore(BaseModel):
    result_id: str
    verdict: ResultVerdict
    points: float = 0


class ScoreBreakdown(BaseModel):
    """Per-term view of a submission's score; ``total`` is what ``score()`` returns."""
    results: list[ResultScore] = Field(default_factory=list)
    report_points: float = 0
    total: int = 0
    evaluated: bool = False


class RankedEntry(BaseModel):
    trainee_id: str
    name: str
    total_score: int


class SubChallengeEntry(RankedEntry):
    has_correct_tier_one_or_two: bool = False


class SubChallengeLeaderboard(BaseModel):
    sub_challenge_id: str
    title: str
    published: bool
    entries: list[SubChallengeEntry] = Field(default_factory=list)
    # trainee id of the earliest correct Tier-1 result, if any
    first_tier_one: str | None = None


class ChallengeLeaderboard(BaseModel):
    challenge_id: str
    name: str
    entries: list[RankedEntry] = Field(default_factory=list)


class GradingContext(BaseModel):
    """Everything the grading form needs for one submission."""
    submission: Submission
    judgments: list[ResultEvaluation]
    breakdown: ScoreBreakdown
    duplicates: list[DuplicateAnnotation] = Field(default_factory=list)
    suggestions: list[OverrideSuggestion] = Field(default_factory=list)
    # next ungraded submission of the sub-challenge after this trainee, if any
    next_submission_id: str | None = None
