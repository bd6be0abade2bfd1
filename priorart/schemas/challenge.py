# priorart/schemas/challenge.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from priorart.schemas.enums import IncorrectMarking, ResultTier, ResultType
from priorart.schemas.submission import Submission


class ReportRules(BaseModel):
    enabled: bool = False
    max_score: float = Field(default=0, alias="maxScore")

    model_config = ConfigDict(populate_by_name=True)


class EvaluationRules(BaseModel):
    """
    Scoring configuration stored per sub-challenge (``evaluation_rules`` column).

    Field aliases match the stored JSON (``tierScores``, ``incorrectMarking`` ...).
    ``tierScores`` may also be the legacy flat ``{tier: points}`` table, in which
    case the same points apply to every result type.
    """
    tier_scores: dict[ResultType, dict[ResultTier, float]] = Field(
        default_factory=dict, alias="tierScores"
    )
    incorrect_marking: IncorrectMarking = Field(
        default=IncorrectMarking.ZERO, alias="incorrectMarking"
    )
    incorrect_penalty: float = Field(default=0, alias="incorrectPenalty")
    report: ReportRules = Field(default_factory=ReportRules)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _expand_flat_tier_scores(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key = "tierScores" if "tierScores" in data else "tier_scores"
        table = data.get(key)
        if not isinstance(table, dict) or not table:
            return data

        tier_values = {t.value for t in ResultTier} | set(ResultTier)
        if all(k in tier_values for k in table):
            data = dict(data)
            data[key] = {rt.value: dict(table) for rt in ResultType}
        return data

    def points_for(self, result_type: ResultType, tier: ResultTier) -> float:
        return self.tier_scores.get(result_type, {}).get(tier, 0)


class SubChallenge(BaseModel):
    id: str
    overall_challenge_id: str
    title: str
    patent_number: str | None = None
    submission_end_time: datetime
    report_end_time: datetime | None = None
    # None or [] means the parent challenge's managers grade it
    evaluator_ids: list[str] | None = None
    evaluation_rules: EvaluationRules = Field(default_factory=EvaluationRules)
    scores_published_at: datetime | None = None
    submission_limit: int | None = None

    submissions: list[Submission] = Field(default_factory=list)

    def submission_for(self, trainee_id: str) -> Submission | None:
        for sub in self.submissions:
            if sub.trainee_id == trainee_id:
                return sub
        return None


class OverallChallenge(BaseModel):
    id: str
    name: str = ""
    manager_ids: list[str] = Field(default_factory=list)
    trainee_ids: list[str] = Field(default_factory=list)
    evaluator_ids: list[str] = Field(default_factory=list)
    # once set, every child sub-challenge is read-only
    ended_at: datetime | None = None

    sub_challenges: list[SubChallenge] = Field(default_factory=list)
