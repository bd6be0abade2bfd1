# priorart/schemas/submission.py
from datetime import datetime

from pydantic import BaseModel, Field

from priorart.schemas.enums import ResultTier, ResultType


class SubmittedResult(BaseModel):
    """One prior-art reference found by a trainee."""
    id: str
    value: str
    type: ResultType
    trainee_tier: ResultTier
    # older rows carry no per-result timestamp; the submission's is used instead
    submitted_at: datetime | None = None


class ResultEvaluation(BaseModel):
    result_id: str
    evaluator_tier: ResultTier
    score_override: float | None = None
    override_reason: str = ""


class Evaluation(BaseModel):
    evaluator_id: str
    result_evaluations: list[ResultEvaluation] = Field(default_factory=list)
    report_score: float | None = None
    feedback: str = ""
    evaluated_at: datetime


class ReportFile(BaseModel):
    name: str
    path: str


class Submission(BaseModel):
    id: str
    sub_challenge_id: str
    trainee_id: str
    submitted_at: datetime
    results: list[SubmittedResult] = Field(default_factory=list)
    report_file: ReportFile | None = None
    # presence of an evaluation is the only "graded" signal
    evaluation: Evaluation | None = None

    @property
    def is_evaluated(self) -> bool:
        return self.evaluation is not None


class SubmittedResultCreate(BaseModel):
    value: str = Field(min_length=1)
    type: ResultType
    trainee_tier: ResultTier


class ResultEvaluationIn(BaseModel):
    result_id: str
    evaluator_tier: ResultTier
    score_override: float | None = None
    override_reason: str = ""


class EvaluationCreate(BaseModel):
    """Evaluator grading payload; evaluator_id and evaluated_at are set server side."""
    result_evaluations: list[ResultEvaluationIn]
    report_score: float | None = None
    feedback: str = ""
