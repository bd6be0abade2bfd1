# priorart/schemas/dashboard.py
from datetime import datetime

from pydantic import BaseModel, computed_field

from priorart.schemas.enums import SubmissionStatus


class LifecycleState(BaseModel):
    status: SubmissionStatus
    # the deadline the trainee is currently working against, if any
    deadline: datetime | None = None


class SubmissionWindow(BaseModel):
    results_open: bool
    report_open: bool


class EvaluationProgress(BaseModel):
    sub_challenge_id: str
    evaluated: int
    total: int

    @computed_field
    @property
    def percent(self) -> float:
        return (self.evaluated / self.total) * 100 if self.total > 0 else 0.0


class TraineeDashboardEntry(BaseModel):
    sub_challenge_id: str
    title: str
    status: SubmissionStatus
    deadline: datetime | None = None
    # None until the submission is graded and the scores are published
    score: int | None = None
