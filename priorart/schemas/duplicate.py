# priorart/schemas/duplicate.py
from datetime import datetime

from pydantic import BaseModel, Field


class SubmitterEntry(BaseModel):
    trainee_id: str
    original_value: str
    submitted_at: datetime
    submission_id: str | None = None
    result_id: str | None = None


class DuplicateAnnotation(BaseModel):
    """How one result of a submission relates to everyone else's results."""
    result_id: str
    key: str
    is_duplicate: bool
    is_first: bool
    first_submitter: SubmitterEntry
    others: list[SubmitterEntry] = Field(default_factory=list)


class OverrideSuggestion(BaseModel):
    result_id: str
    suggested_score: float
    reason: str


class DuplicateGroup(BaseModel):
    key: str
    submitters: list[SubmitterEntry]
