# priorart/services/submission_service.py
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from priorart.engine.clock import utcnow
from priorart.engine.lifecycle import can_add_result, submission_window
from priorart.models.submission import Submission as SubmissionRow
from priorart.schemas.submission import ReportFile, Submission, SubmittedResultCreate
from priorart.schemas.user import Actor
from priorart.services.errors import (
    ChallengeError,
    PermissionDeniedError,
    SubmissionClosedError,
    SubmissionLimitError,
)
from priorart.services.snapshot import load_sub_challenge, submission_to_schema

logger = logging.getLogger(__name__)


def get_submission_row(
    db: Session,
    *,
    sub_challenge_id: str,
    trainee_id: str,
) -> Optional[SubmissionRow]:
    return (
        db.query(SubmissionRow)
        .filter(
            SubmissionRow.sub_challenge_id == sub_challenge_id,
            SubmissionRow.trainee_id == trainee_id,
        )
        .first()
    )


def _get_or_create_row(
    db: Session,
    *,
    sub_challenge_id: str,
    trainee_id: str,
    now: datetime,
) -> SubmissionRow:
    row = get_submission_row(db, sub_challenge_id=sub_challenge_id, trainee_id=trainee_id)
    if row is None:
        row = SubmissionRow(
            sub_challenge_id=sub_challenge_id,
            trainee_id=trainee_id,
            submitted_at=now,
            results=[],
        )
    return row


def add_result(
    db: Session,
    *,
    trainee: Actor,
    sub_challenge_id: str,
    obj_in: SubmittedResultCreate,
    now: datetime | None = None,
) -> Submission:
    """
    Trainee adds one result; the first result creates the submission.
    Rejected after the results deadline, once the challenge has ended,
    or when the sub-challenge's result limit is reached.
    """
    now = now or utcnow()
    sub_challenge, challenge = load_sub_challenge(db, sub_challenge_id)

    if trainee.id not in challenge.trainee_ids:
        raise PermissionDeniedError(f"{trainee.id} is not a trainee of challenge {challenge.id}")

    if not submission_window(sub_challenge, challenge, now).results_open:
        raise SubmissionClosedError("The results deadline has passed")

    if not can_add_result(sub_challenge, sub_challenge.submission_for(trainee.id)):
        raise SubmissionLimitError(
            f"You cannot submit more than {sub_challenge.submission_limit} results."
        )

    value = obj_in.value.strip()
    if not value:
        raise ChallengeError("Result value cannot be empty.")

    row = _get_or_create_row(
        db, sub_challenge_id=sub_challenge_id, trainee_id=trainee.id, now=now
    )
    new_result = {
        "id": str(uuid.uuid4()),
        "value": value,
        "type": obj_in.type.value,
        "trainee_tier": obj_in.trainee_tier.value,
        "submitted_at": now.isoformat(),
    }
    # reassign so the JSON column is marked dirty
    row.results = [*(row.results or []), new_result]
    row.submitted_at = now

    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info(f"Trainee {trainee.id} added result {new_result['id']} to sub-challenge {sub_challenge_id}")
    return submission_to_schema(row)


def attach_report(
    db: Session,
    *,
    trainee: Actor,
    sub_challenge_id: str,
    report: ReportFile,
    now: datetime | None = None,
) -> Submission:
    """Record the uploaded report file; replaces any earlier report."""
    now = now or utcnow()
    sub_challenge, challenge = load_sub_challenge(db, sub_challenge_id)

    if trainee.id not in challenge.trainee_ids:
        raise PermissionDeniedError(f"{trainee.id} is not a trainee of challenge {challenge.id}")

    if not submission_window(sub_challenge, challenge, now).report_open:
        raise SubmissionClosedError("Reports are not being accepted for this sub-challenge")

    row = _get_or_create_row(
        db, sub_challenge_id=sub_challenge_id, trainee_id=trainee.id, now=now
    )
    # submitted_at tracks results only
    row.report_file = report.model_dump()

    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info(f"Trainee {trainee.id} uploaded report {report.name} for sub-challenge {sub_challenge_id}")
    return submission_to_schema(row)
