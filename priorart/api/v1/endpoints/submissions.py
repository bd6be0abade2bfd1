# priorart/api/v1/endpoints/submissions.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from priorart.core.security import get_current_trainee
from priorart.db.session import get_db
from priorart.schemas.dashboard import TraineeDashboardEntry
from priorart.schemas.submission import ReportFile, Submission, SubmittedResultCreate
from priorart.schemas.user import Actor
from priorart.services import leaderboard_service, submission_service

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post(
    "/sub-challenges/{sub_challenge_id}/results",
    response_model=Submission,
    status_code=status.HTTP_201_CREATED,
)
def add_result(
    sub_challenge_id: str,
    obj_in: SubmittedResultCreate,
    db: Session = Depends(get_db),
    current_trainee: Actor = Depends(get_current_trainee),
):
    """
    Trainee adds a result; the first one creates the submission.
    """
    return submission_service.add_result(
        db, trainee=current_trainee, sub_challenge_id=sub_challenge_id, obj_in=obj_in
    )


@router.put("/sub-challenges/{sub_challenge_id}/report", response_model=Submission)
def attach_report(
    sub_challenge_id: str,
    report: ReportFile,
    db: Session = Depends(get_db),
    current_trainee: Actor = Depends(get_current_trainee),
):
    """
    Record an already uploaded report file against the trainee's submission.
    """
    return submission_service.attach_report(
        db, trainee=current_trainee, sub_challenge_id=sub_challenge_id, report=report
    )


@router.get("/me/dashboard", response_model=List[TraineeDashboardEntry])
def my_dashboard(
    db: Session = Depends(get_db),
    current_trainee: Actor = Depends(get_current_trainee),
):
    return leaderboard_service.trainee_dashboard(db, trainee=current_trainee)
