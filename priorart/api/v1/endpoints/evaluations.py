# priorart/api/v1/endpoints/evaluations.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from priorart.core.security import get_current_actor
from priorart.db.session import get_db
from priorart.schemas.dashboard import EvaluationProgress
from priorart.schemas.duplicate import DuplicateGroup
from priorart.schemas.score import GradingContext
from priorart.schemas.submission import EvaluationCreate, Submission
from priorart.schemas.challenge import SubChallenge
from priorart.schemas.user import Actor
from priorart.services import evaluation_service, leaderboard_service

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.get("/me", response_model=List[EvaluationProgress])
def my_evaluation_progress(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """
    Sub-challenges the caller may grade, with how many they have graded.
    """
    return evaluation_service.evaluator_dashboard(db, actor=current_actor)


@router.get("/sub-challenges/{sub_challenge_id}/duplicates", response_model=List[DuplicateGroup])
def list_duplicates(
    sub_challenge_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return leaderboard_service.duplicates_for(
        db, actor=current_actor, sub_challenge_id=sub_challenge_id
    )


@router.get("/submissions/{submission_id}", response_model=GradingContext)
def get_grading_context(
    submission_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return evaluation_service.grading_context(
        db, actor=current_actor, submission_id=submission_id
    )


@router.put("/submissions/{submission_id}", response_model=Submission)
def save_evaluation(
    submission_id: str,
    obj_in: EvaluationCreate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """
    Evaluator grades a submission (or re-grades it).
    """
    return evaluation_service.save_evaluation(
        db, actor=current_actor, submission_id=submission_id, obj_in=obj_in
    )


@router.post("/sub-challenges/{sub_challenge_id}/publish", response_model=SubChallenge)
def publish_scores(
    sub_challenge_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return evaluation_service.publish_scores(
        db, actor=current_actor, sub_challenge_id=sub_challenge_id
    )
