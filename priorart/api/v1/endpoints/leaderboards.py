# priorart/api/v1/endpoints/leaderboards.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from priorart.core.security import get_current_actor
from priorart.db.session import get_db
from priorart.schemas.score import ChallengeLeaderboard, SubChallengeLeaderboard
from priorart.schemas.user import Actor
from priorart.services import leaderboard_service

router = APIRouter(prefix="/leaderboards", tags=["leaderboards"])


@router.get("/challenges/{challenge_id}", response_model=ChallengeLeaderboard)
def public_challenge_leaderboard(
    challenge_id: str,
    db: Session = Depends(get_db),
):
    """
    Public leaderboard: only sub-challenges with published scores count.
    """
    return leaderboard_service.challenge_leaderboard(db, challenge_id=challenge_id, public=True)


@router.get("/sub-challenges/{sub_challenge_id}", response_model=SubChallengeLeaderboard)
def public_sub_challenge_leaderboard(
    sub_challenge_id: str,
    db: Session = Depends(get_db),
):
    return leaderboard_service.sub_challenge_board(db, sub_challenge_id=sub_challenge_id, public=True)


@router.get("/manage/challenges/{challenge_id}", response_model=ChallengeLeaderboard)
def manager_challenge_leaderboard(
    challenge_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """
    Managers see every graded score, published or not.
    """
    return leaderboard_service.manager_leaderboard(
        db, actor=current_actor, challenge_id=challenge_id
    )
