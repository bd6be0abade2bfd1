# priorart/services/leaderboard_service.py
import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from priorart.engine import assignment, duplicates, leaderboard, lifecycle
from priorart.engine.clock import utcnow
from priorart.engine.scoring import score
from priorart.models.leaderboard import LeaderboardSnapshot
from priorart.schemas.dashboard import TraineeDashboardEntry
from priorart.schemas.duplicate import DuplicateGroup
from priorart.schemas.score import ChallengeLeaderboard, RankedEntry, SubChallengeLeaderboard
from priorart.schemas.user import Actor
from priorart.services.errors import PermissionDeniedError
from priorart.services.snapshot import (
    list_challenge_ids,
    load_challenge,
    load_profiles,
    load_sub_challenge,
)

logger = logging.getLogger(__name__)


def cached_leaderboard(
    db: Session,
    *,
    challenge_id: str,
    public: bool = True,
) -> Optional[ChallengeLeaderboard]:
    row = db.get(LeaderboardSnapshot, challenge_id)
    if row is None:
        return None
    try:
        entries = [
            RankedEntry.model_validate(e)
            for e in (row.public_entries if public else row.entries) or []
        ]
    except ValidationError as e:
        logger.warning(f"Unreadable leaderboard snapshot for {challenge_id}, recomputing: {e}")
        return None
    return ChallengeLeaderboard(challenge_id=challenge_id, name=row.name, entries=entries)


def save_snapshot(
    db: Session,
    *,
    internal: ChallengeLeaderboard,
    public: ChallengeLeaderboard,
    now: datetime | None = None,
) -> LeaderboardSnapshot:
    row = db.get(LeaderboardSnapshot, internal.challenge_id)
    if row is None:
        row = LeaderboardSnapshot(challenge_id=internal.challenge_id)
    row.name = internal.name
    row.entries = [e.model_dump() for e in internal.entries]
    row.public_entries = [e.model_dump() for e in public.entries]
    row.computed_at = now or utcnow()

    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def invalidate_snapshot(db: Session, *, challenge_id: str) -> None:
    """Drop the cached board; the caller commits."""
    db.query(LeaderboardSnapshot).filter(
        LeaderboardSnapshot.challenge_id == challenge_id
    ).delete(synchronize_session="fetch")


def challenge_leaderboard(
    db: Session,
    *,
    challenge_id: str,
    public: bool = True,
    use_cache: bool = True,
) -> ChallengeLeaderboard:
    """
    Every trainee of the challenge with their summed score. Public boards
    only count sub-challenges whose scores have been published.
    Served from the worker's snapshot while one is current.
    """
    if use_cache:
        cached = cached_leaderboard(db, challenge_id=challenge_id, public=public)
        if cached is not None:
            return cached

    challenge = load_challenge(db, challenge_id)
    trainees = load_profiles(db, challenge.trainee_ids)
    entries = leaderboard.aggregate(trainees, challenge.sub_challenges, public=public)
    return ChallengeLeaderboard(challenge_id=challenge.id, name=challenge.name, entries=entries)


def manager_leaderboard(
    db: Session,
    *,
    actor: Actor,
    challenge_id: str,
) -> ChallengeLeaderboard:
    """Ungated leaderboard for the challenge's own managers."""
    challenge = load_challenge(db, challenge_id)
    if not assignment.is_manager_of(actor, challenge):
        raise PermissionDeniedError(f"{actor.id} is not a manager of challenge {challenge_id}")
    return challenge_leaderboard(db, challenge_id=challenge_id, public=False)


def sub_challenge_board(
    db: Session,
    *,
    sub_challenge_id: str,
    public: bool = True,
) -> SubChallengeLeaderboard:
    sub_challenge, _ = load_sub_challenge(db, sub_challenge_id)
    profiles = load_profiles(db, [s.trainee_id for s in sub_challenge.submissions])
    return leaderboard.sub_challenge_leaderboard(sub_challenge, profiles, public=public)


def duplicates_for(
    db: Session,
    *,
    actor: Actor,
    sub_challenge_id: str,
) -> List[DuplicateGroup]:
    """References submitted by more than one result; evaluators of the sub-challenge only."""
    sub_challenge, challenge = load_sub_challenge(db, sub_challenge_id)
    if not assignment.can_evaluate(actor, sub_challenge, challenge.manager_ids):
        raise PermissionDeniedError(f"{actor.id} may not evaluate sub-challenge {sub_challenge_id}")

    groups = duplicates.detect(sub_challenge.submissions)
    result = duplicates.duplicate_groups(groups)
    logger.info(f"Sub-challenge {sub_challenge_id}: {len(result)} duplicated reference(s)")
    return result


def trainee_dashboard(
    db: Session,
    *,
    trainee: Actor,
    now: datetime | None = None,
) -> List[TraineeDashboardEntry]:
    """
    Status and deadline of every sub-challenge the trainee takes part in.
    The score is shown once the submission is graded and scores are published.
    """
    now = now or utcnow()
    entries: List[TraineeDashboardEntry] = []

    for challenge_id in list_challenge_ids(db):
        challenge = load_challenge(db, challenge_id)
        if trainee.id not in challenge.trainee_ids:
            continue

        for sc in challenge.sub_challenges:
            submission = sc.submission_for(trainee.id)
            state = lifecycle.lifecycle_state(sc, challenge, submission, now)

            visible_score = None
            if (
                submission is not None
                and submission.evaluation is not None
                and leaderboard.is_visible(sc, public=True)
            ):
                visible_score = score(submission, sc.evaluation_rules)

            entries.append(
                TraineeDashboardEntry(
                    sub_challenge_id=sc.id,
                    title=sc.title,
                    status=state.status,
                    deadline=state.deadline,
                    score=visible_score,
                )
            )

    return entries
