# priorart/services/evaluation_service.py
import logging
from datetime import datetime
from typing import List

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from priorart.core.config import settings
from priorart.engine import assignment, duplicates, scoring
from priorart.engine.clock import utcnow
from priorart.models.challenge import OverallChallenge as OverallChallengeRow
from priorart.models.challenge import SubChallenge as SubChallengeRow
from priorart.models.submission import Submission as SubmissionRow
from priorart.schemas.challenge import OverallChallenge, SubChallenge
from priorart.schemas.dashboard import EvaluationProgress
from priorart.schemas.score import GradingContext
from priorart.schemas.submission import Evaluation, EvaluationCreate, ResultEvaluation, Submission
from priorart.schemas.user import Actor
from priorart.services.errors import NotFoundError, PermissionDeniedError, SubmissionClosedError
from priorart.services.leaderboard_service import invalidate_snapshot
from priorart.services.snapshot import (
    challenge_to_schema,
    list_challenge_ids,
    load_challenge,
    load_sub_challenge,
    submission_to_schema,
)
from priorart.workers.queue import enqueue_recompute_task

logger = logging.getLogger(__name__)


def _request_recompute(challenge_id: str) -> None:
    if not settings.ENQUEUE_RECOMPUTE:
        return
    try:
        enqueue_recompute_task(challenge_id)
    except RedisError as e:
        # the write is already committed; the next change will trigger a recompute
        logger.error(f"Could not enqueue leaderboard recompute for {challenge_id}: {e}", exc_info=True)


def _load_for_grading(
    db: Session,
    *,
    actor: Actor,
    submission_id: str,
) -> tuple[SubmissionRow, SubChallenge, OverallChallenge]:
    row = db.get(SubmissionRow, submission_id)
    if row is None:
        raise NotFoundError(f"submission {submission_id} not found")

    sub_challenge, challenge = load_sub_challenge(db, row.sub_challenge_id)
    if not assignment.can_evaluate(actor, sub_challenge, challenge.manager_ids):
        raise PermissionDeniedError(f"{actor.id} may not evaluate sub-challenge {sub_challenge.id}")

    return row, sub_challenge, challenge


def grading_context(
    db: Session,
    *,
    actor: Actor,
    submission_id: str,
) -> GradingContext:
    """
    The grading form for one submission: current (or default) judgments,
    the resulting score, and how each result overlaps other trainees' results.
    """
    row, sub_challenge, _ = _load_for_grading(db, actor=actor, submission_id=submission_id)
    submission = submission_to_schema(row)

    groups = duplicates.detect(sub_challenge.submissions)
    following = assignment.next_unevaluated(
        sub_challenge.submissions, after_trainee_id=submission.trainee_id
    )
    if following is not None and following.id == submission.id:
        following = None

    return GradingContext(
        submission=submission,
        judgments=scoring.default_result_evaluations(submission),
        breakdown=scoring.score_breakdown(submission, sub_challenge.evaluation_rules),
        duplicates=duplicates.annotate_submission(submission, groups),
        suggestions=duplicates.suggest_overrides(submission, groups),
        next_submission_id=following.id if following is not None else None,
    )


def save_evaluation(
    db: Session,
    *,
    actor: Actor,
    submission_id: str,
    obj_in: EvaluationCreate,
    now: datetime | None = None,
) -> Submission:
    """
    Store the evaluator's judgments; re-grading replaces the previous evaluation.
    Judgments for results the submission does not contain are dropped.
    """
    row, sub_challenge, challenge = _load_for_grading(db, actor=actor, submission_id=submission_id)
    if challenge.ended_at is not None:
        raise SubmissionClosedError(f"challenge {challenge.id} has ended")
    rules = sub_challenge.evaluation_rules

    result_ids = {r.get("id") for r in (row.results or []) if isinstance(r, dict)}
    judgments: List[ResultEvaluation] = []
    for je in obj_in.result_evaluations:
        if je.result_id not in result_ids:
            logger.warning(f"Ignoring judgment for unknown result {je.result_id} on submission {submission_id}")
            continue
        judgments.append(ResultEvaluation(**je.model_dump()))

    evaluation = Evaluation(
        evaluator_id=actor.id,
        result_evaluations=judgments,
        report_score=obj_in.report_score if rules.report.enabled else None,
        feedback=obj_in.feedback,
        evaluated_at=now or utcnow(),
    )
    row.evaluation = evaluation.model_dump(mode="json", exclude_none=True)
    invalidate_snapshot(db, challenge_id=sub_challenge.overall_challenge_id)

    db.add(row)
    db.commit()
    db.refresh(row)

    submission = submission_to_schema(row)
    logger.info(
        f"Evaluator {actor.id} graded submission {submission_id}: "
        f"score={scoring.score(submission, rules)}"
    )
    _request_recompute(sub_challenge.overall_challenge_id)
    return submission


def publish_scores(
    db: Session,
    *,
    actor: Actor,
    sub_challenge_id: str,
    now: datetime | None = None,
) -> SubChallenge:
    """Open the publication gate; only a manager of the parent challenge may."""
    row = db.get(SubChallengeRow, sub_challenge_id)
    if row is None:
        raise NotFoundError(f"sub-challenge {sub_challenge_id} not found")

    parent_row = db.get(OverallChallengeRow, row.overall_challenge_id)
    if parent_row is None:
        raise NotFoundError(f"challenge {row.overall_challenge_id} not found")
    parent = challenge_to_schema(parent_row)
    if not assignment.is_manager_of(actor, parent):
        raise PermissionDeniedError(f"{actor.id} is not a manager of challenge {parent.id}")

    row.scores_published_at = now or utcnow()
    invalidate_snapshot(db, challenge_id=parent.id)
    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info(f"Manager {actor.id} published scores of sub-challenge {sub_challenge_id}")
    _request_recompute(parent.id)
    sub_challenge, _ = load_sub_challenge(db, sub_challenge_id)
    return sub_challenge


def evaluator_dashboard(
    db: Session,
    *,
    actor: Actor,
) -> List[EvaluationProgress]:
    """Grading progress on every sub-challenge the actor may evaluate."""
    challenges = [load_challenge(db, cid) for cid in list_challenge_ids(db)]
    return [
        assignment.evaluation_progress(actor, sc)
        for sc in assignment.evaluable_sub_challenges(actor, challenges)
    ]
