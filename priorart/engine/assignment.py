# priorart/engine/assignment.py
"""
Who may grade a sub-challenge.

An explicit entry in ``sub_challenge.evaluator_ids`` always grants access.
A sub-challenge with no evaluators falls back to the managers of its overall
challenge. Answer per (actor, sub-challenge) pair: the fallback depends on each
sub-challenge's own evaluator list.
"""
from typing import Iterable, Sequence

from priorart.schemas.challenge import OverallChallenge, SubChallenge
from priorart.schemas.dashboard import EvaluationProgress
from priorart.schemas.enums import Role
from priorart.schemas.submission import Submission
from priorart.schemas.user import Actor


def can_evaluate(
    actor: Actor,
    sub_challenge: SubChallenge,
    parent_manager_ids: Sequence[str],
) -> bool:
    evaluator_ids = sub_challenge.evaluator_ids or []

    if actor.id in evaluator_ids:
        return True

    if (
        actor.role == Role.MANAGER
        and not evaluator_ids
        and actor.id in (parent_manager_ids or [])
    ):
        return True

    return False


def is_manager_of(actor: Actor, challenge: OverallChallenge) -> bool:
    return actor.role == Role.MANAGER and actor.id in challenge.manager_ids


def evaluable_sub_challenges(
    actor: Actor,
    challenges: Iterable[OverallChallenge],
) -> list[SubChallenge]:
    return [
        sc
        for oc in challenges
        for sc in oc.sub_challenges
        if can_evaluate(actor, sc, oc.manager_ids)
    ]


def evaluation_progress(actor: Actor, sub_challenge: SubChallenge) -> EvaluationProgress:
    """How many of the sub-challenge's submissions this actor has graded."""
    evaluated = sum(
        1
        for s in sub_challenge.submissions
        if s.evaluation is not None and s.evaluation.evaluator_id == actor.id
    )
    return EvaluationProgress(
        sub_challenge_id=sub_challenge.id,
        evaluated=evaluated,
        total=len(sub_challenge.submissions),
    )


def next_unevaluated(
    submissions: Sequence[Submission],
    after_trainee_id: str | None = None,
) -> Submission | None:
    """
    The next ungraded submission after ``after_trainee_id`` in list order,
    wrapping around to the first ungraded one.
    """
    start = 0
    if after_trainee_id is not None:
        for idx, sub in enumerate(submissions):
            if sub.trainee_id == after_trainee_id:
                start = idx + 1
                break

    ordered = list(submissions[start:]) + list(submissions[:start])
    for sub in ordered:
        if sub.evaluation is None:
            return sub
    return None
