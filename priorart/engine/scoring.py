# priorart/engine/scoring.py
"""
The single scoring function for graded submissions.

Per result:
  - score_override set      -> the override, tiers ignored
  - trainee tier == evaluator tier -> rules.tier_scores[type][tier] (0 if undefined)
  - tiers differ            -> rules.incorrect_penalty under PENALTY marking, else 0
  - no judgment yet         -> 0
Plus the report score when reports are enabled. The total is rounded half up.

Nothing here raises: a term that cannot be computed contributes 0 and the
rest of the submission still counts.
"""
import logging
import math

from priorart.schemas.challenge import EvaluationRules
from priorart.schemas.enums import IncorrectMarking, ResultVerdict
from priorart.schemas.score import ResultScore, ScoreBreakdown
from priorart.schemas.submission import ResultEvaluation, SubmittedResult, Submission

logger = logging.getLogger(__name__)

_TERM_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _finite(value: float | None) -> float:
    if value is None:
        return 0.0
    value = float(value)
    return value if math.isfinite(value) else 0.0


def judgments_by_result(submission: Submission) -> dict[str, ResultEvaluation]:
    judgments: dict[str, ResultEvaluation] = {}
    if submission.evaluation is None:
        return judgments
    for judgment in submission.evaluation.result_evaluations:
        judgments.setdefault(judgment.result_id, judgment)
    return judgments


def result_verdict(
    result: SubmittedResult,
    judgment: ResultEvaluation | None,
) -> ResultVerdict:
    if judgment is None:
        return ResultVerdict.PENDING
    if judgment.score_override is not None:
        return ResultVerdict.OVERRIDDEN
    if result.trainee_tier == judgment.evaluator_tier:
        return ResultVerdict.CORRECT
    if judgment.evaluator_tier.rank < result.trainee_tier.rank:
        return ResultVerdict.UPGRADED
    return ResultVerdict.DOWNGRADED


def result_points(
    result: SubmittedResult,
    judgment: ResultEvaluation | None,
    rules: EvaluationRules,
) -> float:
    if judgment is None:
        return 0.0
    if judgment.score_override is not None:
        return _finite(judgment.score_override)
    if result.trainee_tier == judgment.evaluator_tier:
        return _finite(rules.points_for(result.type, result.trainee_tier))
    if rules.incorrect_marking == IncorrectMarking.PENALTY:
        # sign is whatever the rules say; no clamping
        return _finite(rules.incorrect_penalty)
    return 0.0


def _report_points(submission: Submission, rules: EvaluationRules) -> float:
    try:
        if rules.report.enabled and submission.evaluation.report_score is not None:
            # not clamped to report.max_score
            return _finite(submission.evaluation.report_score)
    except _TERM_ERRORS as e:
        logger.warning(f"Ignoring report score of submission {submission.id}: {e}")
    return 0.0


def score_breakdown(submission: Submission, rules: EvaluationRules) -> ScoreBreakdown:
    if submission is None or submission.evaluation is None:
        return ScoreBreakdown()

    judgments = judgments_by_result(submission)
    lines: list[ResultScore] = []
    total = 0.0

    for result in submission.results:
        try:
            judgment = judgments.get(result.id)
            verdict = result_verdict(result, judgment)
            points = result_points(result, judgment, rules)
        except _TERM_ERRORS as e:
            logger.warning(
                f"Scoring result {getattr(result, 'id', '?')} of submission "
                f"{submission.id} as 0: {e}"
            )
            verdict, points = ResultVerdict.PENDING, 0.0
        lines.append(
            ResultScore(result_id=str(getattr(result, "id", "")), verdict=verdict, points=points)
        )
        total += points

    report = _report_points(submission, rules)
    total += report

    return ScoreBreakdown(
        results=lines,
        report_points=report,
        total=round_half_up(total),
        evaluated=True,
    )


def score(submission: Submission, rules: EvaluationRules) -> int:
    """Rounded total for one submission; 0 until it has been evaluated."""
    return score_breakdown(submission, rules).total


def default_result_evaluations(submission: Submission) -> list[ResultEvaluation]:
    """
    Starting point for the grading form: the existing judgments if any,
    otherwise every result judged at the trainee's own tier.
    """
    if submission.evaluation is not None and submission.evaluation.result_evaluations:
        return list(submission.evaluation.result_evaluations)
    return [
        ResultEvaluation(result_id=r.id, evaluator_tier=r.trainee_tier)
        for r in submission.results
    ]
