# priorart/services/snapshot.py
"""
Persistence boundary: turn ORM rows and their JSON columns into the typed
schemas the engine works on.

JSON is validated element by element. A malformed result or judgment is
logged and dropped instead of failing the whole submission; a malformed rule
field only zeroes its own term.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from priorart.models.challenge import OverallChallenge as OverallChallengeRow
from priorart.models.challenge import SubChallenge as SubChallengeRow
from priorart.models.submission import Submission as SubmissionRow
from priorart.models.user import Profile
from priorart.schemas.challenge import EvaluationRules, OverallChallenge, SubChallenge
from priorart.schemas.enums import IncorrectMarking, ResultTier, ResultType
from priorart.schemas.submission import (
    Evaluation,
    ReportFile,
    ResultEvaluation,
    Submission,
    SubmittedResult,
)
from priorart.schemas.user import ProfilePublic
from priorart.services.errors import NotFoundError

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)


_TYPE_VALUES = {t.value for t in ResultType}
_TIER_VALUES = {t.value for t in ResultTier}
_MARKING_VALUES = {m.value for m in IncorrectMarking}


def _clean_tier_table(table: Any, *, sub_challenge_id: str, label: str) -> dict:
    """Numeric ``{tier: points}`` entries only; anything else is logged and dropped."""
    cleaned: dict = {}
    if not isinstance(table, dict):
        logger.warning(f"Ignoring tier table {label!r} on sub-challenge {sub_challenge_id}")
        return cleaned

    for tier, points in table.items():
        number = _parse_number(points)
        if tier not in _TIER_VALUES or number is None:
            logger.warning(
                f"Ignoring tier score {label}/{tier}={points!r} on sub-challenge {sub_challenge_id}"
            )
            continue
        cleaned[tier] = number
    return cleaned


def _clean_tier_scores(table: Any, *, sub_challenge_id: str) -> dict:
    if not isinstance(table, dict):
        return {}

    if table and all(k in _TIER_VALUES for k in table):
        # legacy flat table, expanded to every result type by EvaluationRules
        return _clean_tier_table(table, sub_challenge_id=sub_challenge_id, label="*")

    cleaned: dict = {}
    for result_type, per_tier in table.items():
        if result_type not in _TYPE_VALUES:
            logger.warning(f"Ignoring tier scores for unknown type {result_type!r} on sub-challenge {sub_challenge_id}")
            continue
        cleaned[result_type] = _clean_tier_table(
            per_tier, sub_challenge_id=sub_challenge_id, label=result_type
        )
    return cleaned


def parse_rules(raw: Any, *, sub_challenge_id: str) -> EvaluationRules:
    """
    Rules are read field by field: a bad tier entry scores 0 on its own, a bad
    marking falls back to "zero", a bad penalty or max score to 0. The other
    fields keep their stored values.
    """
    if not isinstance(raw, dict):
        if raw:
            logger.warning(f"evaluation_rules on sub-challenge {sub_challenge_id} is not an object, scoring with empty rules")
        return EvaluationRules()

    marking = raw.get("incorrectMarking", raw.get("incorrect_marking"))
    if not isinstance(marking, str) or marking not in _MARKING_VALUES:
        if marking is not None:
            logger.warning(f"Unknown incorrectMarking {marking!r} on sub-challenge {sub_challenge_id}")
        marking = IncorrectMarking.ZERO.value

    report = raw.get("report")
    if not isinstance(report, dict):
        report = {}
    max_score = report.get("maxScore", report.get("max_score"))

    return EvaluationRules.model_validate(
        {
            "tierScores": _clean_tier_scores(
                raw.get("tierScores", raw.get("tier_scores")), sub_challenge_id=sub_challenge_id
            ),
            "incorrectMarking": marking,
            "incorrectPenalty": _parse_number(raw.get("incorrectPenalty", raw.get("incorrect_penalty"))) or 0,
            "report": {
                "enabled": report.get("enabled") is True,
                "maxScore": _parse_number(max_score) or 0,
            },
        }
    )


def parse_results(raw: Any, *, submission_id: str) -> List[SubmittedResult]:
    results: List[SubmittedResult] = []
    if not isinstance(raw, list):
        return results

    for idx, item in enumerate(raw):
        try:
            results.append(SubmittedResult.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping result #{idx} of submission {submission_id}: {e}")
    return results


def _parse_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_evaluation(
    raw: Any,
    *,
    submission_id: str,
    fallback_time: datetime,
) -> Optional[Evaluation]:
    if not raw:
        return None
    if not isinstance(raw, dict):
        logger.warning(f"Evaluation of submission {submission_id} is not an object, ignoring")
        return None

    judgments: List[ResultEvaluation] = []
    for idx, item in enumerate(raw.get("result_evaluations") or []):
        try:
            judgments.append(ResultEvaluation.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping judgment #{idx} of submission {submission_id}: {e}")

    try:
        evaluated_at = _datetime_adapter.validate_python(raw.get("evaluated_at"))
    except ValidationError:
        evaluated_at = fallback_time

    return Evaluation(
        evaluator_id=str(raw.get("evaluator_id") or ""),
        result_evaluations=judgments,
        report_score=_parse_number(raw.get("report_score")),
        feedback=str(raw.get("feedback") or ""),
        evaluated_at=evaluated_at,
    )


def parse_report_file(raw: Any) -> Optional[ReportFile]:
    if not raw:
        return None
    try:
        return ReportFile.model_validate(raw)
    except ValidationError:
        return None


def submission_to_schema(row: SubmissionRow) -> Submission:
    return Submission(
        id=row.id,
        sub_challenge_id=row.sub_challenge_id,
        trainee_id=row.trainee_id,
        submitted_at=row.submitted_at,
        results=parse_results(row.results, submission_id=row.id),
        report_file=parse_report_file(row.report_file),
        evaluation=parse_evaluation(
            row.evaluation, submission_id=row.id, fallback_time=row.submitted_at
        ),
    )


def sub_challenge_to_schema(
    row: SubChallengeRow,
    submissions: Iterable[SubmissionRow] = (),
) -> SubChallenge:
    return SubChallenge(
        id=row.id,
        overall_challenge_id=row.overall_challenge_id,
        title=row.title,
        patent_number=row.patent_number,
        submission_end_time=row.submission_end_time,
        report_end_time=row.report_end_time,
        evaluator_ids=row.evaluator_ids,
        evaluation_rules=parse_rules(row.evaluation_rules, sub_challenge_id=row.id),
        scores_published_at=row.scores_published_at,
        submission_limit=row.submission_limit,
        submissions=[submission_to_schema(s) for s in submissions],
    )


def challenge_to_schema(
    row: OverallChallengeRow,
    sub_challenges: Iterable[SubChallenge] = (),
) -> OverallChallenge:
    return OverallChallenge(
        id=row.id,
        name=row.name,
        manager_ids=row.manager_ids or [],
        trainee_ids=row.trainee_ids or [],
        evaluator_ids=row.evaluator_ids or [],
        ended_at=row.ended_at,
        sub_challenges=list(sub_challenges),
    )


def _submission_rows(db: Session, sub_challenge_id: str) -> List[SubmissionRow]:
    return (
        db.query(SubmissionRow)
        .filter(SubmissionRow.sub_challenge_id == sub_challenge_id)
        .order_by(SubmissionRow.submitted_at.asc(), SubmissionRow.id.asc())
        .all()
    )


def load_sub_challenge(
    db: Session,
    sub_challenge_id: str,
) -> tuple[SubChallenge, OverallChallenge]:
    """The sub-challenge with its submissions, and its parent (without children)."""
    row = db.get(SubChallengeRow, sub_challenge_id)
    if row is None:
        raise NotFoundError(f"sub-challenge {sub_challenge_id} not found")

    parent_row = db.get(OverallChallengeRow, row.overall_challenge_id)
    if parent_row is None:
        raise NotFoundError(
            f"challenge {row.overall_challenge_id} for sub-challenge {sub_challenge_id} not found"
        )

    sub_challenge = sub_challenge_to_schema(row, _submission_rows(db, row.id))
    return sub_challenge, challenge_to_schema(parent_row)


def load_challenge(db: Session, challenge_id: str) -> OverallChallenge:
    row = db.get(OverallChallengeRow, challenge_id)
    if row is None:
        raise NotFoundError(f"challenge {challenge_id} not found")

    sc_rows = (
        db.query(SubChallengeRow)
        .filter(SubChallengeRow.overall_challenge_id == challenge_id)
        .order_by(SubChallengeRow.submission_end_time.asc(), SubChallengeRow.id.asc())
        .all()
    )
    sub_challenges = [sub_challenge_to_schema(sc, _submission_rows(db, sc.id)) for sc in sc_rows]
    return challenge_to_schema(row, sub_challenges)


def load_profiles(db: Session, profile_ids: Iterable[str]) -> List[ProfilePublic]:
    """Profiles in the order of ``profile_ids``; unknown ids are skipped."""
    ids = list(profile_ids)
    if not ids:
        return []
    rows = {p.id: p for p in db.query(Profile).filter(Profile.id.in_(ids)).all()}
    return [ProfilePublic.model_validate(rows[i]) for i in ids if i in rows]


def list_challenge_ids(db: Session) -> List[str]:
    rows = (
        db.query(OverallChallengeRow.id)
        .order_by(OverallChallengeRow.created_at.asc(), OverallChallengeRow.id.asc())
        .all()
    )
    return [r.id for r in rows]
