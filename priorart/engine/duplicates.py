# priorart/engine/duplicates.py
"""
Cross-submission duplicate detection.

Every result of every submission is filed under its normalized key; within a
key, submitters are ordered by when they submitted that result, so the first
entry is the "first submitter" of that reference.
"""
import logging
from typing import Iterable

from priorart.engine.clock import as_utc
from priorart.engine.normalizer import normalize
from priorart.schemas.duplicate import (
    DuplicateAnnotation,
    DuplicateGroup,
    OverrideSuggestion,
    SubmitterEntry,
)
from priorart.schemas.submission import Submission

logger = logging.getLogger(__name__)

DuplicateMap = dict[str, list[SubmitterEntry]]


def _order_key(entry: SubmitterEntry) -> tuple:
    # total order: time, then identity
    return (
        as_utc(entry.submitted_at),
        entry.trainee_id,
        entry.submission_id or "",
        entry.result_id or "",
    )


def detect(submissions: Iterable[Submission]) -> DuplicateMap:
    groups: DuplicateMap = {}

    for submission in submissions:
        for result in submission.results:
            key = normalize(result.value, result.type)
            groups.setdefault(key, []).append(
                SubmitterEntry(
                    trainee_id=submission.trainee_id,
                    original_value=result.value,
                    submitted_at=result.submitted_at or submission.submitted_at,
                    submission_id=submission.id,
                    result_id=result.id,
                )
            )

    for entries in groups.values():
        entries.sort(key=_order_key)

    logger.debug(f"Detected {len(groups)} distinct references")
    return groups


def is_duplicate(groups: DuplicateMap, key: str) -> bool:
    return len(groups.get(key, [])) > 1


def duplicate_groups(groups: DuplicateMap) -> list[DuplicateGroup]:
    """Only the keys submitted more than once, sorted by key."""
    return [
        DuplicateGroup(key=key, submitters=entries)
        for key, entries in sorted(groups.items())
        if len(entries) > 1
    ]


def annotate_submission(
    submission: Submission,
    groups: DuplicateMap,
) -> list[DuplicateAnnotation]:
    annotations: list[DuplicateAnnotation] = []

    for result in submission.results:
        key = normalize(result.value, result.type)
        entries = groups.get(key)
        if not entries:
            # submission was not part of the detected snapshot
            continue

        first = entries[0]
        is_first = first.submission_id == submission.id and first.result_id == result.id
        others = [
            e for e in entries
            if not (e.submission_id == submission.id and e.result_id == result.id)
        ]
        annotations.append(
            DuplicateAnnotation(
                result_id=result.id,
                key=key,
                is_duplicate=is_duplicate(groups, key),
                is_first=is_first,
                first_submitter=first,
                others=others,
            )
        )

    return annotations


def suggest_overrides(
    submission: Submission,
    groups: DuplicateMap,
    *,
    suggested_score: float = 0,
) -> list[OverrideSuggestion]:
    """
    Override suggestions for results someone else (or the same trainee, earlier)
    already submitted. Evaluators decide whether to apply them.
    """
    suggestions: list[OverrideSuggestion] = []

    for ann in annotate_submission(submission, groups):
        if not ann.is_duplicate or ann.is_first:
            continue

        first = ann.first_submitter
        if first.trainee_id == submission.trainee_id:
            reason = f"Repeats {first.original_value!r} from the same submission"
        else:
            reason = (
                f"Duplicate of {first.original_value!r} first submitted by "
                f"{first.trainee_id} at {first.submitted_at.isoformat()}"
            )
        suggestions.append(
            OverrideSuggestion(
                result_id=ann.result_id,
                suggested_score=suggested_score,
                reason=reason,
            )
        )

    return suggestions
