# priorart/engine/lifecycle.py
"""
Trainee-visible status of a sub-challenge, recomputed from time and stored
state on every query:

    overall challenge ended           -> Ended
    before the results deadline       -> Submitted / Active
    report window open, no report yet -> Report Due
    otherwise                         -> Submitted / Ended
"""
from datetime import datetime

from priorart.engine.clock import as_utc
from priorart.schemas.challenge import OverallChallenge, SubChallenge
from priorart.schemas.dashboard import LifecycleState, SubmissionWindow
from priorart.schemas.enums import SubmissionStatus
from priorart.schemas.submission import Submission


def _report_deadline(sub_challenge: SubChallenge) -> datetime | None:
    if sub_challenge.evaluation_rules.report.enabled and sub_challenge.report_end_time:
        return as_utc(sub_challenge.report_end_time)
    return None


def lifecycle_state(
    sub_challenge: SubChallenge,
    overall_challenge: OverallChallenge,
    submission: Submission | None,
    now: datetime,
) -> LifecycleState:
    if overall_challenge.ended_at is not None:
        return LifecycleState(status=SubmissionStatus.ENDED)

    now = as_utc(now)
    results_end = as_utc(sub_challenge.submission_end_time)

    if now < results_end:
        status = SubmissionStatus.SUBMITTED if submission is not None else SubmissionStatus.ACTIVE
        return LifecycleState(status=status, deadline=results_end)

    report_end = _report_deadline(sub_challenge)
    has_report = submission is not None and submission.report_file is not None
    if report_end is not None and now < report_end and not has_report:
        return LifecycleState(status=SubmissionStatus.REPORT_DUE, deadline=report_end)

    if submission is not None:
        return LifecycleState(status=SubmissionStatus.SUBMITTED)
    return LifecycleState(status=SubmissionStatus.ENDED)


def classify(
    sub_challenge: SubChallenge,
    overall_challenge: OverallChallenge,
    submission: Submission | None,
    now: datetime,
) -> SubmissionStatus:
    return lifecycle_state(sub_challenge, overall_challenge, submission, now).status


def submission_window(
    sub_challenge: SubChallenge,
    overall_challenge: OverallChallenge,
    now: datetime,
) -> SubmissionWindow:
    if overall_challenge.ended_at is not None:
        return SubmissionWindow(results_open=False, report_open=False)

    now = as_utc(now)
    report_end = _report_deadline(sub_challenge)
    return SubmissionWindow(
        results_open=now < as_utc(sub_challenge.submission_end_time),
        report_open=report_end is not None and now < report_end,
    )


def can_add_result(sub_challenge: SubChallenge, submission: Submission | None) -> bool:
    """False once the trainee has reached the sub-challenge's result limit."""
    if sub_challenge.submission_limit is None:
        return True
    current = len(submission.results) if submission is not None else 0
    return current < sub_challenge.submission_limit
