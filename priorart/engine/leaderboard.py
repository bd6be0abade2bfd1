# priorart/engine/leaderboard.py
"""
Rankings built from scored submissions.

Only evaluated submissions count. Public boards (``public=True``) also skip
sub-challenges whose scores have not been published yet; manager views see
everything. Ties keep input order.
"""
import logging
from typing import Iterable, Sequence

from priorart.engine.clock import as_utc
from priorart.engine.scoring import judgments_by_result, score
from priorart.schemas.challenge import SubChallenge
from priorart.schemas.enums import ResultTier
from priorart.schemas.score import RankedEntry, SubChallengeEntry, SubChallengeLeaderboard
from priorart.schemas.submission import Submission
from priorart.schemas.user import ProfilePublic

logger = logging.getLogger(__name__)


def is_visible(sub_challenge: SubChallenge, *, public: bool) -> bool:
    return not public or sub_challenge.scores_published_at is not None


def _rank(entries: list) -> list:
    # list.sort is stable, so equal totals stay in input order
    entries.sort(key=lambda e: -e.total_score)
    return entries


def aggregate(
    trainees: Sequence[ProfilePublic],
    sub_challenges: Iterable[SubChallenge],
    *,
    public: bool = False,
) -> list[RankedEntry]:
    visible = [sc for sc in sub_challenges if is_visible(sc, public=public)]

    entries: list[RankedEntry] = []
    for trainee in trainees:
        total = 0
        for sc in visible:
            submission = sc.submission_for(trainee.id)
            if submission is None or not submission.is_evaluated:
                continue
            total += score(submission, sc.evaluation_rules)
        entries.append(RankedEntry(trainee_id=trainee.id, name=trainee.name, total_score=total))

    logger.debug(f"Ranked {len(entries)} trainees over {len(visible)} sub-challenges")
    return _rank(entries)


def _correct_tiers(submission: Submission) -> set[ResultTier]:
    """Tiers the trainee called the same as the evaluator."""
    judgments = judgments_by_result(submission)
    tiers: set[ResultTier] = set()
    for result in submission.results:
        judgment = judgments.get(result.id)
        if judgment is not None and judgment.evaluator_tier == result.trainee_tier:
            tiers.add(result.trainee_tier)
    return tiers


def first_correct_tier_one(sub_challenge: SubChallenge) -> str | None:
    """Trainee id behind the earliest result both sides rated Tier-1."""
    candidates = []
    for submission in sub_challenge.submissions:
        if submission.evaluation is None:
            continue
        judgments = judgments_by_result(submission)
        for result in submission.results:
            judgment = judgments.get(result.id)
            if (
                judgment is not None
                and result.trainee_tier == ResultTier.TIER_1
                and judgment.evaluator_tier == ResultTier.TIER_1
            ):
                at = as_utc(result.submitted_at or submission.submitted_at)
                candidates.append((at, submission.trainee_id, result.id))

    if not candidates:
        return None
    return min(candidates)[1]


def sub_challenge_leaderboard(
    sub_challenge: SubChallenge,
    profiles: Iterable[ProfilePublic],
    *,
    public: bool = False,
) -> SubChallengeLeaderboard:
    board = SubChallengeLeaderboard(
        sub_challenge_id=sub_challenge.id,
        title=sub_challenge.title,
        published=sub_challenge.scores_published_at is not None,
    )
    if not is_visible(sub_challenge, public=public):
        return board

    names = {p.id: p.name for p in profiles}
    entries: list[SubChallengeEntry] = []
    for submission in sub_challenge.submissions:
        if submission.evaluation is None or submission.trainee_id not in names:
            continue
        tiers = _correct_tiers(submission)
        entries.append(
            SubChallengeEntry(
                trainee_id=submission.trainee_id,
                name=names[submission.trainee_id],
                total_score=score(submission, sub_challenge.evaluation_rules),
                has_correct_tier_one_or_two=bool(tiers & {ResultTier.TIER_1, ResultTier.TIER_2}),
            )
        )

    board.entries = _rank(entries)
    board.first_tier_one = first_correct_tier_one(sub_challenge)
    return board
