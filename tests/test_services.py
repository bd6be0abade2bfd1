"""
Service-level tests against an in-memory SQLite database.
"""

from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from priorart.engine.clock import as_utc
from priorart.models.challenge import SubChallenge as SubChallengeRow
from priorart.models.leaderboard import LeaderboardSnapshot
from priorart.models.submission import Submission as SubmissionRow
from priorart.models.user import Profile
from priorart.schemas.enums import ResultTier, ResultType, ResultVerdict, Role, SubmissionStatus
from priorart.schemas.submission import (
    EvaluationCreate,
    ReportFile,
    ResultEvaluationIn,
    SubmittedResultCreate,
)
from priorart.services import evaluation_service, leaderboard_service, submission_service
from priorart.services.errors import (
    ChallengeError,
    NotFoundError,
    PermissionDeniedError,
    SubmissionClosedError,
    SubmissionLimitError,
)
from priorart.services.snapshot import load_sub_challenge
from tests.factories import T0, actor

MANAGER = actor("mgr-1", Role.MANAGER)
OTHER_MANAGER = actor("mgr-2", Role.MANAGER)
EVALUATOR = actor("eval-1", Role.EVALUATOR)
BOB = actor("trainee-1", Role.TRAINEE)
CHARLIE = actor("trainee-2", Role.TRAINEE)

GRADING_TIME = T0 + timedelta(days=12)


def _submit(db, trainee, value="US-1,234,567", *, sub_challenge_id="sc-1", now=T0, tier=ResultTier.TIER_1):
    return submission_service.add_result(
        db,
        trainee=trainee,
        sub_challenge_id=sub_challenge_id,
        obj_in=SubmittedResultCreate(value=value, type=ResultType.PATENT, trainee_tier=tier),
        now=now,
    )


def _grade(db, grader, submission, tier=ResultTier.TIER_1, report_score=None):
    return evaluation_service.save_evaluation(
        db,
        actor=grader,
        submission_id=submission.id,
        obj_in=EvaluationCreate(
            result_evaluations=[
                ResultEvaluationIn(result_id=r.id, evaluator_tier=tier) for r in submission.results
            ],
            report_score=report_score,
        ),
        now=GRADING_TIME,
    )


@pytest.fixture
def recompute_calls(monkeypatch):
    """Record leaderboard recompute requests instead of talking to Redis."""
    calls = []
    monkeypatch.setattr(evaluation_service.settings, "ENQUEUE_RECOMPUTE", True)
    monkeypatch.setattr(evaluation_service, "enqueue_recompute_task", calls.append)
    return calls


class TestAddResult:

    def test_first_result_creates_submission(self, db_session, challenge):
        submission = _submit(db_session, BOB, "  US-1,234,567 ")

        assert submission.trainee_id == "trainee-1"
        assert submission.sub_challenge_id == "sc-1"
        assert [r.value for r in submission.results] == ["US-1,234,567"]
        assert submission.evaluation is None

    def test_later_results_extend_the_same_submission(self, db_session, challenge):
        first = _submit(db_session, BOB, "US-1")
        second = _submit(db_session, BOB, "US-2", now=T0 + timedelta(hours=1))

        assert second.id == first.id
        assert [r.value for r in second.results] == ["US-1", "US-2"]
        assert db_session.query(SubmissionRow).count() == 1

    def test_result_limit(self, db_session, challenge):
        _submit(db_session, BOB, "US-1")
        _submit(db_session, BOB, "US-2")

        with pytest.raises(SubmissionLimitError):
            _submit(db_session, BOB, "US-3")

        # unlimited sub-challenge
        for n in range(3):
            _submit(db_session, BOB, f"EP-{n}", sub_challenge_id="sc-2")

    def test_closed_after_deadline(self, db_session, challenge):
        with pytest.raises(SubmissionClosedError):
            _submit(db_session, BOB, now=T0 + timedelta(days=10))

    def test_closed_once_challenge_ended(self, db_session, challenge):
        challenge.ended_at = T0
        db_session.commit()

        with pytest.raises(SubmissionClosedError):
            _submit(db_session, BOB)

    def test_only_enrolled_trainees(self, db_session, challenge):
        with pytest.raises(PermissionDeniedError):
            _submit(db_session, actor("trainee-9", Role.TRAINEE))

    def test_blank_value_rejected(self, db_session, challenge):
        with pytest.raises(ChallengeError):
            _submit(db_session, BOB, "   ")

    def test_unknown_sub_challenge(self, db_session, challenge):
        with pytest.raises(NotFoundError):
            _submit(db_session, BOB, sub_challenge_id="missing")


class TestAttachReport:

    def test_report_during_report_window(self, db_session, challenge):
        _submit(db_session, BOB)
        submission = submission_service.attach_report(
            db_session,
            trainee=BOB,
            sub_challenge_id="sc-1",
            report=ReportFile(name="report.pdf", path="trainee-1/report.pdf"),
            now=T0 + timedelta(days=12),
        )
        assert submission.report_file.name == "report.pdf"
        assert len(submission.results) == 1

    def test_report_upload_keeps_submission_time(self, db_session, challenge):
        first = _submit(db_session, BOB, now=T0)
        _submit(db_session, CHARLIE, now=T0 + timedelta(hours=1))

        submission = submission_service.attach_report(
            db_session,
            trainee=BOB,
            sub_challenge_id="sc-1",
            report=ReportFile(name="report.pdf", path="trainee-1/report.pdf"),
            now=T0 + timedelta(days=12),
        )
        assert as_utc(submission.submitted_at) == as_utc(first.submitted_at) == T0

        sub_challenge, _ = load_sub_challenge(db_session, "sc-1")
        assert [s.trainee_id for s in sub_challenge.submissions] == ["trainee-1", "trainee-2"]

    def test_report_window_closes(self, db_session, challenge):
        report = ReportFile(name="report.pdf", path="trainee-1/report.pdf")

        with pytest.raises(SubmissionClosedError):
            submission_service.attach_report(
                db_session, trainee=BOB, sub_challenge_id="sc-1", report=report,
                now=T0 + timedelta(days=15),
            )
        # sc-2 has no report deadline
        with pytest.raises(SubmissionClosedError):
            submission_service.attach_report(
                db_session, trainee=BOB, sub_challenge_id="sc-2", report=report, now=T0,
            )


class TestSaveEvaluation:

    def test_assigned_evaluator_grades(self, db_session, challenge):
        submission = _submit(db_session, BOB)
        graded = _grade(db_session, EVALUATOR, submission, report_score=25)

        assert graded.evaluation.evaluator_id == "eval-1"
        assert graded.evaluation.report_score == 25

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=submission.id)
        assert context.breakdown.total == 45
        assert context.breakdown.results[0].verdict == ResultVerdict.CORRECT

    def test_regrading_replaces_evaluation(self, db_session, challenge):
        submission = _submit(db_session, BOB)
        _grade(db_session, EVALUATOR, submission)
        _grade(db_session, EVALUATOR, submission, tier=ResultTier.TIER_3)

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=submission.id)
        assert context.breakdown.total == -5

    def test_unknown_result_ids_dropped(self, db_session, challenge):
        submission = _submit(db_session, BOB)
        graded = evaluation_service.save_evaluation(
            db_session,
            actor=EVALUATOR,
            submission_id=submission.id,
            obj_in=EvaluationCreate(
                result_evaluations=[
                    ResultEvaluationIn(result_id=submission.results[0].id, evaluator_tier=ResultTier.TIER_1),
                    ResultEvaluationIn(result_id="not-a-result", evaluator_tier=ResultTier.TIER_1),
                ]
            ),
        )
        assert [j.result_id for j in graded.evaluation.result_evaluations] == [submission.results[0].id]

    def test_manager_replaced_by_assigned_evaluator(self, db_session, challenge):
        submission = _submit(db_session, BOB)

        with pytest.raises(PermissionDeniedError):
            _grade(db_session, MANAGER, submission)
        with pytest.raises(PermissionDeniedError):
            evaluation_service.grading_context(db_session, actor=MANAGER, submission_id=submission.id)

    def test_manager_grades_unassigned_sub_challenge(self, db_session, challenge):
        submission = _submit(db_session, BOB, sub_challenge_id="sc-2")

        graded = _grade(db_session, MANAGER, submission)
        assert graded.evaluation.evaluator_id == "mgr-1"

        with pytest.raises(PermissionDeniedError):
            _grade(db_session, OTHER_MANAGER, submission)
        with pytest.raises(PermissionDeniedError):
            _grade(db_session, EVALUATOR, submission)

    def test_ended_challenge_is_read_only(self, db_session, challenge):
        submission = _submit(db_session, BOB)
        challenge.ended_at = T0 + timedelta(days=11)
        db_session.commit()

        with pytest.raises(SubmissionClosedError):
            _grade(db_session, EVALUATOR, submission)

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=submission.id)
        assert not context.breakdown.evaluated

    def test_unknown_submission(self, db_session, challenge):
        with pytest.raises(NotFoundError):
            evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id="missing")

    def test_recompute_requested_after_grading(self, db_session, challenge, recompute_calls):
        submission = _submit(db_session, BOB)
        _grade(db_session, EVALUATOR, submission)

        assert recompute_calls == ["oc-1"]

    def test_redis_outage_does_not_fail_grading(self, db_session, challenge, monkeypatch):
        def broken(challenge_id):
            raise RedisConnectionError("redis down")

        monkeypatch.setattr(evaluation_service.settings, "ENQUEUE_RECOMPUTE", True)
        monkeypatch.setattr(evaluation_service, "enqueue_recompute_task", broken)

        submission = _submit(db_session, BOB)
        assert _grade(db_session, EVALUATOR, submission).evaluation is not None


class TestGradingContext:

    def test_defaults_and_duplicate_suggestions(self, db_session, challenge):
        _submit(db_session, BOB, "US-1,234,567", now=T0)
        later = _submit(db_session, CHARLIE, "us 1234567", now=T0 + timedelta(hours=1), tier=ResultTier.TIER_2)

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=later.id)

        assert [j.evaluator_tier for j in context.judgments] == [ResultTier.TIER_2]
        assert not context.breakdown.evaluated
        (annotation,) = context.duplicates
        assert annotation.is_duplicate
        assert annotation.first_submitter.trainee_id == "trainee-1"
        (suggestion,) = context.suggestions
        assert suggestion.suggested_score == 0

    def test_next_ungraded_submission(self, db_session, challenge):
        bob = _submit(db_session, BOB, "US-1", now=T0)
        charlie = _submit(db_session, CHARLIE, "US-2", now=T0 + timedelta(hours=1))

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=bob.id)
        assert context.next_submission_id == charlie.id

        _grade(db_session, EVALUATOR, charlie)
        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=bob.id)
        assert context.next_submission_id is None

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id=charlie.id)
        assert context.next_submission_id == bob.id


class TestPublishAndLeaderboards:

    def _graded_pair(self, db):
        bob = _submit(db, BOB, "US-1")
        charlie = _submit(db, CHARLIE, "US-2")
        _grade(db, EVALUATOR, bob)
        _grade(db, EVALUATOR, charlie, tier=ResultTier.TIER_2)

    def test_public_board_waits_for_publication(self, db_session, challenge):
        self._graded_pair(db_session)

        public = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1")
        assert [(e.trainee_id, e.total_score) for e in public.entries] == [
            ("trainee-1", 0),
            ("trainee-2", 0),
        ]

        internal = leaderboard_service.manager_leaderboard(db_session, actor=MANAGER, challenge_id="oc-1")
        assert [(e.trainee_id, e.total_score) for e in internal.entries] == [
            ("trainee-1", 20),
            ("trainee-2", -5),
        ]

        published = evaluation_service.publish_scores(
            db_session, actor=MANAGER, sub_challenge_id="sc-1", now=GRADING_TIME
        )
        assert published.scores_published_at is not None

        public = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1")
        assert [e.total_score for e in public.entries] == [20, -5]

    def test_sub_challenge_board(self, db_session, challenge):
        self._graded_pair(db_session)

        assert leaderboard_service.sub_challenge_board(db_session, sub_challenge_id="sc-1").entries == []

        evaluation_service.publish_scores(db_session, actor=MANAGER, sub_challenge_id="sc-1")
        board = leaderboard_service.sub_challenge_board(db_session, sub_challenge_id="sc-1")
        assert [e.name for e in board.entries] == ["Bob Trainee", "Charlie Trainee"]
        assert board.first_tier_one == "trainee-1"

    def test_only_managers_publish(self, db_session, challenge):
        with pytest.raises(PermissionDeniedError):
            evaluation_service.publish_scores(db_session, actor=EVALUATOR, sub_challenge_id="sc-1")
        with pytest.raises(PermissionDeniedError):
            evaluation_service.publish_scores(db_session, actor=OTHER_MANAGER, sub_challenge_id="sc-1")
        with pytest.raises(NotFoundError):
            evaluation_service.publish_scores(db_session, actor=MANAGER, sub_challenge_id="missing")

    def test_manager_board_is_private(self, db_session, challenge):
        with pytest.raises(PermissionDeniedError):
            leaderboard_service.manager_leaderboard(db_session, actor=OTHER_MANAGER, challenge_id="oc-1")
        with pytest.raises(NotFoundError):
            leaderboard_service.challenge_leaderboard(db_session, challenge_id="missing")

    def test_duplicates_for_evaluators_only(self, db_session, challenge):
        _submit(db_session, BOB, "US-1,234,567")
        _submit(db_session, CHARLIE, "US1234567", now=T0 + timedelta(hours=1))

        (group,) = leaderboard_service.duplicates_for(db_session, actor=EVALUATOR, sub_challenge_id="sc-1")
        assert group.key == "us1234567"
        assert [s.trainee_id for s in group.submitters] == ["trainee-1", "trainee-2"]

        with pytest.raises(PermissionDeniedError):
            leaderboard_service.duplicates_for(db_session, actor=BOB, sub_challenge_id="sc-1")

    def test_imported_email_does_not_break_boards(self, db_session, challenge):
        db_session.add(Profile(id="trainee-3", email="carol@localhost", name="Carol Trainee", role="Trainee"))
        challenge.trainee_ids = ["trainee-1", "trainee-2", "trainee-3"]
        db_session.commit()

        board = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1")
        assert "Carol Trainee" in [e.name for e in board.entries]

    def test_snapshot_is_served_until_scores_change(self, db_session, challenge):
        self._graded_pair(db_session)
        internal = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1", public=False)
        public = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1")
        leaderboard_service.save_snapshot(db_session, internal=internal, public=public, now=GRADING_TIME)

        row = db_session.get(LeaderboardSnapshot, "oc-1")
        row.public_entries = [{"trainee_id": "trainee-2", "name": "Charlie Trainee", "total_score": 99}]
        db_session.commit()

        cached = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1")
        assert [e.total_score for e in cached.entries] == [99]

        evaluation_service.publish_scores(db_session, actor=MANAGER, sub_challenge_id="sc-1")
        assert db_session.get(LeaderboardSnapshot, "oc-1") is None

        public = leaderboard_service.challenge_leaderboard(db_session, challenge_id="oc-1")
        assert [e.total_score for e in public.entries] == [20, -5]

    def test_unreadable_snapshot_is_recomputed(self, db_session, challenge):
        self._graded_pair(db_session)
        db_session.add(
            LeaderboardSnapshot(
                challenge_id="oc-1",
                name="stale",
                entries=[{"trainee_id": "trainee-1"}],
                public_entries=[],
                computed_at=GRADING_TIME,
            )
        )
        db_session.commit()

        internal = leaderboard_service.manager_leaderboard(db_session, actor=MANAGER, challenge_id="oc-1")
        assert [e.total_score for e in internal.entries] == [20, -5]


class TestDashboards:

    def test_trainee_dashboard(self, db_session, challenge):
        submission = _submit(db_session, BOB)

        entries = {e.sub_challenge_id: e for e in leaderboard_service.trainee_dashboard(db_session, trainee=BOB, now=T0)}
        assert entries["sc-1"].status == SubmissionStatus.SUBMITTED
        assert entries["sc-2"].status == SubmissionStatus.ACTIVE
        assert entries["sc-1"].score is None

        _grade(db_session, EVALUATOR, submission)
        later = T0 + timedelta(days=13)
        entries = {e.sub_challenge_id: e for e in leaderboard_service.trainee_dashboard(db_session, trainee=BOB, now=later)}
        assert entries["sc-1"].status == SubmissionStatus.REPORT_DUE
        assert entries["sc-1"].score is None

        evaluation_service.publish_scores(db_session, actor=MANAGER, sub_challenge_id="sc-1")
        entries = {e.sub_challenge_id: e for e in leaderboard_service.trainee_dashboard(db_session, trainee=BOB, now=later)}
        assert entries["sc-1"].score == 20

    def test_dashboard_skips_other_challenges(self, db_session, challenge):
        assert leaderboard_service.trainee_dashboard(db_session, trainee=actor("trainee-9", Role.TRAINEE)) == []

    def test_evaluator_dashboard(self, db_session, challenge):
        submission = _submit(db_session, BOB)
        _submit(db_session, CHARLIE)
        _grade(db_session, EVALUATOR, submission)

        (progress,) = evaluation_service.evaluator_dashboard(db_session, actor=EVALUATOR)
        assert progress.sub_challenge_id == "sc-1"
        assert (progress.evaluated, progress.total) == (1, 2)

        (manager_view,) = evaluation_service.evaluator_dashboard(db_session, actor=MANAGER)
        assert manager_view.sub_challenge_id == "sc-2"
        assert manager_view.total == 0


class TestStoredJson:

    def test_malformed_entries_are_skipped(self, db_session, challenge):
        row = SubmissionRow(
            id="sub-legacy",
            sub_challenge_id="sc-1",
            trainee_id="trainee-1",
            submitted_at=T0,
            results=[
                {"id": "r1", "value": "US-1", "type": "Patent", "trainee_tier": "Tier-1"},
                {"id": "r2", "value": "US-2", "type": "Patent", "trainee_tier": "Tier-9"},
                "junk",
            ],
            evaluation={
                "evaluator_id": "eval-1",
                "result_evaluations": [
                    {"result_id": "r1", "evaluator_tier": "Tier-1"},
                    {"result_id": "r2"},
                ],
                "report_score": "not a number",
            },
        )
        db_session.add(row)
        db_session.commit()

        sub_challenge, _ = load_sub_challenge(db_session, "sc-1")
        (submission,) = sub_challenge.submissions
        assert [r.id for r in submission.results] == ["r1"]
        assert submission.evaluation.report_score is None
        assert submission.evaluation.evaluated_at is not None

        context = evaluation_service.grading_context(db_session, actor=EVALUATOR, submission_id="sub-legacy")
        assert context.breakdown.total == 20

    def test_unreadable_rules_score_zero(self, db_session, challenge):
        sc_row = db_session.get(SubChallengeRow, "sc-2")
        sc_row.evaluation_rules = {"incorrectMarking": "sometimes"}
        db_session.commit()

        submission = _submit(db_session, BOB, sub_challenge_id="sc-2")
        _grade(db_session, MANAGER, submission)

        context = evaluation_service.grading_context(db_session, actor=MANAGER, submission_id=submission.id)
        assert context.breakdown.evaluated
        assert context.breakdown.total == 0

    def test_null_max_score_keeps_tiers_and_report(self, db_session, challenge):
        sc_row = db_session.get(SubChallengeRow, "sc-2")
        sc_row.evaluation_rules = {
            "tierScores": {"Patent": {"Tier-1": 20, "Tier-2": None}},
            "report": {"enabled": True, "maxScore": None},
        }
        db_session.commit()

        submission = _submit(db_session, BOB, sub_challenge_id="sc-2")
        graded = _grade(db_session, MANAGER, submission, report_score=25)
        assert graded.evaluation.report_score == 25

        context = evaluation_service.grading_context(db_session, actor=MANAGER, submission_id=submission.id)
        assert context.breakdown.total == 45
