# tests/lifecycle/test_controller.py
"""
Tests for GoalLifecycleController: goals, questioning, grading and attestation.

Covers:
- Goal creation and validation
- Question generation, overwrite semantics and judge failure
- Answer grading, transcripts and the judge-failure policies
- Terminal re-entry policy
- Attestation, feed membership and assertions
- Public views (feed, history, known users)
"""

from unittest.mock import AsyncMock

import pytest

from proofday.attestation.eas_attestor import EASAttestor
from proofday.config import LifecycleConfig
from proofday.exceptions import (NotFoundError, StateError, StorageError,
                                 UpstreamError, ValidationError)
from proofday.lifecycle import TRANSCRIPT_HEADER
from proofday.models import GoalStatus, QuestionPair, Verdict


async def _graded(controller, judge, verdicts, owner="alice", title="Read ch.1"):
    judge.verdicts = list(verdicts)
    goal = await controller.create_goal(owner, title, scope="Chapter 1")
    await controller.request_questions(goal.id)
    outcome = await controller.submit_answers(goal.id, ["ans1", "ans2"])
    return outcome


# =============================================================================
# Create
# =============================================================================


class TestCreateGoal:

    @pytest.mark.asyncio
    async def test_new_goal_is_pending(self, controller, store):
        goal = await controller.create_goal("alice", "Read ch.1")
        assert goal.status == GoalStatus.PENDING
        assert goal.disputed is False
        assert goal.attestation_id is None
        assert goal.questions is None
        assert await store.get_by_id(goal.id) is not None

    @pytest.mark.asyncio
    async def test_owner_is_trimmed_and_registered(self, controller):
        goal = await controller.create_goal("  alice ", "Read ch.1")
        assert goal.owner == "alice"
        assert await controller.list_known_users() == ["alice"]
        assert [g.id for g in await controller.list_goals("alice")] == [goal.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("owner,title", [("", "Read"), ("   ", "Read"), ("alice", ""), ("alice", "  ")])
    async def test_missing_owner_or_title(self, controller, store, owner, title):
        with pytest.raises(ValidationError):
            await controller.create_goal(owner, title)
        assert await store.list_known_users() == []

    @pytest.mark.asyncio
    async def test_invalid_deadline(self, controller):
        with pytest.raises(ValidationError):
            await controller.create_goal("alice", "Read", deadline="not-a-date")

    @pytest.mark.asyncio
    async def test_no_collaborator_called(self, controller, judge, attestor):
        await controller.create_goal("alice", "Read ch.1")
        assert judge.question_calls == 0
        assert attestor.published == []

    @pytest.mark.asyncio
    async def test_list_goals_most_recent_first(self, controller):
        first = await controller.create_goal("alice", "One")
        second = await controller.create_goal("alice", "Two")
        await controller.create_goal("bob", "Other")
        assert [g.id for g in await controller.list_goals("alice")] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_get_goal_not_found(self, controller):
        with pytest.raises(NotFoundError) as exc_info:
            await controller.get_goal("missing")
        assert exc_info.value.goal_id == "missing"


# =============================================================================
# Questions
# =============================================================================


class TestRequestQuestions:

    @pytest.mark.asyncio
    async def test_questions_persisted(self, controller):
        goal = await controller.create_goal("alice", "Read ch.1")
        questions = await controller.request_questions(goal.id)
        assert questions.first and questions.second
        stored = await controller.get_goal(goal.id)
        assert stored.questions == questions
        assert stored.is_questioned

    @pytest.mark.asyncio
    async def test_rerun_overwrites_pair(self, controller, judge):
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        judge.generate_questions = AsyncMock(return_value=QuestionPair(first="new 1", second="new 2"))
        latest = await controller.request_questions(goal.id)
        stored = await controller.get_goal(goal.id)
        assert stored.questions == latest
        assert stored.questions.as_list() == ["new 1", "new 2"]

    @pytest.mark.asyncio
    async def test_not_found(self, controller):
        with pytest.raises(NotFoundError):
            await controller.request_questions("missing")

    @pytest.mark.asyncio
    async def test_judge_failure_leaves_goal_untouched(self, controller, judge):
        goal = await controller.create_goal("alice", "Read ch.1")
        judge.fail_questions = True
        with pytest.raises(UpstreamError) as exc_info:
            await controller.request_questions(goal.id)
        assert exc_info.value.collaborator == "judge"
        assert (await controller.get_goal(goal.id)).questions is None

    @pytest.mark.asyncio
    async def test_blocked_on_terminal_goal(self, controller, judge):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        with pytest.raises(StateError):
            await controller.request_questions(outcome.goal.id)


# =============================================================================
# Answers
# =============================================================================


class TestSubmitAnswers:

    @pytest.mark.asyncio
    async def test_pass_pass_is_passed(self, controller, judge):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        assert outcome.passed is True
        assert outcome.goal.status == GoalStatus.PASSED
        assert outcome.verdicts == [Verdict.PASS, Verdict.PASS]
        assert outcome.goal.answers.as_list() == ["ans1", "ans2"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verdicts", [
        [Verdict.PASS, Verdict.FAIL],
        [Verdict.FAIL, Verdict.PASS],
        [Verdict.FAIL, Verdict.FAIL],
    ])
    async def test_any_fail_is_failed(self, controller, judge, verdicts):
        outcome = await _graded(controller, judge, verdicts)
        assert outcome.passed is False
        assert outcome.goal.status == GoalStatus.FAILED

    @pytest.mark.asyncio
    async def test_blank_answer_fails_without_judge_call(self, controller, judge):
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        outcome = await controller.submit_answers(goal.id, ["ans1", "   "])
        assert outcome.verdicts == [Verdict.PASS, Verdict.FAIL]
        assert judge.grade_calls == 1
        assert outcome.goal.status == GoalStatus.FAILED

    @pytest.mark.asyncio
    async def test_transcript_appended_to_notes(self, controller, judge):
        goal = await controller.create_goal("alice", "Read ch.1", scope="Chapter 1")
        await controller.add_note(goal.id, "started early")
        await controller.request_questions(goal.id)
        outcome = await controller.submit_answers(goal.id, ["ans1", "ans2"])

        notes = outcome.goal.notes
        assert notes.startswith("started early")
        assert TRANSCRIPT_HEADER in notes
        assert "Goal: Read ch.1" in notes
        assert "Scope: Chapter 1" in notes
        assert "A1: ans1" in outcome.transcript
        assert "Judge2: PASS" in outcome.transcript
        assert outcome.transcript.endswith("RESULT: PASS")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answers", [["only one"], ["a", "b", "c"], [], "ab"])
    async def test_wrong_answer_count(self, controller, judge, store, answers):
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        before = await store.get_by_id(goal.id)
        store.get_by_id = AsyncMock(wraps=store.get_by_id)

        with pytest.raises(ValidationError):
            await controller.submit_answers(goal.id, answers)

        store.get_by_id.assert_not_called()
        assert judge.grade_calls == 0
        after = await store.get_by_id(goal.id)
        assert after == before

    @pytest.mark.asyncio
    async def test_requires_questions(self, controller, judge):
        goal = await controller.create_goal("alice", "Read ch.1")
        with pytest.raises(ValidationError):
            await controller.submit_answers(goal.id, ["a", "b"])
        assert judge.grade_calls == 0

    @pytest.mark.asyncio
    async def test_judge_failure_surfaces_by_default(self, controller, judge):
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        judge.fail_grading = True

        with pytest.raises(UpstreamError):
            await controller.submit_answers(goal.id, ["a", "b"])

        stored = await controller.get_goal(goal.id)
        assert stored.status == GoalStatus.PENDING
        assert stored.answers is None
        assert stored.notes == ""

    @pytest.mark.asyncio
    async def test_judge_failure_pass_default(self, make_controller, judge):
        controller = make_controller(config=LifecycleConfig(on_judge_failure="pass_default"))
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        judge.fail_grading = True

        outcome = await controller.submit_answers(goal.id, ["a", "b"])

        assert outcome.judge_fallback is True
        assert outcome.passed is True
        assert outcome.goal.status == GoalStatus.PASSED
        assert "default PASS" in outcome.transcript

    @pytest.mark.asyncio
    async def test_regrading_blocked_by_default(self, controller, judge):
        outcome = await _graded(controller, judge, [Verdict.FAIL, Verdict.FAIL])
        with pytest.raises(StateError):
            await controller.submit_answers(outcome.goal.id, ["a", "b"])

    @pytest.mark.asyncio
    async def test_regrading_allowed_when_configured(self, make_controller, judge):
        judge.verdicts = [Verdict.FAIL, Verdict.FAIL]
        controller = make_controller(config=LifecycleConfig(terminal_reentry="allow"))
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        first = await controller.submit_answers(goal.id, ["a", "b"])
        assert first.goal.status == GoalStatus.FAILED

        await controller.request_questions(goal.id)
        second = await controller.submit_answers(goal.id, ["better a", "better b"])
        assert second.goal.status == GoalStatus.PASSED
        assert second.goal.notes.count(TRANSCRIPT_HEADER) == 2

    @pytest.mark.asyncio
    async def test_grading_does_not_attest(self, controller, judge, attestor):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        assert outcome.receipt is None
        assert attestor.published == []
        assert outcome.goal.attestation_id is None

    @pytest.mark.asyncio
    async def test_auto_attest_on_grade(self, make_controller, attestor):
        controller = make_controller(config=LifecycleConfig(auto_attest_on_grade=True))
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)

        outcome = await controller.submit_answers(goal.id, ["a", "b"])

        assert outcome.receipt is not None
        assert outcome.goal.attestation_id == outcome.receipt.attestation_id
        assert len(attestor.published) == 1


# =============================================================================
# Attest
# =============================================================================


class TestAttest:

    @pytest.mark.asyncio
    async def test_scenario_a_end_to_end(self, controller, judge, attestor):
        goal = await controller.create_goal("alice", "Read ch.1")
        assert goal.status == GoalStatus.PENDING

        questions = await controller.request_questions(goal.id)
        assert all(q.strip() for q in questions.as_list())

        judge.verdicts = [Verdict.PASS, Verdict.PASS]
        outcome = await controller.submit_answers(goal.id, ["ans1", "ans2"])
        assert outcome.goal.status == GoalStatus.PASSED

        receipt = await controller.attest(goal.id, result=Verdict.PASS, disputed=False)
        stored = await controller.get_goal(goal.id)
        assert stored.attestation_id == receipt.attestation_id
        assert stored.tx_ref == receipt.tx_ref
        assert stored.attested_result == Verdict.PASS
        assert stored.attested_disputed is False
        assert len(stored.attestations) == 1

        feed = await controller.get_feed()
        assert [entry.id for entry in feed] == [goal.id]
        assert attestor.published[0].username == "alice"
        assert attestor.published[0].ref == goal.id

    @pytest.mark.asyncio
    async def test_pending_goal_cannot_be_attested(self, controller, attestor):
        goal = await controller.create_goal("alice", "Read ch.1")
        with pytest.raises(StateError):
            await controller.attest(goal.id)
        assert attestor.published == []

    @pytest.mark.asyncio
    async def test_not_found(self, controller):
        with pytest.raises(NotFoundError):
            await controller.attest("missing")

    @pytest.mark.asyncio
    async def test_already_attested(self, controller, judge, attestor):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        await controller.attest(outcome.goal.id)
        with pytest.raises(StateError):
            await controller.attest(outcome.goal.id)
        assert len(attestor.published) == 1
        assert len(await controller.get_feed()) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [{"result": "FAIL"}, {"result": False}, {"disputed": True}])
    async def test_inconsistent_assertions(self, controller, judge, attestor, kwargs):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        with pytest.raises(StateError):
            await controller.attest(outcome.goal.id, **kwargs)
        assert attestor.published == []

    @pytest.mark.asyncio
    async def test_unknown_result(self, controller, judge):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        with pytest.raises(ValidationError):
            await controller.attest(outcome.goal.id, result="MAYBE")

    @pytest.mark.asyncio
    async def test_attestor_failure_leaves_goal_unattested(self, controller, judge, attestor):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        attestor.fail = True
        with pytest.raises(UpstreamError):
            await controller.attest(outcome.goal.id)
        stored = await controller.get_goal(outcome.goal.id)
        assert stored.attestation_id is None
        assert stored.needs_attestation
        assert await controller.get_feed() == []

    @pytest.mark.asyncio
    async def test_orphaned_attestation_is_logged(self, controller, judge, attestor, store, caplog):
        outcome = await _graded(controller, judge, [Verdict.PASS, Verdict.PASS])
        store.update = AsyncMock(side_effect=StorageError("disk full"))

        with pytest.raises(StorageError):
            await controller.attest(outcome.goal.id)

        assert len(attestor.published) == 1
        orphan_id = f"MOCK-PASS-{outcome.goal.id}"
        assert any(orphan_id in r.getMessage() and r.levelname == "ERROR" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_missing_credentials_yield_mocked_receipt(self, make_controller):
        controller = make_controller(attestor=EASAttestor())
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.request_questions(goal.id)
        await controller.submit_answers(goal.id, ["a", "b"])

        receipt = await controller.attest(goal.id)

        assert receipt.mocked is True
        assert receipt.attestation_id == f"MOCK-PASS-{goal.id}"
        stored = await controller.get_goal(goal.id)
        assert stored.attestation_id == receipt.attestation_id
        assert stored.attestation_mocked is True
        assert [e.id for e in await controller.get_feed()] == [goal.id]


# =============================================================================
# Notes and public views
# =============================================================================


class TestNotesAndViews:

    @pytest.mark.asyncio
    async def test_add_note_appends(self, controller):
        goal = await controller.create_goal("alice", "Read ch.1")
        await controller.add_note(goal.id, "first")
        updated = await controller.add_note(goal.id, "second")
        assert updated.notes == "first\n\nsecond"

    @pytest.mark.asyncio
    async def test_add_blank_note(self, controller):
        goal = await controller.create_goal("alice", "Read ch.1")
        with pytest.raises(ValidationError):
            await controller.add_note(goal.id, "  ")

    @pytest.mark.asyncio
    async def test_feed_newest_first_and_limited(self, controller, judge):
        ids = []
        for title in ("One", "Two", "Three"):
            outcome = await _graded(controller, judge, [], title=title)
            await controller.attest(outcome.goal.id)
            ids.append(outcome.goal.id)

        assert [e.id for e in await controller.get_feed()] == list(reversed(ids))
        assert [e.id for e in await controller.get_feed(limit=2)] == [ids[2], ids[1]]

    @pytest.mark.asyncio
    async def test_feed_invalid_limit(self, controller):
        with pytest.raises(ValidationError):
            await controller.get_feed(limit=0)

    @pytest.mark.asyncio
    async def test_feed_skips_unresolvable_ids(self, controller, store):
        await store.append_feed("ghost")
        assert await controller.get_feed() == []

    @pytest.mark.asyncio
    async def test_public_history_includes_unattested(self, controller, judge):
        pending = await controller.create_goal("alice", "Pending")
        graded = await _graded(controller, judge, [Verdict.FAIL, Verdict.PASS], title="Graded")
        history = await controller.get_public_history("alice")
        assert [h.id for h in history] == [graded.goal.id, pending.id]
        assert history[0].status == GoalStatus.FAILED
        assert history[0].attestation_id is None

    @pytest.mark.asyncio
    async def test_known_users_sorted(self, controller):
        await controller.register_user("zoe")
        await controller.create_goal("alice", "Read")
        users = await controller.register_user("  mallory ")
        assert users == ["alice", "mallory", "zoe"]

    @pytest.mark.asyncio
    async def test_register_blank_user(self, controller):
        with pytest.raises(ValidationError):
            await controller.register_user(" ")


class TestCollaboratorWiring:

    @pytest.mark.asyncio
    async def test_close_closes_everything(self, controller, store, judge, attestor, post_verifier):
        for component in (store, judge, attestor, post_verifier):
            component.close = AsyncMock()

        await controller.close()

        for component in (store, judge, attestor, post_verifier):
            component.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_continues_after_error(self, controller, store, judge):
        judge.close = AsyncMock(side_effect=RuntimeError("boom"))
        store.close = AsyncMock()

        await controller.close()

        store.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health(self, controller):
        health = await controller.health()
        assert health["store"] == "ok"
        assert health["judge"] == "scripted"
        assert health["dispute_strategy"] == "token"
