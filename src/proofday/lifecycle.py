# src/proofday/lifecycle.py
"""
Goal Lifecycle Controller.

Owns the goal state machine and orchestrates the Judge, the Attestor and
the Post-Verifier around the goal store:

    PENDING --request_questions--> PENDING+questioned
    PENDING+questioned --submit_answers--> PASSED | FAILED
    PASSED | FAILED --attest--> attested
    FAILED --start_dispute--> dispute pending
    dispute pending --verify_dispute--> PASSED | FAILED (disputed, then attested)

Every transition is a read-modify-write through ``store.update``; there is
no per-goal locking, so concurrent writers to one goal resolve
last-write-wins. NotFoundError, ValidationError and StateError are always
raised before anything is written.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .attestation import BaseAttestor, create_attestor
from .config.models import DisputeConfig, LifecycleConfig, ProofDayConfig
from .exceptions import (NotFoundError, ProofDayError, StateError,
                         UpstreamError, ValidationError)
from .judges import BaseJudge, create_judge
from .models import (AnswerPair, AttestationReceipt, AttestationRecord,
                     DisputeChallenge, DisputeOutcome, FeedEntry, Goal,
                     GoalStatus, GradeOutcome, QuestionPair, Verdict, utcnow)
from .storage import BaseGoalStore, create_goal_store, normalize_username
from .verification import (BasePostVerifier, MarkerStrategy,
                           build_intent_url, create_marker_strategy,
                           create_post_verifier, fetch_with_retry,
                           parse_post_id)

logger = logging.getLogger(__name__)

TRANSCRIPT_HEADER = "==== LLM TRANSCRIPT ===="
DISPUTE_HEADER = "==== DISPUTE ===="


def append_note(existing: str, text: str) -> str:
    """Notes are append-only; blocks are separated by a blank line."""
    if not existing:
        return text
    return f"{existing.rstrip()}\n\n{text}"


def build_transcript(goal: Goal, answers: AnswerPair, verdict_labels: Sequence[str],
                     passed: bool, remark: Optional[str] = None) -> str:
    lines: List[str] = [TRANSCRIPT_HEADER, f"Goal: {goal.title}"]
    if goal.scope:
        lines.append(f"Scope: {goal.scope}")
    questions = goal.questions.as_list() if goal.questions else ["", ""]
    for i, (question, answer, label) in enumerate(zip(questions, answers.as_list(), verdict_labels), start=1):
        lines.extend(["", f"Q{i}: {question}", f"A{i}: {answer}", f"Judge{i}: {label}"])
    if remark:
        lines.extend(["", f"NOTE: {remark}"])
    lines.extend(["", f"RESULT: {Verdict.from_bool(passed).value}"])
    return "\n".join(lines)


class GoalLifecycleController:
    """
    Drives goals through questioning, grading, attestation and disputes.

    Args:
        store: Goal store backend.
        judge: Question generation and grading service.
        attestor: Attestation ledger client.
        post_verifier: Fetches dispute posts.
        config: Lifecycle policies. Defaults to ``LifecycleConfig()``.
        dispute_config: Dispute marker and fetch settings. Defaults to ``DisputeConfig()``.
        marker_strategy: Overrides the strategy selected by ``dispute_config``.

    Example:
        controller = GoalLifecycleController.from_config(load_config())
        goal = await controller.create_goal("alice", "Read chapter 3")
        await controller.request_questions(goal.id)
        outcome = await controller.submit_answers(goal.id, ["...", "..."])
        receipt = await controller.attest(goal.id)
    """

    def __init__(
        self,
        store: BaseGoalStore,
        judge: BaseJudge,
        attestor: BaseAttestor,
        post_verifier: BasePostVerifier,
        config: Optional[LifecycleConfig] = None,
        dispute_config: Optional[DisputeConfig] = None,
        marker_strategy: Optional[MarkerStrategy] = None,
    ) -> None:
        self.store = store
        self.judge = judge
        self.attestor = attestor
        self.post_verifier = post_verifier
        self.config = config or LifecycleConfig()
        self.dispute_config = dispute_config or DisputeConfig()
        self.marker_strategy = marker_strategy or create_marker_strategy(self.dispute_config)

    # ----- factory ------------------------------------------------------------

    @classmethod
    def from_config(cls, config: ProofDayConfig) -> "GoalLifecycleController":
        """Wire every collaborator from a validated configuration."""
        controller = cls(
            store=create_goal_store(config.store),
            judge=create_judge(config.judge),
            attestor=create_attestor(config.attestor),
            post_verifier=create_post_verifier(config.dispute),
            config=config.lifecycle,
            dispute_config=config.dispute,
        )
        logger.info(
            "Lifecycle controller ready (store=%s, judge=%s, attestor=%s, verifier=%s, dispute=%s)",
            config.store.type, controller.judge.get_name(), controller.attestor.get_name(),
            controller.post_verifier.get_name(), controller.marker_strategy.name,
        )
        return controller

    async def close(self) -> None:
        """Close every collaborator; errors are logged so the rest still close."""
        for name, component in (("judge", self.judge), ("attestor", self.attestor),
                                ("post_verifier", self.post_verifier), ("store", self.store)):
            try:
                await component.close()
            except Exception as e:
                logger.error("Error closing %s: %s", name, e, exc_info=True)

    # ----- helpers ------------------------------------------------------------

    async def _load(self, goal_id: str) -> Goal:
        if not goal_id or not str(goal_id).strip():
            raise ValidationError("goal_id is required.")
        goal = await self.store.get_by_id(goal_id)
        if goal is None:
            raise NotFoundError(goal_id)
        return goal

    async def _save(self, goal_id: str, patch: Dict[str, Any]) -> Goal:
        updated = await self.store.update(goal_id, patch)
        if updated is None:
            raise NotFoundError(goal_id, "Goal disappeared during update.")
        return updated

    def _guard_regrading(self, goal: Goal) -> None:
        if goal.disputed:
            raise StateError(goal.id, goal.describe_state(), "Disputed goals are final.")
        if goal.is_terminal and self.config.terminal_reentry == "block":
            raise StateError(goal.id, goal.describe_state(), "Goal has already been graded.")

    @staticmethod
    def _coerce_verdict(value: Union[Verdict, str, bool]) -> Verdict:
        if isinstance(value, bool):
            return Verdict.from_bool(value)
        try:
            return Verdict(value)
        except ValueError as e:
            raise ValidationError(f"Unknown result '{value}'; expected PASS or FAIL.") from e

    # ----- goals --------------------------------------------------------------

    async def create_goal(self, owner: str, title: str, scope: Optional[str] = None,
                          deadline: Optional[Any] = None) -> Goal:
        """Create a PENDING goal for ``owner``. No collaborator is contacted."""
        owner = normalize_username(owner)
        title = (title or "").strip()
        if not owner:
            raise ValidationError("owner is required.")
        if not title:
            raise ValidationError("title is required.")
        scope = scope.strip() if scope and scope.strip() else None
        try:
            goal = Goal(owner=owner, title=title, scope=scope, deadline=deadline)
        except ValueError as e:
            raise ValidationError(f"Invalid goal: {e}") from e

        stored = await self.store.create(goal)
        logger.info("Created goal %s for '%s': %s", stored.id, owner, title)
        return stored

    async def get_goal(self, goal_id: str) -> Goal:
        return await self._load(goal_id)

    async def list_goals(self, owner: str) -> List[Goal]:
        """The owner's goals, most recent first."""
        owner = normalize_username(owner)
        if not owner:
            raise ValidationError("owner is required.")
        return await self.store.get_by_owner(owner)

    async def add_note(self, goal_id: str, text: str) -> Goal:
        """Append free text to a goal's notes."""
        if not text or not text.strip():
            raise ValidationError("Note text must not be empty.")
        goal = await self._load(goal_id)
        updated = await self._save(goal.id, {"notes": append_note(goal.notes, text.strip())})
        logger.debug("Appended note to goal %s", goal.id)
        return updated

    # ----- questioning and grading ----------------------------------------------

    async def request_questions(self, goal_id: str) -> QuestionPair:
        """
        Ask the judge for two questions and store them on the goal.

        Raises:
            NotFoundError: If the goal does not exist.
            StateError: If the goal is disputed, or graded while re-entry is blocked.
            UpstreamError: If the judge fails; nothing is written.
        """
        goal = await self._load(goal_id)
        self._guard_regrading(goal)

        questions = await self.judge.generate_questions(goal.title, goal.scope)
        await self._save(goal.id, {"questions": questions})
        logger.info("Goal %s questioned by %s judge", goal.id, self.judge.get_name())
        return questions

    async def submit_answers(self, goal_id: str, answers: Sequence[Optional[str]]) -> GradeOutcome:
        """
        Grade two answers against the goal's questions and record the result.

        The overall result is PASS only when both answers pass. The grading
        transcript is appended to the goal's notes. With
        ``auto_attest_on_grade`` the result is attested right away.

        Raises:
            ValidationError: If there are not exactly two answers, or the goal has no questions.
            NotFoundError: If the goal does not exist.
            StateError: If the goal is disputed, or graded while re-entry is blocked.
            UpstreamError: If the judge fails and ``on_judge_failure`` is "fail".
        """
        if answers is None or isinstance(answers, str) or len(answers) != 2:
            count = 0 if answers is None else (1 if isinstance(answers, str) else len(answers))
            raise ValidationError(f"Exactly 2 answers are required, got {count}.")
        answer_pair = AnswerPair.from_sequence([(a or "").strip() for a in answers])

        goal = await self._load(goal_id)
        self._guard_regrading(goal)
        if goal.questions is None:
            raise ValidationError("Request questions before submitting answers.")

        judge_fallback = False
        remark = None
        try:
            verdicts = [
                await self.judge.grade(goal.title, goal.scope, question, answer)
                for question, answer in zip(goal.questions.as_list(), answer_pair.as_list())
            ]
            labels = [v.value for v in verdicts]
        except UpstreamError as e:
            if self.config.on_judge_failure != "pass_default":
                logger.warning("Grading goal %s failed: %s", goal.id, e)
                raise
            logger.warning("Grading goal %s failed, recording default PASS: %s", goal.id, e)
            judge_fallback = True
            verdicts = [Verdict.PASS, Verdict.PASS]
            labels = ["PASS (default)", "PASS (default)"]
            remark = f"judge unavailable, default PASS recorded ({e})"

        passed = all(v == Verdict.PASS for v in verdicts)
        transcript = build_transcript(goal, answer_pair, labels, passed, remark)
        status = GoalStatus.PASSED if passed else GoalStatus.FAILED

        updated = await self._save(goal.id, {
            "answers": answer_pair,
            "notes": append_note(goal.notes, transcript),
            "status": status,
            "dispute_token": None,
            "dispute_started_at": None,
        })
        logger.info("Goal %s graded %s%s", goal.id, status.value, " (judge fallback)" if judge_fallback else "")

        outcome = GradeOutcome(goal=updated, passed=passed, verdicts=verdicts,
                               transcript=transcript, judge_fallback=judge_fallback)
        if self.config.auto_attest_on_grade and updated.needs_attestation:
            outcome.receipt = await self.attest(updated.id)
            outcome.goal = await self._load(updated.id)
        return outcome

    # ----- attestation ------------------------------------------------------------

    async def attest(self, goal_id: str, result: Optional[Union[Verdict, str, bool]] = None,
                     disputed: Optional[bool] = None) -> AttestationReceipt:
        """
        Publish the goal's current (status, disputed) pair.

        ``result`` and ``disputed`` are optional assertions: when given they
        must agree with the goal. The goal enters the feed on its first
        attestation only.

        Raises:
            NotFoundError: If the goal does not exist.
            ValidationError: If ``result`` is not PASS/FAIL.
            StateError: If the goal is PENDING, the assertions disagree with it,
                or its current pair is already attested.
            UpstreamError: If the attestor fails without a mock fallback.
        """
        goal = await self._load(goal_id)
        if not goal.is_terminal:
            raise StateError(goal.id, goal.describe_state(), "Only graded goals can be attested.")
        if result is not None:
            requested = self._coerce_verdict(result)
            if requested != goal.current_verdict:
                raise StateError(goal.id, goal.describe_state(),
                                 f"Requested result {requested.value} does not match the goal.")
        if disputed is not None and bool(disputed) != goal.disputed:
            raise StateError(goal.id, goal.describe_state(),
                             f"Requested disputed={bool(disputed)} does not match the goal.")
        if not goal.needs_attestation:
            raise StateError(goal.id, goal.describe_state(), "Current result is already attested.")

        record = AttestationRecord(
            username=goal.owner,
            title=goal.title,
            result=goal.current_verdict,
            disputed=goal.disputed,
            ref=goal.id,
        )
        receipt = await self.attestor.publish(record)
        first_attestation = goal.attestation_id is None

        try:
            await self._save(goal.id, {
                "attestation_id": receipt.attestation_id,
                "tx_ref": receipt.tx_ref,
                "attestation_mocked": receipt.mocked,
                "attested_result": receipt.result,
                "attested_disputed": receipt.disputed,
                "attestations": [*goal.attestations, receipt],
            })
            if first_attestation:
                await self.store.append_feed(goal.id)
        except ProofDayError:
            logger.error(
                "Orphaned attestation %s (tx %s, mocked=%s) for goal %s: publication succeeded "
                "but recording it failed", receipt.attestation_id, receipt.tx_ref, receipt.mocked, goal.id,
                exc_info=True,
            )
            raise

        logger.info("Goal %s attested %s%s as %s%s", goal.id, record.result.value,
                    " (disputed)" if record.disputed else "", receipt.attestation_id,
                    " [mocked]" if receipt.mocked else "")
        return receipt

    # ----- disputes -----------------------------------------------------------------

    async def start_dispute(self, goal_id: str, base_url: Optional[str] = None) -> DisputeChallenge:
        """
        Open a dispute on a FAILED goal and hand out the marker to post.

        ``base_url`` is used for the profile link when no site URL is configured.
        Starting again replaces the previous marker.

        Raises:
            NotFoundError: If the goal does not exist.
            StateError: Unless the goal is FAILED and not yet disputed.
        """
        goal = await self._load(goal_id)
        if goal.status != GoalStatus.FAILED or goal.disputed:
            raise StateError(goal.id, goal.describe_state(), "Only failed, undisputed goals can be disputed.")

        issued = self.marker_strategy.issue(goal, base_url)
        await self._save(goal.id, {**issued.persist, "dispute_started_at": utcnow()})
        logger.info("Dispute started on goal %s (strategy=%s)", goal.id, self.marker_strategy.name)
        return DisputeChallenge(
            goal_id=goal.id,
            marker=issued.marker,
            intent_url=build_intent_url(issued.intent_text),
            profile_url=issued.profile_url,
            strategy=self.marker_strategy.name,
        )

    async def verify_dispute(self, goal_id: str, post_url: str) -> DisputeOutcome:
        """
        Check a dispute post and resolve the dispute.

        The goal becomes disputed either way: PASSED when the post carries the
        marker, FAILED otherwise. The new result is then attested.

        Raises:
            NotFoundError: If the goal does not exist.
            ValidationError: If the URL has no post id.
            StateError: Unless a dispute is pending on the goal.
            UpstreamError: If the post cannot be fetched after retries; nothing is written.
        """
        goal = await self._load(goal_id)
        post_id = parse_post_id(post_url)
        if not goal.dispute_pending:
            raise StateError(goal.id, goal.describe_state(), "No dispute is pending.")

        post = await fetch_with_retry(
            self.post_verifier, post_id,
            attempts=self.dispute_config.fetch_attempts,
            delay=self.dispute_config.fetch_delay_seconds,
        )
        match = self.marker_strategy.match(goal, post)
        result = Verdict.from_bool(match.verified)
        note = "\n".join([
            DISPUTE_HEADER,
            f"Post: {post_url}",
            f"Strategy: {self.marker_strategy.name}",
            f"Matched: {match.matched} (via {match.via})" if match.verified else "Matched: nothing",
            f"RESULT: {result.value}",
        ])

        await self._save(goal.id, {
            "disputed": True,
            "status": GoalStatus.from_verdict(result),
            "notes": append_note(goal.notes, note),
            "dispute_token": None,
        })
        logger.info("Dispute on goal %s resolved %s", goal.id, result.value)

        receipt = await self.attest(goal.id)
        return DisputeOutcome(
            goal=await self._load(goal.id),
            verified=match.verified,
            result=result,
            receipt=receipt,
            details={"post_id": post_id, "matched": match.matched, "via": match.via},
        )

    # ----- public views -----------------------------------------------------------

    async def get_feed(self, limit: Optional[int] = None) -> List[FeedEntry]:
        """Recently attested goals, newest first. Ids that no longer resolve are skipped."""
        limit = self.config.feed_limit if limit is None else limit
        if limit < 1:
            raise ValidationError("limit must be at least 1.")
        entries: List[FeedEntry] = []
        for goal_id in await self.store.get_feed(limit):
            goal = await self.store.get_by_id(goal_id)
            if goal is None:
                logger.debug("Skipping unresolvable feed entry %s", goal_id)
                continue
            entries.append(FeedEntry.from_goal(goal))
        return entries

    async def get_public_history(self, owner: str) -> List[FeedEntry]:
        return [FeedEntry.from_goal(g) for g in await self.list_goals(owner)]

    async def register_user(self, username: str) -> List[str]:
        username = normalize_username(username)
        if not username:
            raise ValidationError("username is required.")
        await self.store.add_known_user(username)
        return await self.list_known_users()

    async def list_known_users(self) -> List[str]:
        return sorted(await self.store.list_known_users())

    async def diagnose_judge(self) -> Dict[str, Any]:
        return await self.judge.diagnose()

    async def health(self) -> Dict[str, Any]:
        return {
            "store": "ok" if await self.store.ping() else "unreachable",
            "judge": self.judge.get_name(),
            "attestor": self.attestor.get_name(),
            "post_verifier": self.post_verifier.get_name(),
            "dispute_strategy": self.marker_strategy.name,
        }
