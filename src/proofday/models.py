# src/proofday/models.py
"""
Core data models for the proofday service.

This module defines the Pydantic models for the central Goal record and the
value objects exchanged with the external collaborators (Judge, Attestor,
Post-Verifier), plus the result types returned by lifecycle transitions.

Goals are persisted as JSON (``Goal.model_dump(mode="json")``) and restored
with ``Goal.model_validate``; every backend stores the same shape.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class GoalStatus(str, Enum):
    """Stored status of a goal. "Questioned" is PENDING with questions present."""
    PENDING = "PENDING"
    PASSED = "PASSED"
    FAILED = "FAILED"

    @classmethod
    def from_verdict(cls, verdict: "Verdict") -> "GoalStatus":
        return cls.PASSED if verdict == Verdict.PASS else cls.FAILED


class Verdict(str, Enum):
    """Binary result produced by the Judge and published by the Attestor."""
    PASS = "PASS"
    FAIL = "FAIL"

    @classmethod
    def from_bool(cls, passed: bool) -> "Verdict":
        return cls.PASS if passed else cls.FAIL

    @classmethod
    def _missing_(cls, value: object):  # type: ignore[misc]
        """Accept lower-case and PASSED/FAILED spellings."""
        if isinstance(value, str):
            upper = value.strip().upper()
            aliases = {"PASSED": "PASS", "FAILED": "FAIL"}
            upper = aliases.get(upper, upper)
            for member in cls:
                if member.value == upper:
                    return member
        return None


def _ensure_utc(v: Any) -> Any:
    if isinstance(v, str):
        text = v[:-1] + "+00:00" if v.endswith("Z") else v
        v = datetime.fromisoformat(text)
    if isinstance(v, datetime):
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
    return v


class _Pair(BaseModel):
    """An ordered pair of strings. Index 0 is ``first``, index 1 is ``second``."""
    model_config = ConfigDict(frozen=True)

    first: str
    second: str

    @classmethod
    def from_sequence(cls, items: Sequence[str]):
        """
        Build a pair from a two-element sequence.

        Raises:
            ValueError: If the sequence does not hold exactly two items.
        """
        items = list(items)
        if len(items) != 2:
            raise ValueError(f"Expected exactly 2 items, got {len(items)}.")
        return cls(first=str(items[0]), second=str(items[1]))

    def as_list(self) -> List[str]:
        return [self.first, self.second]

    def __getitem__(self, index: int) -> str:
        return self.as_list()[index]


class QuestionPair(_Pair):
    """The two verification questions produced by the Judge."""


class AnswerPair(_Pair):
    """The two submitted answers; ``answers[i]`` answers ``questions[i]``."""


class AttestationRecord(BaseModel):
    """The finalized result tuple handed to the Attestor."""
    model_config = ConfigDict(frozen=True)

    username: str
    title: str
    result: Verdict
    disputed: bool = False
    ref: str = Field(description="The goal id the attestation refers to.")


class AttestationReceipt(BaseModel):
    """What the Attestor returns for a published record."""
    attestation_id: str
    tx_ref: str
    mocked: bool = False
    result: Verdict
    disputed: bool = False
    attested_at: datetime = Field(default_factory=utcnow)

    @field_validator("attested_at", mode="before")
    @classmethod
    def ensure_utc_timestamp(cls, v: Any) -> Any:
        return _ensure_utc(v)


class Goal(BaseModel):
    """
    A user-declared daily goal tracked through the lifecycle state machine.

    Attributes:
        id: Opaque unique identifier, assigned at creation and never reassigned.
        owner: Username of the goal's owner (trimmed), immutable.
        title: What the owner committed to doing.
        scope: Optional free text narrowing the goal.
        deadline: Optional advisory deadline; never enforced.
        status: PENDING, PASSED or FAILED.
        disputed: True once a dispute has been resolved. Permanent.
        questions: The Judge's question pair, absent until questioning.
        answers: The submitted answer pair, absent until submission.
        notes: Append-only audit text (grading transcripts, dispute notes, user notes).
        attestation_id: Reference to the latest external attestation.
        tx_ref: Transaction reference of the latest attestation.
        attestation_mocked: Whether the latest attestation is a mocked one.
        attested_result: The result covered by ``attestation_id``.
        attested_disputed: The disputed flag covered by ``attestation_id``.
        attestations: Append-only history of every receipt for this goal.
        dispute_token: Single-use dispute marker (token strategy only).
        dispute_started_at: When the current dispute was opened.
        created_at: Creation timestamp (UTC), immutable.
        updated_at: Last write timestamp (UTC).
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner: str
    title: str
    scope: Optional[str] = None
    deadline: Optional[datetime] = None
    status: GoalStatus = GoalStatus.PENDING
    disputed: bool = False
    questions: Optional[QuestionPair] = None
    answers: Optional[AnswerPair] = None
    notes: str = ""
    attestation_id: Optional[str] = None
    tx_ref: Optional[str] = None
    attestation_mocked: bool = False
    attested_result: Optional[Verdict] = None
    attested_disputed: Optional[bool] = None
    attestations: List[AttestationReceipt] = Field(default_factory=list)
    dispute_token: Optional[str] = None
    dispute_started_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("deadline", "dispute_started_at", "created_at", "updated_at", mode="before")
    @classmethod
    def ensure_utc_timestamp(cls, v: Any) -> Any:
        """Ensure timestamps are timezone-aware and in UTC."""
        return _ensure_utc(v)

    @property
    def is_terminal(self) -> bool:
        return self.status in (GoalStatus.PASSED, GoalStatus.FAILED)

    @property
    def is_questioned(self) -> bool:
        return self.status == GoalStatus.PENDING and self.questions is not None

    @property
    def dispute_pending(self) -> bool:
        return (self.status == GoalStatus.FAILED and not self.disputed
                and self.dispute_started_at is not None)

    @property
    def current_verdict(self) -> Optional[Verdict]:
        if self.status == GoalStatus.PASSED:
            return Verdict.PASS
        if self.status == GoalStatus.FAILED:
            return Verdict.FAIL
        return None

    @property
    def needs_attestation(self) -> bool:
        """True when the goal's current (status, disputed) pair has not been attested."""
        if not self.is_terminal:
            return False
        if self.attestation_id is None:
            return True
        return (self.attested_result != self.current_verdict
                or bool(self.attested_disputed) != self.disputed)

    def describe_state(self) -> str:
        """Short human-readable state used in StateError messages."""
        parts = [self.status.value]
        if self.is_questioned:
            parts.append("questioned")
        if self.disputed:
            parts.append("disputed")
        elif self.dispute_pending:
            parts.append("dispute pending")
        if self.attestation_id and not self.needs_attestation:
            parts.append("attested")
        return "+".join(parts)


class FeedEntry(BaseModel):
    """Public projection of a goal, used by the feed and per-owner history."""
    id: str
    owner: str
    title: str
    scope: Optional[str] = None
    status: GoalStatus
    disputed: bool
    attestation_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_goal(cls, goal: Goal) -> "FeedEntry":
        return cls(
            id=goal.id,
            owner=goal.owner,
            title=goal.title,
            scope=goal.scope,
            status=goal.status,
            disputed=goal.disputed,
            attestation_id=goal.attestation_id,
            created_at=goal.created_at,
        )


class PostContent(BaseModel):
    """Content of a fetched social-media post."""
    post_id: str
    text: str = ""
    embedded_urls: List[str] = Field(default_factory=list)


@dataclass
class GradeOutcome:
    """Result of SubmitAnswers."""
    goal: Goal
    passed: bool
    verdicts: List[Verdict]
    transcript: str
    judge_fallback: bool = False
    receipt: Optional[AttestationReceipt] = None


@dataclass
class DisputeChallenge:
    """Result of StartDispute: what the owner should post, and where it must point."""
    goal_id: str
    marker: str
    intent_url: str
    profile_url: str
    strategy: str


@dataclass
class DisputeOutcome:
    """Result of VerifyDispute."""
    goal: Goal
    verified: bool
    result: Verdict
    receipt: AttestationReceipt
    details: Dict[str, Any] = field(default_factory=dict)
