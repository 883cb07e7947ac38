# tests/conftest.py
"""
Shared fixtures for proofday tests.

Provides in-process collaborators (a scripted judge, a recording attestor,
a static post verifier) and a lifecycle controller wired to them over the
in-memory goal store.
"""

from typing import List, Optional

import pytest

from proofday.attestation import MockAttestor
from proofday.config import DisputeConfig, LifecycleConfig
from proofday.exceptions import UpstreamError
from proofday.judges import BaseJudge
from proofday.lifecycle import GoalLifecycleController
from proofday.models import (AttestationReceipt, AttestationRecord,
                             QuestionPair, Verdict)
from proofday.storage import InMemoryGoalStore
from proofday.verification import StaticPostVerifier

SITE_URL = "https://proofday.test"


class ScriptedJudge(BaseJudge):
    """Judge returning queued verdicts (PASS once the queue is empty)."""

    def __init__(self, verdicts: Optional[List[Verdict]] = None):
        self.verdicts = list(verdicts or [])
        self.fail_questions = False
        self.fail_grading = False
        self.question_calls = 0
        self.grade_calls = 0

    def get_name(self) -> str:
        return "scripted"

    async def generate_questions(self, title, scope=None):
        self.question_calls += 1
        if self.fail_questions:
            raise UpstreamError("judge", "questions unavailable")
        return QuestionPair(first=f"What is {title}?", second=f"Give an example of {scope or title}.")

    async def _grade_answer(self, title, scope, question, answer):
        self.grade_calls += 1
        if self.fail_grading:
            raise UpstreamError("judge", "grading unavailable")
        return self.verdicts.pop(0) if self.verdicts else Verdict.PASS


class RecordingAttestor(MockAttestor):
    """Mock attestor that remembers every published record."""

    def __init__(self):
        self.published: List[AttestationRecord] = []
        self.fail = False

    async def publish(self, record: AttestationRecord) -> AttestationReceipt:
        if self.fail:
            raise UpstreamError("attestor", "ledger unavailable")
        self.published.append(record)
        return await super().publish(record)


@pytest.fixture
def store():
    return InMemoryGoalStore(feed_max_entries=50)


@pytest.fixture
def judge():
    return ScriptedJudge()


@pytest.fixture
def attestor():
    return RecordingAttestor()


@pytest.fixture
def post_verifier():
    return StaticPostVerifier()


@pytest.fixture
def lifecycle_config():
    return LifecycleConfig()


@pytest.fixture
def dispute_config():
    return DisputeConfig(site_url=SITE_URL, fetch_delay_seconds=0.0, verifier="static")


@pytest.fixture
def controller(store, judge, attestor, post_verifier, lifecycle_config, dispute_config):
    return GoalLifecycleController(
        store=store,
        judge=judge,
        attestor=attestor,
        post_verifier=post_verifier,
        config=lifecycle_config,
        dispute_config=dispute_config,
    )


@pytest.fixture
def make_controller(store, judge, attestor, post_verifier, dispute_config):
    """Factory building a controller over the shared fixtures, with per-test overrides."""
    def _make(**overrides):
        kwargs = dict(
            store=store,
            judge=judge,
            attestor=attestor,
            post_verifier=post_verifier,
            config=LifecycleConfig(),
            dispute_config=dispute_config,
        )
        kwargs.update(overrides)
        return GoalLifecycleController(**kwargs)
    return _make
