# src/proofday/judges/base.py
"""
Abstract Base Class for Judges.

A judge produces exactly two verification questions for a goal and grades
one question/answer pair at a time. The lifecycle controller calls
``grade`` once per question and ANDs the verdicts.

Judges return whatever shape their model produced; ``normalize_questions``
turns it into a :class:`QuestionPair` here, at the adapter boundary, so
the controller never branches on shape.
"""

import abc
from typing import Any, Dict, Optional

from ..models import QuestionPair, Verdict


def fallback_questions(title: str, scope: Optional[str] = None) -> QuestionPair:
    """Questions used when a judge response does not hold two usable questions."""
    return QuestionPair(
        first=f"State a core concept related to: {title}.",
        second=f"Provide a worked example from: {scope or title}.",
    )


def _question_text(item: Any) -> str:
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, dict):
        for key in ("text", "question", "q"):
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def normalize_questions(raw: Any, title: str, scope: Optional[str] = None) -> QuestionPair:
    """
    Normalise a judge's question payload into a QuestionPair.

    Accepts a list of strings, a list of ``{"text": ...}`` / ``{"question": ...}``
    objects, or a dict wrapping such a list under ``"questions"``. Extra
    questions are dropped; fewer than two usable questions yields the
    fallback pair.

    Examples:
        >>> normalize_questions(["a", {"text": "b"}], "t").as_list()
        ['a', 'b']
    """
    if isinstance(raw, dict):
        raw = raw.get("questions")
    if not isinstance(raw, (list, tuple)):
        return fallback_questions(title, scope)
    texts = [t for t in (_question_text(item) for item in raw) if t]
    if len(texts) < 2:
        return fallback_questions(title, scope)
    return QuestionPair(first=texts[0], second=texts[1])


class BaseJudge(abc.ABC):
    """
    Abstract Base Class for question generation and grading services.

    Implementations raise :class:`~proofday.exceptions.UpstreamError` with
    ``collaborator="judge"`` on infrastructure failure. Empty answers are
    graded FAIL without contacting the underlying service.
    """

    @abc.abstractmethod
    def get_name(self) -> str:
        """Return the judge's identifier (e.g. "mock", "openai")."""
        pass

    @abc.abstractmethod
    async def generate_questions(self, title: str, scope: Optional[str] = None) -> QuestionPair:
        """
        Produce exactly two verification questions for a goal.

        Args:
            title: The goal title.
            scope: Optional goal scope.

        Returns:
            The normalised question pair.
        """
        pass

    async def grade(self, title: str, scope: Optional[str], question: str, answer: Optional[str]) -> Verdict:
        """
        Grade a single question/answer pair.

        Returns:
            Verdict.FAIL for a missing or blank answer, otherwise the judge's verdict.
        """
        if not (answer or "").strip():
            return Verdict.FAIL
        return await self._grade_answer(title, scope, question, answer.strip())

    @abc.abstractmethod
    async def _grade_answer(self, title: str, scope: Optional[str], question: str, answer: str) -> Verdict:
        """Grade a non-empty answer."""
        pass

    async def diagnose(self) -> Dict[str, Any]:
        """Describe the judge's readiness. Never raises."""
        return {"judge": self.get_name(), "ok": True, "using_mocks": False}

    async def close(self) -> None:
        """Release any network resources held by the judge."""
        pass
