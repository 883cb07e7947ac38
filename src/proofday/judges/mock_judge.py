# src/proofday/judges/mock_judge.py
"""
Deterministic judge for demos and disconnected operation.

Questions are templated from the goal; any non-empty answer passes.
"""

import logging
from typing import Any, Dict, Optional

from ..models import QuestionPair, Verdict
from .base import BaseJudge

logger = logging.getLogger(__name__)


class MockJudge(BaseJudge):
    """Judge that never leaves the process."""

    def get_name(self) -> str:
        return "mock"

    async def generate_questions(self, title: str, scope: Optional[str] = None) -> QuestionPair:
        logger.debug("Mock judge generating questions for '%s'", title)
        return QuestionPair(
            first=f"Explain two key definitions you learned for: {title}.",
            second=f"Give one concrete example (or mini proof outline) related to: {scope or title}.",
        )

    async def _grade_answer(self, title: str, scope: Optional[str], question: str, answer: str) -> Verdict:
        return Verdict.PASS

    async def diagnose(self) -> Dict[str, Any]:
        return {"judge": self.get_name(), "ok": True, "using_mocks": True}
