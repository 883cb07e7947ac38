# src/proofday/judges/__init__.py
"""
Judges: question generation and answer grading services.
"""

from .base import BaseJudge, fallback_questions, normalize_questions
from .manager import create_judge
from .mock_judge import MockJudge

__all__ = [
    "BaseJudge",
    "MockJudge",
    "create_judge",
    "fallback_questions",
    "normalize_questions",
]
