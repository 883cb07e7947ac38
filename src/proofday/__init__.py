# src/proofday/__init__.py
"""
proofday: daily goals checked by a judge, disputable through a social
post, and attested to a public ledger.

The entry point for embedding is :class:`GoalLifecycleController`; the
HTTP server lives in ``proofday.api_server.main``.
"""

import importlib.metadata

from .config import ProofDayConfig, load_config
from .exceptions import (ConfigError, NotFoundError, ProofDayError,
                         StateError, StorageError, UpstreamError,
                         ValidationError)
from .lifecycle import GoalLifecycleController
from .models import (AnswerPair, AttestationReceipt, AttestationRecord,
                     DisputeChallenge, DisputeOutcome, FeedEntry, Goal,
                     GoalStatus, GradeOutcome, PostContent, QuestionPair,
                     Verdict)

try:
    __version__ = importlib.metadata.version("proofday")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "__version__",
    "GoalLifecycleController",
    "ProofDayConfig",
    "load_config",
    # Models
    "Goal",
    "GoalStatus",
    "Verdict",
    "QuestionPair",
    "AnswerPair",
    "AttestationRecord",
    "AttestationReceipt",
    "FeedEntry",
    "PostContent",
    "GradeOutcome",
    "DisputeChallenge",
    "DisputeOutcome",
    # Exceptions
    "ProofDayError",
    "ConfigError",
    "StorageError",
    "NotFoundError",
    "ValidationError",
    "StateError",
    "UpstreamError",
]
