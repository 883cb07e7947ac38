# src/proofday/storage/__init__.py
"""
Goal store package.

Exports the abstract store interface, the in-memory backend and the
factory. The Redis backend is imported on demand from
``proofday.storage.redis_store``.
"""

from .base import BaseGoalStore, merge_patch, normalize_username
from .manager import STORE_BUILDERS, create_goal_store
from .memory import InMemoryGoalStore

__all__ = [
    "BaseGoalStore",
    "InMemoryGoalStore",
    "STORE_BUILDERS",
    "create_goal_store",
    "merge_patch",
    "normalize_username",
]
