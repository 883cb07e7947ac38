# src/proofday/storage/memory.py
"""
In-process goal store.

Used when no external store is configured, and by the test suite. All state
lives in one store instance and is guarded by a single asyncio lock. Records
are kept in their JSON form so callers never share mutable objects with the
store.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from ..exceptions import StorageError
from ..models import Goal
from .base import BaseGoalStore, merge_patch, normalize_username

logger = logging.getLogger(__name__)


class InMemoryGoalStore(BaseGoalStore):
    """
    Dictionary-backed goal store.

    Args:
        feed_max_entries: Capacity of the recent-activity feed.
    """

    def __init__(self, feed_max_entries: int = 500) -> None:
        self._feed_max_entries = feed_max_entries
        self._goals: Dict[str, Dict[str, Any]] = {}
        self._user_goals: Dict[str, List[str]] = {}
        self._feed: List[str] = []
        self._users: Set[str] = set()
        self._lock = asyncio.Lock()

    async def create(self, goal: Goal) -> Goal:
        owner = normalize_username(goal.owner)
        async with self._lock:
            if goal.id in self._goals:
                raise StorageError(f"Goal id already exists: '{goal.id}'")
            self._goals[goal.id] = goal.model_dump(mode="json")
            self._user_goals.setdefault(owner, []).insert(0, goal.id)
            if owner:
                self._users.add(owner)
        logger.debug("Stored goal %s for owner '%s'", goal.id, owner)
        return Goal.model_validate(self._goals[goal.id])

    async def get_by_id(self, goal_id: str) -> Optional[Goal]:
        async with self._lock:
            data = self._goals.get(goal_id)
        return Goal.model_validate(data) if data is not None else None

    async def get_by_owner(self, owner: str) -> List[Goal]:
        owner = normalize_username(owner)
        async with self._lock:
            records = [self._goals[i] for i in self._user_goals.get(owner, []) if i in self._goals]
        goals = [Goal.model_validate(r) for r in records]
        return sorted(goals, key=lambda g: g.created_at, reverse=True)

    async def update(self, goal_id: str, patch: Dict[str, Any]) -> Optional[Goal]:
        async with self._lock:
            data = self._goals.get(goal_id)
            if data is None:
                return None
            merged = merge_patch(Goal.model_validate(data), patch)
            self._goals[goal_id] = merged.model_dump(mode="json")
        return merged

    async def append_feed(self, goal_id: str) -> None:
        async with self._lock:
            self._feed.insert(0, goal_id)
            del self._feed[self._feed_max_entries:]

    async def get_feed(self, limit: int) -> List[str]:
        async with self._lock:
            return list(self._feed[:max(0, limit)])

    async def add_known_user(self, username: str) -> None:
        username = normalize_username(username)
        if not username:
            return
        async with self._lock:
            self._users.add(username)

    async def list_known_users(self) -> List[str]:
        async with self._lock:
            return list(self._users)
