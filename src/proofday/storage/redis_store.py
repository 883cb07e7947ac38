# src/proofday/storage/redis_store.py
"""
Redis-backed goal store.

Key layout (all keys optionally prefixed):

    goal:{id}             JSON goal record
    user_goals:{owner}    list of goal ids, newest first (LPUSH)
    feed                  list of attested goal ids, newest first, trimmed
    users:set             set of known usernames

Updates are read-modify-write without version checks; concurrent writers to
the same goal resolve last-write-wins.
"""

import logging
from typing import Any, Dict, List, Optional

try:
    from redis import asyncio as aioredis
    from redis.exceptions import RedisError
except ImportError as e:
    raise ImportError(
        "redis library is required for the Redis goal store. Install with: pip install redis>=5.0"
    ) from e

from ..exceptions import StorageError
from ..models import Goal
from .base import BaseGoalStore, merge_patch, normalize_username

logger = logging.getLogger(__name__)


class RedisGoalStore(BaseGoalStore):
    """
    Goal store on top of ``redis.asyncio``.

    Args:
        url: Redis connection URL (ignored when ``client`` is given).
        key_prefix: Prefix prepended to every key.
        feed_max_entries: Capacity of the feed list.
        client: An existing asyncio Redis client, mainly for tests.
    """

    def __init__(self, url: str = "redis://localhost:6379/0", key_prefix: str = "",
                 feed_max_entries: int = 500, client: Optional[Any] = None) -> None:
        self._prefix = key_prefix
        self._feed_max_entries = feed_max_entries
        self._client = client if client is not None else aioredis.from_url(url, decode_responses=True)

    # --- keys ---

    def _k_goal(self, goal_id: str) -> str:
        return f"{self._prefix}goal:{goal_id}"

    def _k_user_goals(self, owner: str) -> str:
        return f"{self._prefix}user_goals:{owner}"

    @property
    def _k_feed(self) -> str:
        return f"{self._prefix}feed"

    @property
    def _k_users(self) -> str:
        return f"{self._prefix}users:set"

    # --- helpers ---

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[Goal]:
        if raw is None:
            return None
        try:
            return Goal.model_validate_json(raw)
        except ValueError as e:
            raise StorageError(f"Stored goal record is corrupt: {e}") from e

    async def _load_many(self, ids: List[str]) -> List[Goal]:
        if not ids:
            return []
        raws = await self._client.mget([self._k_goal(i) for i in ids])
        return [g for g in (self._decode(r) for r in raws) if g is not None]

    # --- BaseGoalStore ---

    async def create(self, goal: Goal) -> Goal:
        owner = normalize_username(goal.owner)
        try:
            created = await self._client.set(self._k_goal(goal.id), goal.model_dump_json(), nx=True)
            if not created:
                raise StorageError(f"Goal id already exists: '{goal.id}'")
            await self._client.lpush(self._k_user_goals(owner), goal.id)
            if owner:
                await self._client.sadd(self._k_users, owner)
        except RedisError as e:
            raise StorageError(f"Redis error creating goal '{goal.id}': {e}") from e
        logger.debug("Stored goal %s for owner '%s' in Redis", goal.id, owner)
        return goal

    async def get_by_id(self, goal_id: str) -> Optional[Goal]:
        try:
            return self._decode(await self._client.get(self._k_goal(goal_id)))
        except RedisError as e:
            raise StorageError(f"Redis error reading goal '{goal_id}': {e}") from e

    async def get_by_owner(self, owner: str) -> List[Goal]:
        owner = normalize_username(owner)
        try:
            ids = await self._client.lrange(self._k_user_goals(owner), 0, -1)
            goals = await self._load_many(list(ids or []))
        except RedisError as e:
            raise StorageError(f"Redis error listing goals for '{owner}': {e}") from e
        return sorted(goals, key=lambda g: g.created_at, reverse=True)

    async def update(self, goal_id: str, patch: Dict[str, Any]) -> Optional[Goal]:
        try:
            current = self._decode(await self._client.get(self._k_goal(goal_id)))
            if current is None:
                return None
            merged = merge_patch(current, patch)
            await self._client.set(self._k_goal(goal_id), merged.model_dump_json())
        except RedisError as e:
            raise StorageError(f"Redis error updating goal '{goal_id}': {e}") from e
        return merged

    async def append_feed(self, goal_id: str) -> None:
        try:
            await self._client.lpush(self._k_feed, goal_id)
            await self._client.ltrim(self._k_feed, 0, self._feed_max_entries - 1)
        except RedisError as e:
            raise StorageError(f"Redis error appending '{goal_id}' to feed: {e}") from e

    async def get_feed(self, limit: int) -> List[str]:
        if limit <= 0:
            return []
        try:
            return list(await self._client.lrange(self._k_feed, 0, limit - 1) or [])
        except RedisError as e:
            raise StorageError(f"Redis error reading feed: {e}") from e

    async def add_known_user(self, username: str) -> None:
        username = normalize_username(username)
        if not username:
            return
        try:
            await self._client.sadd(self._k_users, username)
        except RedisError as e:
            raise StorageError(f"Redis error adding user '{username}': {e}") from e

    async def list_known_users(self) -> List[str]:
        try:
            return list(await self._client.smembers(self._k_users) or [])
        except RedisError as e:
            raise StorageError(f"Redis error listing users: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self) -> None:
        try:
            await self._client.aclose()
            logger.info("Redis goal store connection closed")
        except RedisError as e:
            logger.error("Error closing Redis goal store: %s", e, exc_info=True)
