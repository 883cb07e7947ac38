# src/proofday/storage/base.py
"""
Abstract Base Class for Goal Store backends.

The goal store holds four kinds of data:

- goal records keyed by id,
- per-owner goal id lists,
- a bounded, newest-first feed of attested goal ids,
- the set of known usernames.

Every operation is atomic for the key it touches. Nothing is transactional
across keys: a goal record may exist without being listed for its owner if
a write is interrupted, and readers must tolerate that.
"""

import abc
from typing import Any, Dict, List, Optional

from ..exceptions import StorageError
from ..models import Goal, utcnow

IMMUTABLE_FIELDS = frozenset({"id", "owner", "created_at"})


def normalize_username(username: Optional[str]) -> str:
    """Usernames are keyed trimmed."""
    return (username or "").strip()


def merge_patch(current: Goal, patch: Dict[str, Any]) -> Goal:
    """
    Apply a partial patch to a goal and return the validated merged record.

    Raises:
        StorageError: If the patch touches an immutable field or fails validation.
    """
    touched = IMMUTABLE_FIELDS.intersection(patch)
    if touched:
        raise StorageError(f"Cannot patch immutable goal fields: {sorted(touched)}")
    merged = current.model_dump()
    merged.update(patch)
    merged["updated_at"] = utcnow()
    try:
        return Goal.model_validate(merged)
    except ValueError as e:
        raise StorageError(f"Patch for goal '{current.id}' produced an invalid record: {e}") from e


class BaseGoalStore(abc.ABC):
    """
    Abstract Base Class for goal storage.

    Concrete implementations handle the specifics of persistence (process
    memory, Redis). The lifecycle controller depends only on this interface.
    """

    @abc.abstractmethod
    async def create(self, goal: Goal) -> Goal:
        """
        Persist a new goal, list it under its owner, and register the owner
        as a known user.

        Args:
            goal: The goal to persist. Its ``id`` must not exist yet.

        Returns:
            The stored goal.
        """
        pass

    @abc.abstractmethod
    async def get_by_id(self, goal_id: str) -> Optional[Goal]:
        """Return the goal with the given id, or None."""
        pass

    @abc.abstractmethod
    async def get_by_owner(self, owner: str) -> List[Goal]:
        """
        Return the owner's goals, most recently created first.

        Ids listed for the owner whose record no longer resolves are skipped.
        """
        pass

    @abc.abstractmethod
    async def update(self, goal_id: str, patch: Dict[str, Any]) -> Optional[Goal]:
        """
        Merge ``patch`` into the stored goal (read-modify-write, last write wins).

        Returns:
            The merged goal, or None if the goal does not exist.
        """
        pass

    @abc.abstractmethod
    async def append_feed(self, goal_id: str) -> None:
        """Push a goal id onto the front of the feed, trimming it to capacity."""
        pass

    @abc.abstractmethod
    async def get_feed(self, limit: int) -> List[str]:
        """Return up to ``limit`` feed goal ids, newest first."""
        pass

    @abc.abstractmethod
    async def add_known_user(self, username: str) -> None:
        """Add a username to the known-users set. Blank names are ignored."""
        pass

    @abc.abstractmethod
    async def list_known_users(self) -> List[str]:
        """Return all known usernames (unordered)."""
        pass

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources. Optional for backends without any."""
        pass
