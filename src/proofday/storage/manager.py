# src/proofday/storage/manager.py
"""
Goal store factory.

Selects and instantiates the configured goal store backend.
"""

import logging
from typing import Callable, Dict

from ..config.models import StoreConfig
from ..exceptions import ConfigError
from .base import BaseGoalStore
from .memory import InMemoryGoalStore

logger = logging.getLogger(__name__)


def _build_memory(config: StoreConfig) -> BaseGoalStore:
    return InMemoryGoalStore(feed_max_entries=config.feed_max_entries)


def _build_redis(config: StoreConfig) -> BaseGoalStore:
    # Imported lazily so the memory backend works without the redis package.
    from .redis_store import RedisGoalStore
    return RedisGoalStore(
        url=config.resolved_redis_url(),
        key_prefix=config.key_prefix,
        feed_max_entries=config.feed_max_entries,
    )


# --- Mapping from config store type string to builder ---
STORE_BUILDERS: Dict[str, Callable[[StoreConfig], BaseGoalStore]] = {
    "memory": _build_memory,
    "redis": _build_redis,
}


def create_goal_store(config: StoreConfig) -> BaseGoalStore:
    """
    Instantiate the goal store described by ``config``.

    Raises:
        ConfigError: If the store type is unknown.
    """
    builder = STORE_BUILDERS.get(config.type)
    if builder is None:
        raise ConfigError(f"Unsupported goal store type configured: '{config.type}'. "
                          f"Available types: {list(STORE_BUILDERS.keys())}")
    store = builder(config)
    logger.info("Goal store '%s' initialized", config.type)
    return store
